"""
URL configuration for the engdash project.

The `urlpatterns` list routes URLs to views. For more information please see:
    https://docs.djangoproject.com/en/5.2/topics/http/urls/
"""
from django.contrib import admin
from django.urls import path, include
from rest_framework_simplejwt.views import TokenRefreshView, TokenBlacklistView
from tracking.views import MyTokenObtainPairView
from drf_spectacular.views import SpectacularAPIView, SpectacularSwaggerView

urlpatterns = [
    path('admin/', admin.site.urls),

    # Projects, people and time entries
    path('api/tracking/', include('tracking.urls')),
    # Derived metrics and reports
    path('api/analytics/', include('analytics.urls')),
    # JWT authentication
    path('api/token/', MyTokenObtainPairView.as_view(), name='token_obtain_pair'),
    path('api/token/refresh/', TokenRefreshView.as_view(), name='token_refresh'),
    path('api/token/sign-out/', TokenBlacklistView.as_view(), name='token_sign_out'),

    # machine-readable schema (schema.yaml)
    path('api/schema/', SpectacularAPIView.as_view(), name='schema'),

    # browsable docs
    path('api/docs/', SpectacularSwaggerView.as_view(url_name='schema'), name='swagger-ui'),
]

from django.urls import path, include
from rest_framework.routers import DefaultRouter
from . import views

# The router generates the URLs for the viewsets
router = DefaultRouter()
router.register(r'projects', views.ProjectViewSet)
router.register(r'people', views.PersonViewSet)
router.register(r'time-entries', views.TimeEntryViewSet)

urlpatterns = [
    path('me/', views.me, name='me'),
    path('', include(router.urls)),
]

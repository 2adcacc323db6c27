from django.urls import path, include
from rest_framework.routers import DefaultRouter
from .views import AnalysisViewSet, BurnRateViewSet, BreakdownViewSet, DashboardViewSet, ReportViewSet

router = DefaultRouter()
router.register(r'analysis', AnalysisViewSet, basename='analysis')
router.register(r'burn-rate', BurnRateViewSet, basename='burn-rate')
router.register(r'breakdown', BreakdownViewSet, basename='breakdown')
router.register(r'dashboard', DashboardViewSet, basename='dashboard')
router.register(r'reports', ReportViewSet, basename='reports')

urlpatterns = [
    path('', include(router.urls)),
]

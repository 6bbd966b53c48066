"""
Health check URL. Mounted under /v1/ by config.urls.
"""
from django.urls import path

from apps.core.views import HealthCheckView

urlpatterns = [
    path('health/', HealthCheckView.as_view(), name='health-check'),
]

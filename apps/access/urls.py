"""
URL configuration for access app.
"""
from django.urls import path
from apps.access.views import (
    CheckRoutePermissionView, MyPrivilegesView,
    MyPermissionsView, UserPermissionsView
)

urlpatterns = [
    path('check-route-permission', CheckRoutePermissionView.as_view(), name='check-route-permission'),

    # Caller reports
    path('me/privileges', MyPrivilegesView.as_view(), name='my-privileges'),
    path('me/permissions', MyPermissionsView.as_view(), name='my-permissions'),

    # Operator reports
    path('users/<str:identity>/permissions', UserPermissionsView.as_view(), name='user-permissions'),
]

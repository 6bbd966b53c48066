"""
Serializers for access API endpoints.
"""
from rest_framework import serializers


class RouteCheckQuerySerializer(serializers.Serializer):
    """Query parameters for the route permission check."""

    route = serializers.CharField(
        required=True,
        allow_blank=False,
        trim_whitespace=True,
        help_text="Dashboard route to check, e.g. /dashboard/baseline-qol/add"
    )
    action = serializers.CharField(
        required=False,
        allow_blank=True,
        trim_whitespace=True,
        help_text="Explicit action key (VIEW, ADD, EDIT, DELETE...); derived from the route when omitted"
    )


class RouteCheckResponseSerializer(serializers.Serializer):
    """Result of a route permission check."""

    success = serializers.BooleanField()
    has_access = serializers.BooleanField()
    route = serializers.CharField()
    action = serializers.CharField(allow_null=True)
    reason = serializers.CharField()
    message = serializers.CharField(required=False)


class PrivilegesSerializer(serializers.Serializer):
    """Super flags of the caller."""

    identity = serializers.CharField()
    is_super_admin = serializers.BooleanField()
    is_super_user = serializers.BooleanField()


class RoleMembershipSerializer(serializers.Serializer):
    role_id = serializers.IntegerField()
    role_name = serializers.CharField(allow_null=True)
    is_active = serializers.BooleanField()


class GrantSerializer(serializers.Serializer):
    """One override or role grant joined to its page and permission."""

    permission_id = serializers.IntegerField()
    page_id = serializers.IntegerField()
    page_name = serializers.CharField(allow_blank=True)
    route_path = serializers.CharField(allow_blank=True)
    action_key = serializers.CharField(allow_blank=True)
    is_allowed = serializers.BooleanField()
    role_id = serializers.IntegerField(required=False)
    role_name = serializers.CharField(required=False, allow_null=True)


class EffectivePermissionsSerializer(serializers.Serializer):
    """Everything an identity is granted."""

    identity = serializers.CharField()
    identity_kind = serializers.CharField()
    is_super_admin = serializers.BooleanField()
    is_super_user = serializers.BooleanField()
    roles = RoleMembershipSerializer(many=True)
    role_permissions = GrantSerializer(many=True)
    user_permissions = GrantSerializer(many=True)
    allowed_permission_ids = serializers.ListField(child=serializers.IntegerField())

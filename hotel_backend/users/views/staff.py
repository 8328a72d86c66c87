"""
STAFF DIRECTORY (ADMIN)

- List operators with presence (who is on shift right now)
- Toggle role admin <-> staff
"""

from __future__ import annotations

import logging

from django.contrib.auth import get_user_model
from django.shortcuts import get_object_or_404
from drf_spectacular.utils import extend_schema
from rest_framework import status
from rest_framework.generics import ListAPIView
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from permissions.roles import CAP_USERS_MANAGE, HasCapability, IsAdmin
from users.serializers import RoleUpdateSerializer, UserSerializer

logger = logging.getLogger(__name__)

User = get_user_model()


class StaffListView(ListAPIView):
    permission_classes = [IsAuthenticated, HasCapability]
    required_capability = CAP_USERS_MANAGE
    serializer_class = UserSerializer

    def get_queryset(self):
        return User.objects.all().order_by("email")


class StaffRoleView(APIView):
    """
    Role changes need the admin ROLE, not only users.manage: a superuser
    flag on a staff account does not let it hand out roles.
    """

    permission_classes = [IsAuthenticated, IsAdmin, HasCapability]
    required_capability = CAP_USERS_MANAGE
    serializer_class = RoleUpdateSerializer

    @extend_schema(
        request=RoleUpdateSerializer,
        responses={200: UserSerializer},
        description="Change an operator's role (admin only)",
    )
    def patch(self, request, pk):
        target = get_object_or_404(User, pk=pk)

        serializer = RoleUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        role = serializer.validated_data["role"]

        if target.pk == request.user.pk and role != User.ROLE_ADMIN:
            return Response(
                {"error": {"code": "SELF_DEMOTION", "message": "You cannot remove your own admin role."}},
                status=status.HTTP_400_BAD_REQUEST,
            )

        target.role = role
        target.save(update_fields=["role", "updated_at"])
        logger.info("role changed: %s -> %s by %s", target.email, role, request.user.email)

        return Response(UserSerializer(target).data)

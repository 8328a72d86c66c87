# permissions/roles.py

from __future__ import annotations

from typing import Optional

from rest_framework.permissions import BasePermission


# =========================================================
# ROLE CONSTANTS
# =========================================================
# admin: back office (configuration, deletes, reports, staff management)
# staff: front desk, restaurant and bar outlets
ROLE_ADMIN = "admin"
ROLE_STAFF = "staff"

STAFF_ROLES = {
    ROLE_ADMIN,
    ROLE_STAFF,
}


# =========================================================
# CAPABILITIES (THE REAL PERMISSION LANGUAGE)
# =========================================================
# Views should protect capabilities, not raw roles.
CAP_POS_SELL = "pos.sell"
CAP_FOLIO_MANAGE = "folio.manage"
CAP_PROFORMA_MANAGE = "proforma.manage"

CAP_BILLING_SETTLE = "billing.settle"
CAP_BILLING_DELETE = "billing.delete"

CAP_REPORTS_VIEW = "reports.view"
CAP_REPORTS_VIEW_ALL = "reports.view_all"

CAP_INVENTORY_VIEW = "inventory.view"
CAP_INVENTORY_EDIT = "inventory.edit"

CAP_CONFIG_MANAGE = "config.manage"
CAP_USERS_MANAGE = "users.manage"

ALL_CAPABILITIES = {
    CAP_POS_SELL,
    CAP_FOLIO_MANAGE,
    CAP_PROFORMA_MANAGE,
    CAP_BILLING_SETTLE,
    CAP_BILLING_DELETE,
    CAP_REPORTS_VIEW,
    CAP_REPORTS_VIEW_ALL,
    CAP_INVENTORY_VIEW,
    CAP_INVENTORY_EDIT,
    CAP_CONFIG_MANAGE,
    CAP_USERS_MANAGE,
}


# =========================================================
# ROLE → CAPABILITY MAP
# =========================================================
ROLE_CAPABILITIES: dict[str, set[str]] = {
    ROLE_ADMIN: {
        # admin can do everything
        *ALL_CAPABILITIES,
    },
    ROLE_STAFF: {
        CAP_POS_SELL,
        CAP_FOLIO_MANAGE,
        CAP_PROFORMA_MANAGE,
        CAP_BILLING_SETTLE,
        CAP_REPORTS_VIEW,
        CAP_INVENTORY_VIEW,
        # deliberately NOT delete / config / inventory edits
    },
}


# =========================================================
# Helpers
# =========================================================
def get_user_role(user) -> Optional[str]:
    return getattr(user, "role", None)


def effective_capabilities_for(user) -> set[str]:
    if getattr(user, "is_superuser", False):
        return set(ALL_CAPABILITIES)
    return set(ROLE_CAPABILITIES.get(get_user_role(user), set()))


def user_has_capability(user, capability: str) -> bool:
    if not user or not user.is_authenticated:
        return False
    return capability in effective_capabilities_for(user)


# =========================================================
# Base Role Permission (Internal Use)
# =========================================================
class BaseRolePermission(BasePermission):
    """
    Base permission for role-based access control.

    Subclasses must define:
    - allowed_roles (set)
    """

    allowed_roles: set[str] = set()

    def has_permission(self, request, view):
        user = request.user

        if not user or not user.is_authenticated:
            return False

        user_role = get_user_role(user)
        if not user_role:
            return False

        return user_role in self.allowed_roles


# =========================================================
# Capability Permissions
# =========================================================
class HasCapability(BasePermission):
    """
    Require a specific capability.

    Usage:
        permission_classes = [IsAuthenticated, HasCapability]
        view.required_capability = CAP_BILLING_DELETE

    Views with per-action needs may implement get_required_capability().
    """

    def has_permission(self, request, view):
        user = request.user
        if not user or not user.is_authenticated:
            return False

        getter = getattr(view, "get_required_capability", None)
        required = getter() if callable(getter) else getattr(view, "required_capability", None)
        if not required:
            # deny-by-default to avoid accidental open endpoints
            return False

        return required in effective_capabilities_for(user)


class HasAnyCapability(BasePermission):
    """
    Require ANY capability from a list.

    Usage:
        view.required_any_capabilities = {CAP_POS_SELL, CAP_FOLIO_MANAGE}
    """

    def has_permission(self, request, view):
        user = request.user
        if not user or not user.is_authenticated:
            return False

        required = getattr(view, "required_any_capabilities", None)
        if not required:
            return False

        caps = effective_capabilities_for(user)
        return any(cap in caps for cap in set(required))


class IsVerifiedOperator(BasePermission):
    """
    Billing endpoints only serve operators whose identity checks passed:
    email verified by the identity flow, and email on the property domain.
    """

    message = "Verify your email address on the property domain to continue."

    def has_permission(self, request, view):
        user = request.user
        if not user or not user.is_authenticated:
            return False
        return bool(getattr(user, "email_verified", False)) and bool(
            getattr(user, "domain_verified", False)
        )


# =========================================================
# Role Permissions
# =========================================================
class IsAdmin(BaseRolePermission):
    allowed_roles = {ROLE_ADMIN}


class IsStaff(BaseRolePermission):
    allowed_roles = STAFF_ROLES

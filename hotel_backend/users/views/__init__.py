from .auth import LoginView, RegisterView
from .me import MeView, PresenceView
from .staff import StaffListView, StaffRoleView
from .verification import ConfirmVerificationView, SendVerificationView

__all__ = [
    "RegisterView",
    "LoginView",
    "MeView",
    "PresenceView",
    "StaffListView",
    "StaffRoleView",
    "SendVerificationView",
    "ConfirmVerificationView",
]

# users/urls.py

from django.urls import path

from .views import (
    ConfirmVerificationView,
    LoginView,
    MeView,
    PresenceView,
    RegisterView,
    SendVerificationView,
    StaffListView,
    StaffRoleView,
)

app_name = "users"

urlpatterns = [
    # ---------------- PUBLIC AUTH ----------------
    path("register/", RegisterView.as_view(), name="register"),
    path("login/", LoginView.as_view(), name="login"),
    path("verify-email/confirm/", ConfirmVerificationView.as_view(), name="verify-email-confirm"),
    # ---------------- AUTHENTICATED ----------------
    path("me/", MeView.as_view(), name="me"),
    path("presence/", PresenceView.as_view(), name="presence"),
    path("verify-email/send/", SendVerificationView.as_view(), name="verify-email-send"),
    # ---------------- ADMIN ----------------
    path("users/", StaffListView.as_view(), name="staff-list"),
    path("users/<uuid:pk>/role/", StaffRoleView.as_view(), name="staff-role"),
]

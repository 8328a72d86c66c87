"""
PATH: users/services/verification.py

EMAIL VERIFICATION

Flow:
- register (or "resend") mails a link: EMAIL_VERIFY_URL?uid=<b64 pk>&token=<token>
- the frontend posts uid + token back to confirm/, which sets email_verified

Tokens:
- Django's PasswordResetTokenGenerator machinery (signed, PASSWORD_RESET_TIMEOUT).
- The hash covers email + email_verified, so a link stops working once used
  or once the address changes.
"""

from __future__ import annotations

import logging

from django.conf import settings
from django.contrib.auth import get_user_model
from django.contrib.auth.tokens import PasswordResetTokenGenerator
from django.core.exceptions import ValidationError
from django.core.mail import send_mail
from django.utils.encoding import force_bytes, force_str
from django.utils.http import urlsafe_base64_decode, urlsafe_base64_encode

logger = logging.getLogger(__name__)

User = get_user_model()


class EmailVerificationError(Exception):
    pass


class EmailVerificationTokenGenerator(PasswordResetTokenGenerator):
    key_salt = "users.services.verification.EmailVerificationTokenGenerator"

    def _make_hash_value(self, user, timestamp):
        return f"{user.pk}{user.email}{user.email_verified}{timestamp}"


email_verification_token = EmailVerificationTokenGenerator()


def build_verification_link(user) -> str:
    uid = urlsafe_base64_encode(force_bytes(user.pk))
    token = email_verification_token.make_token(user)
    base = (getattr(settings, "EMAIL_VERIFY_URL", "") or "").rstrip("/")
    return f"{base}?uid={uid}&token={token}"


def send_verification_email(user) -> None:
    link = build_verification_link(user)
    send_mail(
        subject="Verify your email address",
        message=(
            f"Hello {user.display_name},\n\n"
            "Confirm your email address to start using the revenue terminal:\n\n"
            f"{link}\n"
        ),
        from_email=settings.DEFAULT_FROM_EMAIL,
        recipient_list=[user.email],
        fail_silently=False,
    )
    logger.info("verification email sent: %s", user.email)


def confirm_email(uidb64: str, token: str):
    try:
        pk = force_str(urlsafe_base64_decode(uidb64))
        user = User.objects.get(pk=pk)
    except (TypeError, ValueError, OverflowError, ValidationError, User.DoesNotExist):
        raise EmailVerificationError("Verification link is invalid.")

    if not email_verification_token.check_token(user, token):
        raise EmailVerificationError("Verification link is invalid or has expired.")

    User.objects.filter(pk=user.pk).update(email_verified=True)
    user.email_verified = True
    logger.info("email verified: %s", user.email)
    return user

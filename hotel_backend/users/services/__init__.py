from .verification import (
    EmailVerificationError,
    build_verification_link,
    confirm_email,
    email_verification_token,
    send_verification_email,
)

__all__ = [
    "EmailVerificationError",
    "build_verification_link",
    "confirm_email",
    "email_verification_token",
    "send_verification_email",
]

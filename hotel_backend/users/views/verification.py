"""
EMAIL VERIFICATION VIEWS

- send/ (authenticated): mails a fresh verification link to the caller.
- confirm/ (anon): accepts the uid + token from that link and marks the
  address verified. Billing stays closed until this has happened.
"""

from __future__ import annotations

import logging
from smtplib import SMTPException

from drf_spectacular.utils import extend_schema
from rest_framework import status
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from users.serializers import ConfirmEmailSerializer, UserSerializer
from users.services import EmailVerificationError, confirm_email, send_verification_email
from users.views.auth import AuthAnonThrottle

logger = logging.getLogger(__name__)


class SendVerificationView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(request=None, responses={200: dict})
    def post(self, request):
        user = request.user
        if user.email_verified:
            return Response({"message": "Email already verified"})

        try:
            send_verification_email(user)
        except (SMTPException, OSError):
            logger.exception("verification email failed: %s", user.email)
            return Response(
                {
                    "error": {
                        "code": "EMAIL_SEND_FAILED",
                        "message": "Could not send the verification email. Try again later.",
                    }
                },
                status=status.HTTP_503_SERVICE_UNAVAILABLE,
            )

        return Response({"message": "Verification email sent"})


class ConfirmVerificationView(APIView):
    permission_classes = [AllowAny]
    authentication_classes = []
    throttle_classes = [AuthAnonThrottle]
    serializer_class = ConfirmEmailSerializer

    @extend_schema(request=ConfirmEmailSerializer, responses={200: UserSerializer})
    def post(self, request):
        serializer = ConfirmEmailSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            user = confirm_email(
                serializer.validated_data["uid"],
                serializer.validated_data["token"],
            )
        except EmailVerificationError as exc:
            return Response(
                {"error": {"code": "INVALID_VERIFICATION_TOKEN", "message": str(exc)}},
                status=status.HTTP_400_BAD_REQUEST,
            )

        return Response(
            {
                "message": "Email verified",
                "user": UserSerializer(user).data,
            }
        )

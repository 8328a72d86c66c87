from drf_spectacular.utils import extend_schema
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from permissions.roles import IsStaff
from users.serializers import PresenceSerializer, UserSerializer


class MeView(APIView):
    permission_classes = [IsAuthenticated]
    serializer_class = UserSerializer

    @extend_schema(
        responses={200: UserSerializer},
        description="Get current authenticated user profile",
    )
    def get(self, request):
        return Response(UserSerializer(request.user).data)


class PresenceView(APIView):
    """
    Operator heartbeat.

    Clients post {"online": true} periodically and {"online": false} on sign-out.
    Plain UPDATE, last write wins; nothing else depends on it.
    Only operators with a recognised role (admin or staff) report presence.
    """

    permission_classes = [IsAuthenticated, IsStaff]
    serializer_class = PresenceSerializer

    @extend_schema(
        request=PresenceSerializer,
        responses={200: UserSerializer},
        description="Record operator online status",
    )
    def post(self, request):
        serializer = PresenceSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        request.user.mark_presence(serializer.validated_data["online"])
        return Response(UserSerializer(request.user).data)

# autotag/views/training_views.py
from rest_framework.views import APIView
from rest_framework.response import Response
from rest_framework.permissions import IsAdminUser
from rest_framework import status

from autotag.exceptions import FaceServiceError, PersonGroupNotFound
from autotag.serializers import TrainingStatusSerializer, RemotePersonSerializer
from autotag.views.operations_views import get_operations, remote_error


class TrainingView(APIView):
    """
    GET  -> estado del entrenamiento remoto
    POST -> lanza el entrenamiento del person group
    """
    permission_classes = [IsAdminUser]

    def get(self, request):
        try:
            st = get_operations().training_status()
        except PersonGroupNotFound:
            return Response(
                {"ok": False, "detail": "El grupo no existe en el recurso remoto. Ejecuta un reset."},
                status=status.HTTP_409_CONFLICT,
            )
        except FaceServiceError as e:
            return remote_error("No se pudo obtener el estado de entrenamiento", e)
        return Response(TrainingStatusSerializer(st).data)

    def post(self, request):
        try:
            get_operations().run_training()
        except FaceServiceError as e:
            return remote_error("No se pudo lanzar el entrenamiento", e)
        return Response({"ok": True}, status=status.HTTP_202_ACCEPTED)


class RemotePeopleView(APIView):
    """Personas registradas en el person group remoto."""
    permission_classes = [IsAdminUser]

    def get(self, request):
        try:
            people = get_operations().remote_people()
        except FaceServiceError as e:
            return remote_error("Error listando personas", e)
        return Response(RemotePersonSerializer(people, many=True).data)

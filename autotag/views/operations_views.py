# autotag/views/operations_views.py
import logging

from rest_framework.views import APIView
from rest_framework.generics import ListAPIView
from rest_framework.response import Response
from rest_framework.permissions import IsAdminUser
from rest_framework import status

from autotag.exceptions import FaceServiceError
from autotag.models import PersonMap
from autotag.serializers import PersonMapSerializer, RunQueuesSerializer
from autotag.services import factory
from autotag.services.operations import AutoTagOperations

logger = logging.getLogger(__name__)


def get_operations() -> AutoTagOperations:
    return AutoTagOperations(factory.get_entity_operations())


def remote_error(prefix: str, e: FaceServiceError) -> Response:
    logger.warning("%s: %s", prefix, e)
    code = e.status_code if e.status_code is not None else "-"
    return Response(
        {"ok": False, "detail": f"{prefix}. Código {code}: {e.message}"},
        status=status.HTTP_502_BAD_GATEWAY,
    )


class StatusView(APIView):
    """Colas pendientes y progreso de personas enviadas."""
    permission_classes = [IsAdminUser]

    def get(self, request):
        ops = get_operations()
        return Response({
            "queues": ops.queue_counts(),
            "people": ops.submission_progress(),
        })


class SubmitMissingPeopleView(APIView):
    permission_classes = [IsAdminUser]

    def post(self, request):
        try:
            count = get_operations().submit_missing_people()
        except FaceServiceError as e:
            return remote_error("No se pudieron enviar las personas", e)
        return Response({"ok": True, "detail": f"Enviadas {count} personas y entrenamiento lanzado.", "submitted": count})


class ResetView(APIView):
    permission_classes = [IsAdminUser]

    def post(self, request):
        try:
            deleted = get_operations().reset()
        except FaceServiceError as e:
            return remote_error("No se pudieron resetear los datos remotos", e)
        return Response({"ok": True, "deleted_maps": deleted})


class ResetAndResyncView(APIView):
    permission_classes = [IsAdminUser]

    def post(self, request):
        try:
            count = get_operations().reset_and_resync()
        except FaceServiceError as e:
            return remote_error("Falló el reset/reenvío", e)
        return Response({
            "ok": True,
            "detail": "Datos remotos reseteados, personas reenviadas y entrenamiento lanzado.",
            "submitted": count,
        })


class ResetAndQueueView(APIView):
    permission_classes = [IsAdminUser]

    def post(self, request):
        try:
            count = get_operations().reset_and_queue()
        except FaceServiceError as e:
            return remote_error("Falló el reset", e)
        return Response({
            "ok": True,
            "detail": "Datos remotos reseteados y personas añadidas a la cola.",
            "queued": count,
        })


class RunQueuesView(APIView):
    permission_classes = [IsAdminUser]

    def post(self, request):
        s = RunQueuesSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        report = get_operations().run_queues(limit=s.validated_data.get("limit"))
        return Response({
            "ok": report.failed == 0,
            "processed": report.processed,
            "failed": report.failed,
            "errors": report.errors,
        })


class PersonMapListView(ListAPIView):
    permission_classes = [IsAdminUser]
    serializer_class = PersonMapSerializer

    def get_queryset(self):
        qs = PersonMap.objects.all()
        entity_type = self.request.query_params.get("local_entity_type", "").strip()
        if entity_type:
            qs = qs.filter(local_entity_type=entity_type)
        return qs

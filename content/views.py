from botocore.exceptions import BotoCoreError, ClientError
from rest_framework import viewsets, permissions, status
from rest_framework.decorators import action
from rest_framework.parsers import MultiPartParser, FormParser
from rest_framework.response import Response

from autotag.services import storage
from .models import ImageFile, Person, Article
from .serializers import ImageFileSerializer, ImageUploadSerializer, PersonSerializer, ArticleSerializer


class ImageFileViewSet(viewsets.ModelViewSet):
    queryset = ImageFile.objects.all()
    serializer_class = ImageFileSerializer
    permission_classes = [permissions.IsAuthenticated]

    @action(detail=False, methods=["post"], parser_classes=[MultiPartParser, FormParser])
    def upload(self, request):
        s = ImageUploadSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        upload = s.validated_data["file"]
        try:
            uri = storage.upload_image(upload)
        except (ClientError, BotoCoreError, RuntimeError) as e:
            return Response({"ok": False, "detail": f"error subiendo imagen: {e}"}, status=500)
        image = ImageFile.objects.create(uri=uri, filename=upload.name)
        return Response(ImageFileSerializer(image).data, status=status.HTTP_201_CREATED)


class PersonViewSet(viewsets.ModelViewSet):
    queryset = Person.objects.all().prefetch_related("faces")
    serializer_class = PersonSerializer
    permission_classes = [permissions.IsAuthenticated]


class ArticleViewSet(viewsets.ModelViewSet):
    queryset = Article.objects.all().select_related("image").prefetch_related("people")
    serializer_class = ArticleSerializer
    permission_classes = [permissions.IsAuthenticated]

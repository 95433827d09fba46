from rest_framework import serializers
from .models import ImageFile, Person, Article
from .signals import SHARED_FACE_MSG, face_owners


class ImageFileSerializer(serializers.ModelSerializer):
    class Meta:
        model = ImageFile
        fields = ["id", "uri", "filename", "created_at"]
        read_only_fields = ["id", "created_at"]


class ImageUploadSerializer(serializers.Serializer):
    file = serializers.ImageField()


class PersonSerializer(serializers.ModelSerializer):
    faces = serializers.PrimaryKeyRelatedField(queryset=ImageFile.objects.all(), many=True, required=False)

    class Meta:
        model = Person
        fields = ["id", "name", "faces", "created_at"]
        read_only_fields = ["id", "created_at"]

    def validate_faces(self, images):
        exclude = self.instance.pk if self.instance is not None else None
        taken = face_owners([img.pk for img in images], exclude_person=exclude)
        if taken:
            raise serializers.ValidationError(SHARED_FACE_MSG.format(image=min(taken)))
        return images


class ArticleSerializer(serializers.ModelSerializer):
    people = serializers.StringRelatedField(many=True, read_only=True)

    class Meta:
        model = Article
        fields = ["id", "title", "body", "image", "people", "created_at"]
        read_only_fields = ["id", "people", "created_at"]

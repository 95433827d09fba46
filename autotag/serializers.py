from rest_framework import serializers
from autotag.models import PersonMap


class PersonMapSerializer(serializers.ModelSerializer):
    class Meta:
        model = PersonMap
        fields = ["id", "foreign_id", "local_id", "local_entity_type", "created", "changed"]


class TrainingStatusSerializer(serializers.Serializer):
    status = serializers.CharField()
    last_trained = serializers.CharField(allow_null=True)
    message = serializers.CharField(allow_null=True, required=False)


class RemotePersonSerializer(serializers.Serializer):
    person_id = serializers.CharField()
    name = serializers.CharField(allow_blank=True)
    images = serializers.SerializerMethodField()

    def get_images(self, obj) -> int:
        return len(obj.face_ids)


class RunQueuesSerializer(serializers.Serializer):
    limit = serializers.IntegerField(min_value=1, required=False)

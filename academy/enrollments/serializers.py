from rest_framework import serializers

from academy.enrollments.models import Enrollment


class CreateEnrollmentSerializer(serializers.Serializer):
    course_id = serializers.IntegerField(min_value=1)


class EnrollmentSerializer(serializers.ModelSerializer):
    course_title = serializers.CharField(source="course.title", read_only=True)

    class Meta:
        model = Enrollment
        fields = ["id", "course", "course_title", "payment", "created_at", "updated_at"]
        read_only_fields = fields

from rest_framework import status
from rest_framework.permissions import IsAuthenticated

from academy.api import AcademyAPIView, success_response
from academy.enrollments.serializers import CreateEnrollmentSerializer, EnrollmentSerializer
from academy.enrollments.services import EnrollmentService


class EnrollmentListCreateView(AcademyAPIView):
    """GET: enrollments of the current user. POST: free enrollment into a course."""

    permission_classes = [IsAuthenticated]

    def get(self, request):
        enrollments = EnrollmentService().list_my_enrollments(request.user)
        return success_response(EnrollmentSerializer(enrollments, many=True).data)

    def post(self, request):
        serializer = CreateEnrollmentSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        enrollment = EnrollmentService().create_enrollment(
            request.user, serializer.validated_data["course_id"]
        )
        return success_response(
            EnrollmentSerializer(enrollment).data, status.HTTP_201_CREATED
        )


class EnrollmentDetailView(AcademyAPIView):
    permission_classes = [IsAuthenticated]

    def get(self, request, enrollment_id):
        enrollment = EnrollmentService().get_enrollment(request.user, enrollment_id)
        return success_response(EnrollmentSerializer(enrollment).data)

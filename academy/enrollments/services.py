"""
Enrollment Services

- EnrollmentReconciler: grants course access after a confirmed payment.
  Safe to call repeatedly for the same (user, course, payment).
- EnrollmentService: free enrollments and enrollment lookups for users.

Author: Academy Development Team
Version: 1.0.0
"""

import logging
from enum import Enum

from django.core.exceptions import ValidationError
from django.db import IntegrityError, transaction
from django.utils import timezone

from academy.courses.models import Course
from academy.enrollments.models import Enrollment
from academy.exceptions import EnrollmentError, EnrollmentErrorCode

logger = logging.getLogger(__name__)


class ReconcileOutcome(Enum):
    CREATED = "created"
    LINKED = "linked"
    UNCHANGED = "unchanged"


class EnrollmentReconciler:
    """
    Create-or-link policy for enrollments:

    - no enrollment for (user, course): create one tagged with the payment
    - enrollment without payment: attach the payment
    - enrollment with a payment: leave it alone
    """

    def reconcile(self, user_id, course_id, payment_id) -> ReconcileOutcome:
        enrollment, created = Enrollment.objects.get_or_create(
            user_id=user_id,
            course_id=course_id,
            defaults={"payment_id": payment_id},
        )
        if created:
            logger.info(
                "Enrolled user %s into course %s (payment %s)", user_id, course_id, payment_id
            )
            return ReconcileOutcome.CREATED

        if enrollment.payment_id is None and payment_id is not None:
            linked = Enrollment.objects.filter(
                pk=enrollment.pk, payment__isnull=True
            ).update(payment_id=payment_id, updated_at=timezone.now())
            if linked:
                logger.info(
                    "Linked payment %s to existing enrollment %s", payment_id, enrollment.pk
                )
                return ReconcileOutcome.LINKED

        logger.debug(
            "Enrollment for user %s and course %s already settled", user_id, course_id
        )
        return ReconcileOutcome.UNCHANGED


class EnrollmentService:
    def create_enrollment(self, user, course_id) -> Enrollment:
        """
        Enroll a user into a course without payment.

        Raises:
            EnrollmentError: ENROLLMENT.COURSE_NOT_FOUND or ENROLLMENT.ALREADY_ENROLLED
        """
        try:
            course = Course.objects.get(pk=course_id)
        except (Course.DoesNotExist, ValidationError, ValueError):
            raise EnrollmentError(EnrollmentErrorCode.COURSE_NOT_FOUND)

        if Enrollment.objects.filter(user=user, course=course).exists():
            raise EnrollmentError(EnrollmentErrorCode.ALREADY_ENROLLED)

        try:
            with transaction.atomic():
                enrollment = Enrollment.objects.create(user=user, course=course)
        except IntegrityError:
            raise EnrollmentError(EnrollmentErrorCode.ALREADY_ENROLLED)

        logger.info("User %s enrolled into course %s without payment", user.pk, course.pk)
        return enrollment

    def get_enrollment(self, user, enrollment_id) -> Enrollment:
        try:
            return Enrollment.objects.select_related("course").get(
                pk=enrollment_id, user=user
            )
        except (Enrollment.DoesNotExist, ValidationError, ValueError):
            raise EnrollmentError(EnrollmentErrorCode.ENROLLMENT_NOT_FOUND)

    def list_my_enrollments(self, user):
        return Enrollment.objects.filter(user=user).select_related("course")

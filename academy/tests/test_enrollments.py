import uuid

from django.test import TestCase
from rest_framework.test import APIClient

from academy.enrollments.models import Enrollment
from academy.enrollments.services import EnrollmentReconciler, EnrollmentService, ReconcileOutcome
from academy.exceptions import EnrollmentError, EnrollmentErrorCode
from academy.payments.models import Payment
from academy.tests.helpers import create_course, create_order, create_user


class EnrollmentReconcilerTests(TestCase):
    @classmethod
    def setUpTestData(cls):
        cls.user = create_user()
        cls.course = create_course()
        order = create_order(cls.user, [cls.course])
        cls.payment = Payment.objects.create(order=order, payment_type=Payment.BANK_TRANSFER)
        cls.other_payment = Payment.objects.create(order=order, payment_type=Payment.BANK_TRANSFER)

    def setUp(self):
        self.reconciler = EnrollmentReconciler()

    def testCreatesEnrollmentTaggedWithPayment(self):
        outcome = self.reconciler.reconcile(self.user.pk, self.course.pk, self.payment.pk)

        self.assertEqual(outcome, ReconcileOutcome.CREATED)
        self.assertEqual(Enrollment.objects.get().payment_id, self.payment.pk)

    def testSecondCallIsNoOp(self):
        self.reconciler.reconcile(self.user.pk, self.course.pk, self.payment.pk)
        outcome = self.reconciler.reconcile(self.user.pk, self.course.pk, self.payment.pk)

        self.assertEqual(outcome, ReconcileOutcome.UNCHANGED)
        self.assertEqual(Enrollment.objects.filter(user=self.user, course=self.course).count(), 1)

    def testLinksPaymentToFreeEnrollment(self):
        Enrollment.objects.create(user=self.user, course=self.course)

        outcome = self.reconciler.reconcile(self.user.pk, self.course.pk, self.payment.pk)

        self.assertEqual(outcome, ReconcileOutcome.LINKED)
        self.assertEqual(Enrollment.objects.get().payment_id, self.payment.pk)

    def testKeepsExistingPaymentLink(self):
        Enrollment.objects.create(user=self.user, course=self.course, payment=self.payment)

        outcome = self.reconciler.reconcile(self.user.pk, self.course.pk, self.other_payment.pk)

        self.assertEqual(outcome, ReconcileOutcome.UNCHANGED)
        self.assertEqual(Enrollment.objects.get().payment_id, self.payment.pk)

    def testWithoutPaymentLeavesFreeEnrollmentUntouched(self):
        Enrollment.objects.create(user=self.user, course=self.course)
        self.assertEqual(
            self.reconciler.reconcile(self.user.pk, self.course.pk, None), ReconcileOutcome.UNCHANGED
        )


class EnrollmentServiceTests(TestCase):
    @classmethod
    def setUpTestData(cls):
        cls.user = create_user()
        cls.other_user = create_user("other")
        cls.course = create_course()

    def setUp(self):
        self.service = EnrollmentService()

    def testFreeEnrollmentHasNoPayment(self):
        enrollment = self.service.create_enrollment(self.user, self.course.pk)
        self.assertIsNone(enrollment.payment_id)

    def testUnknownCourse(self):
        with self.assertRaises(EnrollmentError) as ctx:
            self.service.create_enrollment(self.user, 999999)
        self.assertEqual(ctx.exception.error_code, EnrollmentErrorCode.COURSE_NOT_FOUND)

    def testDuplicateEnrollmentIsConflict(self):
        self.service.create_enrollment(self.user, self.course.pk)

        with self.assertRaises(EnrollmentError) as ctx:
            self.service.create_enrollment(self.user, self.course.pk)
        self.assertEqual(ctx.exception.status_code, 409)

    def testEnrollmentOfOtherUserIsNotFound(self):
        enrollment = self.service.create_enrollment(self.other_user, self.course.pk)

        with self.assertRaises(EnrollmentError) as ctx:
            self.service.get_enrollment(self.user, enrollment.pk)
        self.assertEqual(ctx.exception.error_code, EnrollmentErrorCode.ENROLLMENT_NOT_FOUND)


class EnrollmentViewsTests(TestCase):
    @classmethod
    def setUpTestData(cls):
        cls.user = create_user()
        cls.course = create_course()

    def setUp(self):
        self.client = APIClient()
        self.client.force_authenticate(user=self.user)

    def testEnrollAndList(self):
        response = self.client.post("/api/enrollments/", {"course_id": self.course.pk}, format="json")
        self.assertEqual(response.status_code, 201)

        response = self.client.get("/api/enrollments/")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["data"][0]["course_title"], self.course.title)

    def testUnknownEnrollmentReturnsErrorEnvelope(self):
        response = self.client.get(f"/api/enrollments/{uuid.uuid4()}/")

        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.json()["error_code"], "ENROLLMENT.ENROLLMENT_NOT_FOUND")

from django.urls import path

from . import views

urlpatterns = [
    path("", views.EnrollmentListCreateView.as_view(), name="enrollment-list"),
    path(
        "<uuid:enrollment_id>/",
        views.EnrollmentDetailView.as_view(),
        name="enrollment-detail",
    ),
]

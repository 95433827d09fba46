from django.urls import path

from .views.operations_views import (
    StatusView, SubmitMissingPeopleView, ResetView,
    ResetAndResyncView, ResetAndQueueView, RunQueuesView, PersonMapListView,
)
from .views.training_views import TrainingView, RemotePeopleView

urlpatterns = [
    # entrenamiento
    path("training/", TrainingView.as_view(), name="autotag-training"),
    path("people/remote/", RemotePeopleView.as_view(), name="autotag-remote-people"),

    # operaciones
    path("status/", StatusView.as_view(), name="autotag-status"),
    path("people/submit-missing/", SubmitMissingPeopleView.as_view(), name="autotag-submit-missing"),
    path("people/reset/", ResetView.as_view(), name="autotag-reset"),
    path("people/reset-and-resync/", ResetAndResyncView.as_view(), name="autotag-reset-resync"),
    path("people/reset-and-queue/", ResetAndQueueView.as_view(), name="autotag-reset-queue"),
    path("queues/run/", RunQueuesView.as_view(), name="autotag-run-queues"),
    path("maps/", PersonMapListView.as_view(), name="autotag-person-maps"),
]

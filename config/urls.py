from django.urls import include, path

from wagers.views import HealthView, ReconcileView

urlpatterns = [
    path("health", HealthView.as_view(), name="health"),
    path("maintenance/reconcile", ReconcileView.as_view(), name="reconcile"),
    path("accounts/", include("wagers.urls")),
]

handler404 = "wagers.views.errors.not_found"
handler500 = "wagers.views.errors.server_error"

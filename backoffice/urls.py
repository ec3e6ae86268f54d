from django.urls import include, path

urlpatterns = [
    path("shifts/", include("shifts.urls")),
    path("reports/", include("reports.urls")),
]

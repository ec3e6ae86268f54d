from django.urls import path
from . import views

app_name = "shifts"

urlpatterns = [
    path("close/", views.close, name="close"),
    path("closed/", views.closed_on_date, name="closed_on_date"),
    path("closed/list/", views.closed_list, name="closed_list"),
    path("closed/<int:pk>/", views.closed_detail, name="closed_detail"),
]

from django.urls import include, path

urlpatterns = [
    path("api/grid/", include("powergrid.urls")),
]

from django.urls import path, include

urlpatterns = [
    path("", include(("calendario.urls", "calendario"), namespace="calendario")),
]

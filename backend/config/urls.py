from datetime import datetime, timezone

from django.conf import settings
from django.urls import include, path, re_path
from drf_spectacular.views import (
    SpectacularAPIView,
    SpectacularRedocView,
    SpectacularSwaggerView,
)
from rest_framework.response import Response
from rest_framework.views import APIView


class HealthView(APIView):
    authentication_classes: list = []
    permission_classes: list = []
    throttle_classes: list = []

    def get(self, request, *args, **kwargs):
        return Response(
            {
                "status": "ok",
                "store": settings.STORE_BACKEND,
                "timestamp": datetime.now(timezone.utc).isoformat(),
            }
        )


urlpatterns = [
    re_path(r"^health/?$", HealthView.as_view(), name="health"),
    path("api/schema/", SpectacularAPIView.as_view(), name="schema"),
    path("api/schema/swagger/", SpectacularSwaggerView.as_view(url_name="schema")),
    path("api/schema/redoc/", SpectacularRedocView.as_view(url_name="schema")),
    path("api/", include("apps.catalog.urls")),
    path("api/", include("apps.reviews.urls")),
    path("api/", include("apps.cart.urls")),
    path("api/", include("apps.stats.urls")),
]

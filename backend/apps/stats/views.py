from rest_framework import permissions
from rest_framework.response import Response
from rest_framework.views import APIView

from .services.mongo_stats import mongo_stats


class StatsView(APIView):
    permission_classes = [permissions.AllowAny]
    failure_messages = {"get": "Failed to fetch database statistics"}

    def get(self, request):
        return Response({"stats": mongo_stats.collect()})

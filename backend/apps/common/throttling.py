from django.conf import settings
from rest_framework.throttling import BaseThrottle

from .services.redis_service import rate_limit_hit


class ClientRateThrottle(BaseThrottle):
    """Fixed-window request counter per client address, stored in Redis."""

    scope = "client"

    def get_cache_key(self, request, view):
        return f"throttle:{self.scope}:{self.get_ident(request)}"

    def allow_request(self, request, view):
        return not rate_limit_hit(self.scope, self.get_cache_key(request, view))

    def wait(self):
        return settings.RATE_LIMIT_WINDOW_SECONDS

"""
Custom middleware for citypages_backend.
"""
from django.middleware.common import CommonMiddleware


class APICommonMiddleware(CommonMiddleware):
    """
    CommonMiddleware that disables APPEND_SLASH for API routes.
    A redirect would drop the body of POST/PUT requests to API endpoints.
    """
    def should_redirect_with_slash(self, request):
        if request.path.startswith('/api/'):
            return False
        return super().should_redirect_with_slash(request)

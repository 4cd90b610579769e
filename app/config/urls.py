"""
URL configuration for the chat backend.

URL Structure:
    /                              - ReDoc API documentation
    /admin/                        - Django admin interface
    /health/                       - Health check endpoint (load balancers, Docker)
    /schema/                       - OpenAPI schema (YAML)
    /api/auth/                     - Registration, login, current user, profile
        register/  login/  me/  profile/  avatar/
    /api/users/                    - User lookup
        search/?q=                 - Search by username/email
        {id}/                      - Public profile
    /api/conversations/            - Conversation list/create
        {id}/                      - Conversation detail/update/delete
        {id}/users/                - Add participant
        {id}/users/{user_id}/      - Remove participant
    /api/messages/                 - Send message
        upload/                    - Upload message image
        {id}/                      - List (conversation id) / delete (message id)

WebSocket routes live in chat/routing.py (served by config/asgi.py).

For more information, see:
https://docs.djangoproject.com/en/5.2/topics/http/urls/
"""

from django.conf import settings
from django.conf.urls.static import static
from django.contrib import admin
from django.urls import include, path
from drf_spectacular.views import SpectacularAPIView, SpectacularRedocView

from authentication.urls import auth_urlpatterns, user_urlpatterns
from core.views import health_check

# =============================================================================
# API Routes
# =============================================================================
# All routes here are prefixed with /api/
api_patterns = [
    path("auth/", include((auth_urlpatterns, "auth"))),
    path("users/", include((user_urlpatterns, "users"))),
    path("", include("chat.urls")),
]

urlpatterns = [
    # Documentation
    path("", SpectacularRedocView.as_view(url_name="schema"), name="redoc"),
    path("schema/", SpectacularAPIView.as_view(), name="schema"),
    # Admin
    path("admin/", admin.site.urls),
    # Health check (Docker, Kubernetes, load balancers)
    path("health/", health_check, name="health_check"),
    path("api/", include(api_patterns)),
]

# Uploaded avatars and message images in local development
if settings.DEBUG:
    urlpatterns += static(settings.MEDIA_URL, document_root=settings.MEDIA_ROOT)

# =============================================================================
# Admin Site Customization
# =============================================================================
admin.site.site_header = "Chat Admin"
admin.site.site_title = "Chat Admin Portal"
admin.site.index_title = "Users, conversations and messages"

"""
URL configuration for chat API.

URL Structure:
    Conversations:
        /conversations/                          GET, POST
        /conversations/{id}/                     GET, PUT, DELETE

    Participants:
        /conversations/{id}/users/               POST
        /conversations/{id}/users/{user_id}/     DELETE

    Messages:
        /messages/                               POST
        /messages/upload/                        POST (multipart)
        /messages/{id}/                          GET (conversation id), DELETE (message id)

All URLs are prefixed with /api/ in the main URL configuration.
"""

from django.urls import path
from rest_framework.parsers import FormParser, MultiPartParser

from chat.views import ConversationViewSet, MessageViewSet

app_name = "chat"

urlpatterns = [
    # Conversations
    path(
        "conversations/",
        ConversationViewSet.as_view({"get": "list", "post": "create"}),
        name="conversation-list",
    ),
    path(
        "conversations/<int:pk>/",
        ConversationViewSet.as_view(
            {"get": "retrieve", "put": "update", "delete": "destroy"}
        ),
        name="conversation-detail",
    ),
    # Participants
    path(
        "conversations/<int:pk>/users/",
        ConversationViewSet.as_view({"post": "add_participant"}),
        name="conversation-participant-add",
    ),
    path(
        "conversations/<int:pk>/users/<int:user_id>/",
        ConversationViewSet.as_view({"delete": "remove_participant"}),
        name="conversation-participant-remove",
    ),
    # Messages
    path(
        "messages/",
        MessageViewSet.as_view({"post": "create"}),
        name="message-create",
    ),
    path(
        "messages/upload/",
        MessageViewSet.as_view(
            {"post": "upload"}, parser_classes=[MultiPartParser, FormParser]
        ),
        name="message-upload",
    ),
    path(
        "messages/<int:pk>/",
        MessageViewSet.as_view({"get": "list_for_conversation", "delete": "destroy"}),
        name="message-detail",
    ),
]

"""
ViewSets for chat API.

This module provides REST API endpoints for the chat system:
- ConversationViewSet: Conversation CRUD and membership
- MessageViewSet: Sending, listing, deleting and image upload

URL Structure:
    /api/conversations/                         GET, POST
    /api/conversations/{id}/                    GET, PUT, DELETE
    /api/conversations/{id}/users/              POST
    /api/conversations/{id}/users/{user_id}/    DELETE
    /api/messages/                              POST
    /api/messages/upload/                       POST (multipart)
    /api/messages/{conversation_id}/            GET  (marks read)
    /api/messages/{message_id}/                 DELETE

Design Decisions:
    - ViewSets are plain ViewSets with explicit method mappings in urls.py;
      there is no queryset-driven CRUD
    - Access control lives in the services; views only parse input and
      map ServiceResult failures through core.views.error_response
    - GET and DELETE on /api/messages/{id}/ share one route: the id is a
      conversation id for GET and a message id for DELETE
"""

from __future__ import annotations

from drf_spectacular.types import OpenApiTypes
from drf_spectacular.utils import OpenApiResponse, extend_schema, extend_schema_view
from rest_framework import status, viewsets
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from chat.serializers import (
    ConversationCreateSerializer,
    ConversationSerializer,
    ConversationUpdateSerializer,
    ImageUploadSerializer,
    MessageCreateSerializer,
    MessageSerializer,
    ParticipantAddSerializer,
)
from chat.services import ConversationService, MessageService
from core.views import error_response
from toolkit.services.storage import get_blob_store


@extend_schema_view(
    list=extend_schema(
        operation_id="list_conversations",
        summary="List conversations",
        tags=["Chat - Conversations"],
        responses={200: ConversationSerializer(many=True)},
    ),
    create=extend_schema(
        operation_id="create_conversation",
        summary="Create conversation",
        description="Creates a group, or finds/creates the direct conversation "
        "with one other user (200 when it already existed).",
        tags=["Chat - Conversations"],
        request=ConversationCreateSerializer,
        responses={201: ConversationSerializer, 200: ConversationSerializer},
    ),
    retrieve=extend_schema(
        operation_id="get_conversation",
        summary="Get conversation",
        tags=["Chat - Conversations"],
        responses={200: ConversationSerializer},
    ),
    update=extend_schema(
        operation_id="update_conversation",
        summary="Rename or re-image a group",
        tags=["Chat - Conversations"],
        request=ConversationUpdateSerializer,
        responses={200: ConversationSerializer},
    ),
    destroy=extend_schema(
        operation_id="delete_conversation",
        summary="Delete conversation",
        tags=["Chat - Conversations"],
        responses={200: OpenApiTypes.OBJECT},
    ),
)
class ConversationViewSet(viewsets.ViewSet):
    """
    ViewSet for conversation operations.

    list:
        Every conversation of the current user, most recently active first.

    create:
        Direct: returns the existing conversation if the pair already has
        one. Group: creates it with the requester as admin.

    update:
        Group admin only.

    destroy:
        Group admin, or either participant of a direct conversation.

    add_participant / remove_participant:
        Group membership. Any participant may remove themself.
    """

    permission_classes = [IsAuthenticated]

    def list(self, request):
        result = ConversationService.list_for_user(request.user)
        return Response(ConversationSerializer(result.data, many=True).data)

    def retrieve(self, request, pk=None):
        result = ConversationService.get_for_user(int(pk), request.user)
        if not result.success:
            return error_response(result)
        return Response(ConversationSerializer(result.data).data)

    def create(self, request):
        """Create a conversation (direct or group)."""
        serializer = ConversationCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        result = ConversationService.create(
            request.user,
            is_group=data["is_group"],
            participant_ids=data["participant_ids"],
            name=data["name"],
        )
        if not result.success:
            return error_response(result)

        return Response(
            ConversationSerializer(result.data.conversation).data,
            status=status.HTTP_201_CREATED if result.data.created else status.HTTP_200_OK,
        )

    def update(self, request, pk=None):
        serializer = ConversationUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = ConversationService.update(
            int(pk), request.user, **serializer.validated_data
        )
        if not result.success:
            return error_response(result)
        return Response(ConversationSerializer(result.data).data)

    def destroy(self, request, pk=None):
        result = ConversationService.delete(int(pk), request.user)
        if not result.success:
            return error_response(result)
        return Response({"message": "Conversation deleted"})

    @extend_schema(
        operation_id="add_conversation_participant",
        summary="Add participant",
        tags=["Chat - Participants"],
        request=ParticipantAddSerializer,
        responses={200: ConversationSerializer},
    )
    def add_participant(self, request, pk=None):
        serializer = ParticipantAddSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = ConversationService.add_participant(
            int(pk), request.user, serializer.validated_data["user_id"]
        )
        if not result.success:
            return error_response(result)
        return Response(ConversationSerializer(result.data).data)

    @extend_schema(
        operation_id="remove_conversation_participant",
        summary="Remove participant",
        description="Removing the last participant deletes the group.",
        tags=["Chat - Participants"],
        responses={200: ConversationSerializer},
    )
    def remove_participant(self, request, pk=None, user_id=None):
        result = ConversationService.remove_participant(int(pk), request.user, int(user_id))
        if not result.success:
            return error_response(result)

        if result.data.conversation_deleted:
            return Response({"message": "Group deleted as no participants remain"})
        return Response(ConversationSerializer(result.data.conversation).data)


@extend_schema_view(
    create=extend_schema(
        operation_id="send_message",
        summary="Send message",
        tags=["Chat - Messages"],
        request=MessageCreateSerializer,
        responses={201: MessageSerializer},
    ),
    list_for_conversation=extend_schema(
        operation_id="list_messages",
        summary="List messages",
        description="Messages oldest first. Marks other users' messages as read.",
        tags=["Chat - Messages"],
        responses={200: MessageSerializer(many=True)},
    ),
    destroy=extend_schema(
        operation_id="delete_message",
        summary="Delete message",
        tags=["Chat - Messages"],
        responses={200: OpenApiTypes.OBJECT},
    ),
)
class MessageViewSet(viewsets.ViewSet):
    """
    ViewSet for message operations.

    create:
        Send a text and/or image message (image is a URL from upload).

    list_for_conversation:
        Messages of one conversation; viewing them marks them read.

    destroy:
        Sender only.

    upload:
        Store an image and return its URL for a following send.
    """

    permission_classes = [IsAuthenticated]

    def create(self, request):
        serializer = MessageCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        result = MessageService.send(
            request.user,
            data["conversation_id"],
            content=data["content"],
            image=data["image"],
        )
        if not result.success:
            return error_response(result)

        return Response(MessageSerializer(result.data).data, status=status.HTTP_201_CREATED)

    def list_for_conversation(self, request, pk=None):
        result = MessageService.list_for_conversation(request.user, int(pk))
        if not result.success:
            return error_response(result)
        return Response(MessageSerializer(result.data, many=True).data)

    def destroy(self, request, pk=None):
        result = MessageService.delete(int(pk), request.user)
        if not result.success:
            return error_response(result)
        return Response({"message": "Message deleted"})

    @extend_schema(
        operation_id="upload_message_image",
        summary="Upload message image",
        tags=["Chat - Messages"],
        request={"multipart/form-data": ImageUploadSerializer},
        responses={
            200: OpenApiTypes.OBJECT,
            502: OpenApiResponse(description="Blob store unavailable"),
        },
    )
    def upload(self, request):
        serializer = ImageUploadSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = MessageService.upload_image(
            serializer.validated_data["image"], get_blob_store()
        )
        if not result.success:
            return error_response(result)
        return Response({"image_url": result.data})

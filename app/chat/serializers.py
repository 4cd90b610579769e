"""
Serializers for chat API.

Response shapes:
- MessageSerializer: Full message (also the newMessage event payload)
- MessagePreviewSerializer: latest_message preview inside conversations
- ConversationSerializer: Conversation with participants and preview

Request shapes:
- ConversationCreateSerializer, ConversationUpdateSerializer
- ParticipantAddSerializer
- MessageCreateSerializer, ImageUploadSerializer

Note:
    ConversationSerializer expects participants, admin and
    latest_message to be loaded by the service queryset
    (ConversationService.detail_queryset); it never queries per row.
"""

from __future__ import annotations

from django.conf import settings
from rest_framework import serializers

from authentication.serializers import UserSummarySerializer
from chat.constants import MESSAGE_CONFIG
from chat.models import Conversation, Message
from core.validators import validate_file_size, validate_image_extension


# =============================================================================
# Message Serializers
# =============================================================================


class MessageSerializer(serializers.ModelSerializer):
    """Message with sender summary and read receipts."""

    conversation_id = serializers.IntegerField(read_only=True)
    sender = UserSummarySerializer(read_only=True)
    read_by = serializers.SerializerMethodField()

    class Meta:
        model = Message
        fields = [
            "id",
            "conversation_id",
            "sender",
            "content",
            "image",
            "read_by",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields

    def get_read_by(self, obj: Message) -> list[int]:
        return sorted(user.id for user in obj.read_by.all())


class MessagePreviewSerializer(serializers.ModelSerializer):
    """Latest-message preview shown in conversation lists."""

    sender = UserSummarySerializer(read_only=True)
    read_by = serializers.SerializerMethodField()

    class Meta:
        model = Message
        fields = ["id", "sender", "content", "image", "read_by", "created_at"]
        read_only_fields = fields

    def get_read_by(self, obj: Message) -> list[int]:
        return sorted(user.id for user in obj.read_by.all())


def serialize_message(message: Message) -> dict:
    """Serialize a message for API responses and realtime events."""
    return MessageSerializer(message).data


class MessageCreateSerializer(serializers.Serializer):
    """Input for sending a message."""

    conversation_id = serializers.IntegerField(min_value=1)
    content = serializers.CharField(required=False, allow_blank=True, default="")
    image = serializers.CharField(
        required=False, allow_blank=True, default="", max_length=500
    )


class ImageUploadSerializer(serializers.Serializer):
    """Input for uploading a message image."""

    image = serializers.ImageField(
        validators=[
            validate_file_size(max_mb=settings.CHAT_MAX_UPLOAD_MB),
            validate_image_extension,
        ]
    )


# =============================================================================
# Conversation Serializers
# =============================================================================


class ConversationSerializer(serializers.ModelSerializer):
    """Conversation with participants (join order), admin and preview."""

    admin = UserSummarySerializer(read_only=True, allow_null=True)
    participants = serializers.SerializerMethodField()
    latest_message = MessagePreviewSerializer(read_only=True, allow_null=True)

    class Meta:
        model = Conversation
        fields = [
            "id",
            "is_group",
            "name",
            "group_image",
            "admin",
            "participants",
            "latest_message",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields

    def get_participants(self, obj: Conversation) -> list[dict]:
        users = [participant.user for participant in obj.participants.all()]
        return UserSummarySerializer(users, many=True).data


class ConversationCreateSerializer(serializers.Serializer):
    """Input for creating a conversation (or finding an existing direct one)."""

    is_group = serializers.BooleanField(required=False, default=False)
    name = serializers.CharField(
        required=False,
        allow_blank=True,
        default="",
        max_length=MESSAGE_CONFIG.GROUP_NAME_MAX_LENGTH,
    )
    participant_ids = serializers.ListField(
        child=serializers.IntegerField(min_value=1),
        required=False,
        default=list,
    )


class ConversationUpdateSerializer(serializers.Serializer):
    """Input for renaming or re-imaging a group."""

    name = serializers.CharField(
        required=False,
        allow_blank=True,
        max_length=MESSAGE_CONFIG.GROUP_NAME_MAX_LENGTH,
    )
    group_image = serializers.CharField(required=False, allow_blank=True, max_length=500)

    def validate(self, attrs):
        if not attrs:
            raise serializers.ValidationError("Provide a name or group_image to update")
        return attrs


class ParticipantAddSerializer(serializers.Serializer):
    """Input for adding a participant to a group."""

    user_id = serializers.IntegerField(min_value=1)

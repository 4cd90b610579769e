"""
Django admin configuration for chat models.

Provides admin interfaces for:
- Conversation management (participants inline)
- Message moderation
"""

from django.contrib import admin

from chat.models import Conversation, Message, Participant


class ParticipantInline(admin.TabularInline):
    """Inline display of participants in conversation admin."""

    model = Participant
    extra = 0
    readonly_fields = ["joined_at"]
    raw_id_fields = ["user"]
    ordering = ["joined_at", "id"]


@admin.register(Conversation)
class ConversationAdmin(admin.ModelAdmin):
    """Admin interface for Conversation model."""

    list_display = [
        "id",
        "is_group",
        "name",
        "admin",
        "participant_count",
        "created_at",
        "updated_at",
    ]
    list_filter = ["is_group", "created_at"]
    search_fields = ["name", "id"]
    readonly_fields = ["created_at", "updated_at", "latest_message"]
    raw_id_fields = ["admin"]
    inlines = [ParticipantInline]
    ordering = ["-updated_at"]

    @admin.display(description="Participants")
    def participant_count(self, obj: Conversation) -> int:
        return obj.participants.count()


@admin.register(Message)
class MessageAdmin(admin.ModelAdmin):
    """Admin interface for Message model."""

    list_display = [
        "id",
        "conversation",
        "sender",
        "content_preview",
        "has_image",
        "created_at",
    ]
    list_filter = ["created_at"]
    search_fields = ["content", "sender__email", "sender__username"]
    readonly_fields = ["created_at", "updated_at"]
    raw_id_fields = ["conversation", "sender"]
    filter_horizontal = ["read_by"]
    ordering = ["-created_at"]

    @admin.display(description="Content Preview")
    def content_preview(self, obj: Message) -> str:
        """Return truncated content for list display."""
        max_length = 50
        if len(obj.content) > max_length:
            return obj.content[:max_length] + "..."
        return obj.content

    @admin.display(description="Image", boolean=True)
    def has_image(self, obj: Message) -> bool:
        return bool(obj.image)

"""
Chat system models.

This module defines the persisted chat state:
- Direct conversations between exactly two users
- Group conversations with a single admin

Models:
    Conversation: Container for messages between participants
    DirectConversationPair: Enforces one direct conversation per user pair
    Participant: Membership row, ordered by join time
    Message: Text and/or image message with read receipts

Design Decisions:
    - Conversation.latest_message is a non-owning pointer (SET_NULL). The
      message service recomputes it explicitly when the latest message
      is deleted; nothing relies on cascades for that.
    - Membership order matters: when a group admin leaves, the earliest
      remaining participant is promoted.
    - Conversation.updated_at is the "last activity" timestamp used to
      order conversation lists.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from django.conf import settings
from django.db import models
from django.db.models import F, Q

from core.models import BaseModel

if TYPE_CHECKING:
    from authentication.models import User


class Conversation(BaseModel):
    """
    A direct or group conversation.

    Conversation Types:
        direct (is_group=False): Exactly 2 participants, no name, no admin.
                Unique per user pair (enforced via DirectConversationPair).

        group (is_group=True): Named, with an admin who is a participant.
               Deleted when its last participant leaves.

    Fields:
        is_group: Whether this is a group conversation
        name: Group name (empty for direct)
        group_image: Group image URL
        admin: Group admin (null for direct conversations)
        latest_message: Most recent message, for list previews
        users: Participants, through Participant
    """

    is_group = models.BooleanField(
        default=False,
        db_index=True,
        help_text="Whether this is a group conversation",
    )

    name = models.CharField(
        max_length=100,
        blank=True,
        default="",
        help_text="Group name (empty for direct conversations)",
    )

    group_image = models.CharField(
        max_length=500,
        blank=True,
        default="",
        help_text="Group image URL",
    )

    admin = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="administered_conversations",
        help_text="Group admin (null for direct conversations)",
    )

    latest_message = models.ForeignKey(
        "chat.Message",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="+",
        help_text="Most recent message (recomputed on delete)",
    )

    users = models.ManyToManyField(
        settings.AUTH_USER_MODEL,
        through="chat.Participant",
        related_name="conversations",
    )

    class Meta:
        db_table = "chat_conversation"
        ordering = ["-updated_at", "-id"]
        indexes = [
            models.Index(fields=["-updated_at"], name="chat_conv_updated_idx"),
        ]

    def __str__(self) -> str:
        if not self.is_group:
            return f"Direct({self.pk})"
        return f"Group: {self.name}" if self.name else f"Group({self.pk})"

    def has_participant(self, user: User) -> bool:
        """Check whether the user is a current participant."""
        return self.participants.filter(user=user).exists()

    def ordered_participants(self):
        """Participants in join order."""
        return self.participants.select_related("user").order_by("joined_at", "id")


class DirectConversationPair(models.Model):
    """
    Enforces uniqueness of direct conversations between two users.

    Stores the pair in canonical order (lower user id first) so that
    "A with B" and "B with A" map to the same row.

    Constraints:
        - UniqueConstraint(user_lower, user_higher): One conversation per pair
        - CheckConstraint(user_lower_id < user_higher_id): Canonical order
    """

    conversation = models.OneToOneField(
        Conversation,
        on_delete=models.CASCADE,
        primary_key=True,
        related_name="direct_pair",
    )

    user_lower = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="+",
    )

    user_higher = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="+",
    )

    class Meta:
        db_table = "chat_direct_conversation_pair"
        constraints = [
            models.UniqueConstraint(
                fields=["user_lower", "user_higher"],
                name="unique_direct_conversation_pair",
            ),
            models.CheckConstraint(
                condition=Q(user_lower_id__lt=F("user_higher_id")),
                name="user_lower_less_than_higher",
            ),
        ]

    def __str__(self) -> str:
        return f"DirectPair({self.user_lower_id}, {self.user_higher_id})"

    @staticmethod
    def canonical(user_a_id: int, user_b_id: int) -> tuple[int, int]:
        """Return the pair as (lower, higher)."""
        return (user_a_id, user_b_id) if user_a_id < user_b_id else (user_b_id, user_a_id)


class Participant(models.Model):
    """
    Membership of a user in a conversation.

    Removing a participant deletes the row; order of the remaining rows
    (joined_at, id) decides who inherits a group's admin role.
    """

    conversation = models.ForeignKey(
        Conversation,
        on_delete=models.CASCADE,
        related_name="participants",
    )

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="conversation_participations",
    )

    joined_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = "chat_participant"
        ordering = ["joined_at", "id"]
        constraints = [
            models.UniqueConstraint(
                fields=["conversation", "user"],
                name="unique_participation",
            ),
        ]

    def __str__(self) -> str:
        return f"Participant: {self.user_id} in {self.conversation_id}"


class Message(BaseModel):
    """
    A message in a conversation.

    Content Rules:
        At least one of content/image must be non-empty (DB-enforced).

    Read Receipts:
        read_by holds every user who has seen the message; the sender is
        added at creation and readers are added when they list messages.
    """

    conversation = models.ForeignKey(
        Conversation,
        on_delete=models.CASCADE,
        related_name="messages",
    )

    sender = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="sent_messages",
    )

    content = models.TextField(blank=True, default="")

    image = models.CharField(
        max_length=500,
        blank=True,
        default="",
        help_text="Image URL from the blob store",
    )

    read_by = models.ManyToManyField(
        settings.AUTH_USER_MODEL,
        related_name="read_messages",
        blank=True,
    )

    class Meta:
        db_table = "chat_message"
        ordering = ["created_at", "id"]
        indexes = [
            models.Index(
                fields=["conversation", "created_at", "id"],
                name="chat_msg_conv_order_idx",
            ),
        ]
        constraints = [
            models.CheckConstraint(
                condition=~Q(content="") | ~Q(image=""),
                name="message_has_content_or_image",
            ),
        ]

    def __str__(self) -> str:
        preview = self.content[:30] if self.content else "[image]"
        return f"Message({self.pk}) from {self.sender_id}: {preview}"

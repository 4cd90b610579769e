"""
Chat services: business logic for conversations and messages.

This module provides:
- ConversationService: Create/find-direct, update, delete, membership
- MessageService: Send, list (marks read), delete, image upload

Every public method returns a ServiceResult. Expected failures carry an
ErrorCode (VALIDATION_ERROR, PERMISSION_DENIED, NOT_FOUND, CONFLICT,
INVALID_OPERATION) which views map to HTTP statuses.

Access Control:
    Every read and write is gated on participation. A non-participant
    gets PERMISSION_DENIED, never an empty success.

Realtime:
    After a successful write the services broadcast through chat.realtime
    (queued on transaction commit):
    - newMessage / messageDeleted / messageRead to the conversation room
    - conversationUpdated to each affected user's personal channel

Concurrency:
    There is no cross-request locking. Conversation.latest_message is
    last-write-wins between concurrent sends; message order always comes
    from (created_at, id).

Usage:
    from chat.services import ConversationService, MessageService

    result = ConversationService.create(alice, is_group=False, participant_ids=[bob.id])
    conversation = result.data.conversation

    MessageService.send(alice, conversation.id, content="hi")
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from django.contrib.auth import get_user_model
from django.db import IntegrityError
from django.db.models import Prefetch
from django.utils import timezone

from chat import realtime
from chat.constants import MESSAGE_CONFIG, REALTIME_EVENTS
from chat.models import Conversation, DirectConversationPair, Message, Participant
from chat.serializers import serialize_message
from core.exceptions import (
    BaseApplicationError,
    ConflictError,
    ExternalServiceError,
    InvalidOperationError,
    NotFoundError,
    PermissionDeniedError,
)
from core.services import BaseService, ErrorCode, ServiceResult

if TYPE_CHECKING:
    from django.core.files.base import File

    from authentication.models import User
    from toolkit.protocols import BlobStore


@dataclass
class ConversationCreation:
    """Result of ConversationService.create."""

    conversation: Conversation
    created: bool


@dataclass
class ParticipantRemoval:
    """Result of ConversationService.remove_participant."""

    conversation: Conversation | None
    conversation_deleted: bool


class ConversationService(BaseService):
    """
    Conversation lifecycle and membership rules.

    Rules:
        - Direct: exactly two participants, no admin, one per user pair
        - Group: named, admin is a participant; only the admin renames,
          deletes, adds or removes others
        - Removing the admin promotes the earliest remaining participant
        - Removing the last participant deletes the group and its messages
    """

    # =========================================================================
    # Queries
    # =========================================================================

    @staticmethod
    def detail_queryset():
        """Conversations with participants, admin and preview preloaded."""
        return Conversation.objects.select_related(
            "admin", "latest_message__sender"
        ).prefetch_related(
            Prefetch(
                "participants",
                queryset=Participant.objects.select_related("user").order_by(
                    "joined_at", "id"
                ),
            ),
            "latest_message__read_by",
        )

    @classmethod
    def get_for_participant(cls, conversation_id: int, user: User) -> Conversation:
        """
        Load a conversation the user participates in.

        Raises:
            NotFoundError: Conversation does not exist
            PermissionDeniedError: User is not a participant
        """
        conversation = Conversation.objects.filter(pk=conversation_id).first()
        if conversation is None:
            raise NotFoundError("Conversation not found")
        if not conversation.has_participant(user):
            raise PermissionDeniedError("You are not a participant in this conversation")
        return conversation

    @classmethod
    def _reload(cls, conversation: Conversation) -> Conversation:
        return cls.detail_queryset().get(pk=conversation.pk)

    @staticmethod
    def _participant_ids(conversation: Conversation) -> list[int]:
        return list(
            conversation.participants.order_by("joined_at", "id").values_list(
                "user_id", flat=True
            )
        )

    @staticmethod
    def _require_group(conversation: Conversation, message: str) -> None:
        if not conversation.is_group:
            raise InvalidOperationError(message)

    @staticmethod
    def _require_admin(conversation: Conversation, user: User, message: str) -> None:
        if conversation.admin_id != user.id:
            raise PermissionDeniedError(message)

    @classmethod
    def list_for_user(cls, user: User) -> ServiceResult[list[Conversation]]:
        """All conversations of the user, most recently active first."""
        conversations = (
            cls.detail_queryset()
            .filter(participants__user=user)
            .order_by("-updated_at", "-id")
        )
        return ServiceResult.success(list(conversations))

    @classmethod
    def get_for_user(cls, conversation_id: int, user: User) -> ServiceResult[Conversation]:
        """One conversation, participant-gated."""
        try:
            conversation = cls.get_for_participant(conversation_id, user)
        except BaseApplicationError as exc:
            return cls.handle_exception(exc, "get conversation")
        return ServiceResult.success(cls._reload(conversation))

    # =========================================================================
    # Create / Update / Delete
    # =========================================================================

    @classmethod
    def create(
        cls,
        requester: User,
        is_group: bool,
        participant_ids: list[int],
        name: str = "",
    ) -> ServiceResult[ConversationCreation]:
        """
        Create a conversation, or return the existing direct one.

        The requester is always a participant. For direct conversations the
        lookup is by unordered user pair, so (A, B) and (B, A) resolve to
        the same conversation.

        Error codes:
            VALIDATION_ERROR: No participants, wrong direct count, no group name
            NOT_FOUND: A participant id does not exist
        """
        if not participant_ids:
            return ServiceResult.failure(
                "participant_ids must not be empty",
                error_code=ErrorCode.VALIDATION_ERROR,
            )

        # Requester first, then others in the given order, without duplicates
        ordered_ids = list(dict.fromkeys([requester.id, *participant_ids]))

        users = get_user_model().objects.in_bulk(ordered_ids)
        missing = [user_id for user_id in ordered_ids if user_id not in users]
        if missing:
            return ServiceResult.failure(
                f"User {missing[0]} not found", error_code=ErrorCode.NOT_FOUND
            )

        if not is_group:
            if len(ordered_ids) != 2:
                return ServiceResult.failure(
                    "A direct conversation needs exactly one other participant",
                    error_code=ErrorCode.VALIDATION_ERROR,
                )
            return cls._find_or_create_direct(*ordered_ids)

        name = (name or "").strip()
        if not name:
            return ServiceResult.failure(
                "Group name is required", error_code=ErrorCode.VALIDATION_ERROR
            )

        with cls.atomic():
            conversation = Conversation.objects.create(
                is_group=True,
                name=name,
                admin=requester,
            )
            for user_id in ordered_ids:
                Participant.objects.create(conversation=conversation, user_id=user_id)

        cls.get_logger().info(
            f"Created group conversation {conversation.id} '{name}' "
            f"with {len(ordered_ids)} participants"
        )
        realtime.notify_conversation_updated(conversation.id, ordered_ids)
        return ServiceResult.success(
            ConversationCreation(conversation=cls._reload(conversation), created=True)
        )

    @classmethod
    def _find_or_create_direct(
        cls, user_a_id: int, user_b_id: int
    ) -> ServiceResult[ConversationCreation]:
        user_lower_id, user_higher_id = DirectConversationPair.canonical(
            user_a_id, user_b_id
        )

        existing = DirectConversationPair.objects.filter(
            user_lower_id=user_lower_id, user_higher_id=user_higher_id
        ).first()
        if existing is not None:
            cls.get_logger().debug(
                f"Found existing direct conversation {existing.conversation_id} "
                f"between users {user_lower_id} and {user_higher_id}"
            )
            return ServiceResult.success(
                ConversationCreation(
                    conversation=cls.detail_queryset().get(pk=existing.conversation_id),
                    created=False,
                )
            )

        try:
            with cls.atomic():
                conversation = Conversation.objects.create(is_group=False)
                DirectConversationPair.objects.create(
                    conversation=conversation,
                    user_lower_id=user_lower_id,
                    user_higher_id=user_higher_id,
                )
                # Requester joins first
                Participant.objects.create(conversation=conversation, user_id=user_a_id)
                Participant.objects.create(conversation=conversation, user_id=user_b_id)
        except IntegrityError:
            # A concurrent request created the pair first
            existing = DirectConversationPair.objects.get(
                user_lower_id=user_lower_id, user_higher_id=user_higher_id
            )
            return ServiceResult.success(
                ConversationCreation(
                    conversation=cls.detail_queryset().get(pk=existing.conversation_id),
                    created=False,
                )
            )

        cls.get_logger().info(
            f"Created direct conversation {conversation.id} "
            f"between users {user_lower_id} and {user_higher_id}"
        )
        realtime.notify_conversation_updated(conversation.id, [user_a_id, user_b_id])
        return ServiceResult.success(
            ConversationCreation(conversation=cls._reload(conversation), created=True)
        )

    @classmethod
    def update(
        cls,
        conversation_id: int,
        requester: User,
        name: str | None = None,
        group_image: str | None = None,
    ) -> ServiceResult[Conversation]:
        """
        Rename and/or re-image a group.

        Error codes:
            NOT_FOUND, PERMISSION_DENIED (non-participant or non-admin),
            INVALID_OPERATION (direct conversation), VALIDATION_ERROR (blank name)
        """
        try:
            conversation = cls.get_for_participant(conversation_id, requester)
            cls._require_group(conversation, "Only group conversations can be updated")
            cls._require_admin(
                conversation, requester, "Only the group admin can update the group"
            )
        except BaseApplicationError as exc:
            return cls.handle_exception(exc, "update conversation")

        update_fields = ["updated_at"]
        if name is not None:
            name = name.strip()
            if not name:
                return ServiceResult.failure(
                    "Group name cannot be empty", error_code=ErrorCode.VALIDATION_ERROR
                )
            conversation.name = name
            update_fields.append("name")
        if group_image is not None:
            conversation.group_image = group_image.strip()
            update_fields.append("group_image")

        conversation.save(update_fields=update_fields)

        cls.get_logger().info(f"Updated conversation {conversation.id}")
        realtime.notify_conversation_updated(
            conversation.id, cls._participant_ids(conversation)
        )
        return ServiceResult.success(cls._reload(conversation))

    @classmethod
    def delete(cls, conversation_id: int, requester: User) -> ServiceResult[int]:
        """
        Delete a conversation and all its messages.

        Groups can only be deleted by their admin; either participant may
        delete a direct conversation.
        """
        try:
            conversation = cls.get_for_participant(conversation_id, requester)
            if conversation.is_group:
                cls._require_admin(
                    conversation, requester, "Only the group admin can delete the group"
                )
        except BaseApplicationError as exc:
            return cls.handle_exception(exc, "delete conversation")

        participant_ids = cls._participant_ids(conversation)
        cls._destroy(conversation)

        cls.get_logger().info(
            f"Conversation {conversation_id} deleted by user {requester.id}"
        )
        realtime.notify_conversation_updated(conversation_id, participant_ids, deleted=True)
        return ServiceResult.success(conversation_id)

    @classmethod
    def _destroy(cls, conversation: Conversation) -> None:
        """Delete messages first, then the conversation (pair/participants cascade)."""
        with cls.atomic():
            Conversation.objects.filter(pk=conversation.pk).update(latest_message=None)
            Message.objects.filter(conversation=conversation).delete()
            conversation.delete()

    # =========================================================================
    # Membership
    # =========================================================================

    @classmethod
    def add_participant(
        cls, conversation_id: int, requester: User, user_id: int
    ) -> ServiceResult[Conversation]:
        """
        Add a user to a group (admin only).

        Error codes:
            NOT_FOUND (conversation or user), PERMISSION_DENIED,
            INVALID_OPERATION (direct), CONFLICT (already a participant)
        """
        try:
            conversation = cls.get_for_participant(conversation_id, requester)
            cls._require_group(conversation, "Cannot add participants to a direct conversation")
            cls._require_admin(
                conversation, requester, "Only the group admin can add participants"
            )
            user = get_user_model().objects.filter(pk=user_id).first()
            if user is None:
                raise NotFoundError("User not found")
            if conversation.has_participant(user):
                raise ConflictError("User already in group")
        except BaseApplicationError as exc:
            return cls.handle_exception(exc, "add participant")

        with cls.atomic():
            Participant.objects.create(conversation=conversation, user=user)
            conversation.save(update_fields=["updated_at"])

        cls.get_logger().info(f"User {user.id} added to conversation {conversation.id}")
        realtime.notify_conversation_updated(
            conversation.id, cls._participant_ids(conversation)
        )
        return ServiceResult.success(cls._reload(conversation))

    @classmethod
    def remove_participant(
        cls, conversation_id: int, requester: User, user_id: int
    ) -> ServiceResult[ParticipantRemoval]:
        """
        Remove a user from a group.

        The admin may remove anyone else; any participant may remove
        themself. The admin can only leave on their own, after which the
        earliest remaining participant becomes admin. When nobody is left
        the group is deleted together with its messages.

        Error codes:
            NOT_FOUND, PERMISSION_DENIED, INVALID_OPERATION (direct
            conversation, target not a participant, admin removed by others)
        """
        try:
            conversation = cls.get_for_participant(conversation_id, requester)
            cls._require_group(
                conversation, "Cannot remove participants from a direct conversation"
            )
            if requester.id != user_id:
                cls._require_admin(
                    conversation,
                    requester,
                    "Only the group admin can remove other participants",
                )
            participation = conversation.participants.filter(user_id=user_id).first()
            if participation is None:
                raise InvalidOperationError("User is not a participant in this group")
            if user_id == conversation.admin_id and requester.id != user_id:
                raise InvalidOperationError("The group admin cannot be removed by others")
        except BaseApplicationError as exc:
            return cls.handle_exception(exc, "remove participant")

        with cls.atomic():
            participation.delete()
            next_participant = conversation.participants.order_by("joined_at", "id").first()

            if next_participant is None:
                cls._destroy(conversation)
            elif conversation.admin_id == user_id:
                conversation.admin_id = next_participant.user_id
                conversation.save(update_fields=["admin", "updated_at"])
                cls.get_logger().info(
                    f"Admin of conversation {conversation.id} reassigned "
                    f"from {user_id} to {next_participant.user_id}"
                )
            else:
                conversation.save(update_fields=["updated_at"])

        # The removed user loses the conversation either way
        realtime.notify_conversation_updated(conversation_id, [user_id], deleted=True)

        if next_participant is None:
            cls.get_logger().info(
                f"Conversation {conversation_id} deleted: no participants remain"
            )
            return ServiceResult.success(
                ParticipantRemoval(conversation=None, conversation_deleted=True)
            )

        cls.get_logger().info(f"User {user_id} removed from conversation {conversation_id}")
        realtime.notify_conversation_updated(
            conversation_id, cls._participant_ids(conversation)
        )
        return ServiceResult.success(
            ParticipantRemoval(conversation=cls._reload(conversation), conversation_deleted=False)
        )


class MessageService(BaseService):
    """
    Message sending, listing and deletion.

    Read Receipts:
        Listing a conversation's messages marks them read by the lister
        ("viewing = reading"); there is no separate acknowledge call.
    """

    @staticmethod
    def _message_queryset():
        return Message.objects.select_related("sender").prefetch_related("read_by")

    @classmethod
    def send(
        cls,
        sender: User,
        conversation_id: int,
        content: str = "",
        image: str = "",
    ) -> ServiceResult[Message]:
        """
        Persist a message and push it to the conversation room.

        Error codes:
            VALIDATION_ERROR: Neither content nor image, or content too long
            NOT_FOUND: Conversation does not exist
            PERMISSION_DENIED: Sender is not a participant
        """
        content = (content or "").strip()
        image = (image or "").strip()

        if len(content) > MESSAGE_CONFIG.MAX_CONTENT_LENGTH:
            return ServiceResult.failure(
                f"Message content cannot exceed {MESSAGE_CONFIG.MAX_CONTENT_LENGTH} characters",
                error_code=ErrorCode.VALIDATION_ERROR,
            )
        if not content and not image:
            return ServiceResult.failure(
                "Message must have content or an image",
                error_code=ErrorCode.VALIDATION_ERROR,
            )

        try:
            conversation = ConversationService.get_for_participant(conversation_id, sender)
        except BaseApplicationError as exc:
            return cls.handle_exception(exc, "send message")

        with cls.atomic():
            message = Message.objects.create(
                conversation=conversation,
                sender=sender,
                content=content,
                image=image,
            )
            message.read_by.add(sender)
            # Last write wins between concurrent sends
            Conversation.objects.filter(pk=conversation.pk).update(
                latest_message=message, updated_at=timezone.now()
            )

        message = cls._message_queryset().get(pk=message.pk)
        cls.get_logger().debug(
            f"Message {message.id} sent to conversation {conversation.id} by {sender.id}"
        )

        realtime.broadcast_to_conversation(
            conversation.id, REALTIME_EVENTS.NEW_MESSAGE, serialize_message(message)
        )
        realtime.notify_conversation_updated(
            conversation.id, ConversationService._participant_ids(conversation)
        )
        return ServiceResult.success(message)

    @classmethod
    def list_for_conversation(
        cls, requester: User, conversation_id: int
    ) -> ServiceResult[list[Message]]:
        """
        Return messages oldest first, marking others' messages read.

        Messages not sent by the requester and not yet in their read_by are
        marked read before fetching, so the returned read_by already
        includes the requester. messageRead is broadcast only if something
        was newly marked; listing again is a no-op.
        """
        try:
            conversation = ConversationService.get_for_participant(conversation_id, requester)
        except BaseApplicationError as exc:
            return cls.handle_exception(exc, "list messages")

        unread_ids = list(
            Message.objects.filter(conversation=conversation)
            .exclude(sender=requester)
            .exclude(read_by=requester)
            .values_list("id", flat=True)
        )

        if unread_ids:
            ReadReceipt = Message.read_by.through
            ReadReceipt.objects.bulk_create(
                [ReadReceipt(message_id=message_id, user_id=requester.id) for message_id in unread_ids],
                ignore_conflicts=True,
            )

        messages = list(
            cls._message_queryset()
            .filter(conversation=conversation)
            .order_by("created_at", "id")
        )

        if unread_ids:
            cls.get_logger().debug(
                f"User {requester.id} read {len(unread_ids)} messages "
                f"in conversation {conversation.id}"
            )
            realtime.broadcast_to_conversation(
                conversation.id,
                REALTIME_EVENTS.MESSAGE_READ,
                {"conversationId": conversation.id, "userId": requester.id},
            )

        return ServiceResult.success(messages)

    @classmethod
    def delete(cls, message_id: int, requester: User) -> ServiceResult[dict]:
        """
        Delete a message (sender only).

        If it was the conversation's latest message, the pointer moves to
        the newest remaining message, or None.

        Error codes:
            NOT_FOUND: Message does not exist
            PERMISSION_DENIED: Requester is not the sender
        """
        message = Message.objects.filter(pk=message_id).first()
        if message is None:
            return ServiceResult.failure("Message not found", error_code=ErrorCode.NOT_FOUND)
        if message.sender_id != requester.id:
            return ServiceResult.failure(
                "You can only delete your own messages",
                error_code=ErrorCode.PERMISSION_DENIED,
            )

        conversation_id = message.conversation_id
        with cls.atomic():
            conversation = Conversation.objects.select_for_update().get(pk=conversation_id)
            was_latest = conversation.latest_message_id == message.id
            message.delete()

            if was_latest:
                conversation.latest_message = (
                    Message.objects.filter(conversation_id=conversation_id)
                    .order_by("-created_at", "-id")
                    .first()
                )
                conversation.save(update_fields=["latest_message", "updated_at"])

        cls.get_logger().debug(f"Message {message_id} deleted by user {requester.id}")
        realtime.broadcast_to_conversation(
            conversation_id,
            REALTIME_EVENTS.MESSAGE_DELETED,
            {"messageId": message_id, "conversationId": conversation_id},
        )
        realtime.notify_conversation_updated(
            conversation_id, ConversationService._participant_ids(conversation)
        )
        return ServiceResult.success(
            {"message_id": message_id, "conversation_id": conversation_id}
        )

    @classmethod
    def upload_image(cls, file: File, store: BlobStore) -> ServiceResult[str]:
        """Hand the image to the blob store and return its URL."""
        try:
            url = store.store(file, folder=MESSAGE_CONFIG.IMAGE_UPLOAD_FOLDER)
        except ExternalServiceError as exc:
            return cls.handle_exception(exc, "message image upload")
        return ServiceResult.success(url)

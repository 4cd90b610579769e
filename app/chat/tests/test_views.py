"""
Tests for chat API endpoints.

Covers:
    /api/conversations/                         GET, POST
    /api/conversations/{id}/                    GET, PUT, DELETE
    /api/conversations/{id}/users/              POST
    /api/conversations/{id}/users/{user_id}/    DELETE
    /api/messages/                              POST
    /api/messages/upload/                       POST
    /api/messages/{id}/                         GET (conversation id), DELETE (message id)

Service rules are covered in test_services.py; these tests check routing,
status codes and response shapes.
"""

from unittest.mock import patch

import pytest
from django.core.files.uploadedfile import SimpleUploadedFile
from django.urls import reverse

from authentication.tests.conftest import make_png
from chat.models import Conversation, Message
from chat.services import MessageService
from core.exceptions import ExternalServiceError


# =============================================================================
# TestConversationEndpoints
# =============================================================================


class TestConversationEndpoints:
    """Conversation list/create/detail/update/delete."""

    def test_requires_authentication(self, api_client, db):
        response = api_client.get("/api/conversations/")

        assert response.status_code == 401
        assert set(response.data) == {"message"}

    def test_create_direct_201_then_200(self, client_for, alice, bob, realtime_spy):
        """
        First create answers 201, asking again answers 200 with the same id.

        Why it matters: Clients use "create" as "open chat with user".
        """
        payload = {"is_group": False, "participant_ids": [bob.id]}

        first = client_for(alice).post("/api/conversations/", payload, format="json")
        second = client_for(bob).post(
            "/api/conversations/",
            {"is_group": False, "participant_ids": [alice.id]},
            format="json",
        )

        assert first.status_code == 201
        assert second.status_code == 200
        assert first.data["id"] == second.data["id"]
        assert [p["id"] for p in first.data["participants"]] == [alice.id, bob.id]
        assert first.data["admin"] is None
        assert first.data["latest_message"] is None

    def test_create_group(self, client_for, alice, bob, carol, realtime_spy):
        response = client_for(alice).post(
            reverse("chat:conversation-list"),
            {"is_group": True, "name": "Team", "participant_ids": [bob.id, carol.id]},
            format="json",
        )

        assert response.status_code == 201
        assert response.data["is_group"] is True
        assert response.data["name"] == "Team"
        assert response.data["admin"]["id"] == alice.id
        assert [p["username"] for p in response.data["participants"]] == [
            "alice",
            "bob",
            "carol",
        ]

    def test_create_with_unknown_user_is_404(self, client_for, alice):
        response = client_for(alice).post(
            "/api/conversations/", {"participant_ids": [999999]}, format="json"
        )

        assert response.status_code == 404
        assert response.data == {"message": "User 999999 not found"}

    def test_create_group_without_name_is_400(self, client_for, alice, bob):
        response = client_for(alice).post(
            "/api/conversations/",
            {"is_group": True, "participant_ids": [bob.id]},
            format="json",
        )

        assert response.status_code == 400
        assert response.data == {"message": "Group name is required"}

    def test_list_includes_preview(self, client_for, direct, alice, bob, realtime_spy):
        MessageService.send(bob, direct.id, content="hey alice")

        response = client_for(alice).get("/api/conversations/")

        assert response.status_code == 200
        assert len(response.data) == 1
        preview = response.data[0]["latest_message"]
        assert preview["content"] == "hey alice"
        assert preview["sender"]["id"] == bob.id
        assert preview["read_by"] == [bob.id]

    def test_detail_for_outsider_is_403(self, client_for, team, dave):
        response = client_for(dave).get(f"/api/conversations/{team.id}/")

        assert response.status_code == 403
        assert response.data == {
            "message": "You are not a participant in this conversation"
        }

    def test_detail_missing_is_404(self, client_for, alice):
        response = client_for(alice).get("/api/conversations/999999/")

        assert response.status_code == 404

    def test_admin_renames_group(self, client_for, team, alice, realtime_spy):
        response = client_for(alice).put(
            f"/api/conversations/{team.id}/", {"name": "Renamed"}, format="json"
        )

        assert response.status_code == 200
        assert response.data["name"] == "Renamed"

    def test_update_with_empty_body_is_400(self, client_for, team, alice):
        response = client_for(alice).put(f"/api/conversations/{team.id}/", {}, format="json")

        assert response.status_code == 400
        assert set(response.data) == {"message"}

    def test_rename_direct_is_400(self, client_for, direct, alice):
        response = client_for(alice).put(
            f"/api/conversations/{direct.id}/", {"name": "Us"}, format="json"
        )

        assert response.status_code == 400
        assert response.data == {"message": "Only group conversations can be updated"}

    def test_non_admin_delete_is_403(self, client_for, team, bob):
        response = client_for(bob).delete(f"/api/conversations/{team.id}/")

        assert response.status_code == 403

    def test_admin_delete(self, client_for, team, alice, realtime_spy):
        response = client_for(alice).delete(f"/api/conversations/{team.id}/")

        assert response.status_code == 200
        assert response.data == {"message": "Conversation deleted"}
        assert not Conversation.objects.filter(pk=team.id).exists()


# =============================================================================
# TestParticipantEndpoints
# =============================================================================


class TestParticipantEndpoints:
    """Group membership endpoints."""

    def test_add_participant(self, client_for, team, alice, dave, realtime_spy):
        response = client_for(alice).post(
            f"/api/conversations/{team.id}/users/", {"user_id": dave.id}, format="json"
        )

        assert response.status_code == 200
        assert response.data["participants"][-1]["id"] == dave.id

    def test_add_existing_participant_is_409(self, client_for, team, alice, bob):
        response = client_for(alice).post(
            reverse("chat:conversation-participant-add", kwargs={"pk": team.id}),
            {"user_id": bob.id},
            format="json",
        )

        assert response.status_code == 409
        assert response.data == {"message": "User already in group"}

    def test_add_without_user_id_is_400(self, client_for, team, alice):
        response = client_for(alice).post(
            f"/api/conversations/{team.id}/users/", {}, format="json"
        )

        assert response.status_code == 400
        assert response.data["message"].startswith("user_id:")

    def test_remove_participant_returns_conversation(self, client_for, team, alice, carol, realtime_spy):
        response = client_for(alice).delete(f"/api/conversations/{team.id}/users/{carol.id}/")

        assert response.status_code == 200
        assert carol.id not in [p["id"] for p in response.data["participants"]]

    def test_last_participant_leaving_deletes_group(self, client_for, alice, realtime_spy):
        create = client_for(alice).post(
            "/api/conversations/",
            {"is_group": True, "name": "Solo", "participant_ids": [alice.id]},
            format="json",
        )
        conversation_id = create.data["id"]

        response = client_for(alice).delete(
            f"/api/conversations/{conversation_id}/users/{alice.id}/"
        )

        assert response.status_code == 200
        assert response.data == {"message": "Group deleted as no participants remain"}
        assert not Conversation.objects.filter(pk=conversation_id).exists()


# =============================================================================
# TestMessageEndpoints
# =============================================================================


class TestMessageEndpoints:
    """Message send/list/delete."""

    def test_send_message_201(self, client_for, direct, alice, realtime_spy):
        response = client_for(alice).post(
            "/api/messages/",
            {"conversation_id": direct.id, "content": "hello"},
            format="json",
        )

        assert response.status_code == 201
        assert response.data["content"] == "hello"
        assert response.data["conversation_id"] == direct.id
        assert response.data["sender"]["id"] == alice.id
        assert response.data["read_by"] == [alice.id]

    def test_send_empty_message_is_400(self, client_for, direct, alice):
        response = client_for(alice).post(
            "/api/messages/", {"conversation_id": direct.id}, format="json"
        )

        assert response.status_code == 400
        assert response.data == {"message": "Message must have content or an image"}

    def test_send_to_foreign_conversation_is_403(self, client_for, team, dave):
        response = client_for(dave).post(
            "/api/messages/", {"conversation_id": team.id, "content": "hi"}, format="json"
        )

        assert response.status_code == 403

    def test_list_marks_read(self, client_for, direct, alice, bob, realtime_spy):
        """
        GET /api/messages/{conversation_id}/ returns messages already marked read.

        Why it matters: Opening a conversation is what clears its unread state.
        """
        MessageService.send(alice, direct.id, content="one")
        MessageService.send(alice, direct.id, content="two")

        response = client_for(bob).get(f"/api/messages/{direct.id}/")

        assert response.status_code == 200
        assert [m["content"] for m in response.data] == ["one", "two"]
        assert all(m["read_by"] == sorted([alice.id, bob.id]) for m in response.data)

    def test_delete_own_message(self, client_for, direct, alice, realtime_spy):
        message = MessageService.send(alice, direct.id, content="oops").data

        response = client_for(alice).delete(f"/api/messages/{message.id}/")

        assert response.status_code == 200
        assert response.data == {"message": "Message deleted"}
        assert not Message.objects.filter(pk=message.id).exists()

    def test_delete_other_users_message_is_403(self, client_for, direct, alice, bob, realtime_spy):
        message = MessageService.send(alice, direct.id, content="mine").data

        response = client_for(bob).delete(
            reverse("chat:message-detail", kwargs={"pk": message.id})
        )

        assert response.status_code == 403
        assert response.data == {"message": "You can only delete your own messages"}


# =============================================================================
# TestMessageImageUpload
# =============================================================================


class TestMessageImageUpload:
    """POST /api/messages/upload/"""

    url = "/api/messages/upload/"

    def test_upload_returns_url_usable_in_send(self, client_for, direct, alice, realtime_spy):
        client = client_for(alice)

        upload = client.post(self.url, {"image": make_png("photo.png")}, format="multipart")

        assert upload.status_code == 200
        image_url = upload.data["image_url"]
        assert image_url.startswith("/media/messages/")

        send = client.post(
            "/api/messages/",
            {"conversation_id": direct.id, "image": image_url},
            format="json",
        )
        assert send.status_code == 201
        assert send.data["image"] == image_url
        assert send.data["content"] == ""

    @pytest.mark.parametrize(
        "upload",
        [
            SimpleUploadedFile("photo.png", b"definitely not an image", content_type="image/png"),
            SimpleUploadedFile("notes.txt", b"plain text", content_type="text/plain"),
        ],
    )
    def test_non_images_are_rejected(self, client_for, alice, upload):
        response = client_for(alice).post(self.url, {"image": upload}, format="multipart")

        assert response.status_code == 400
        assert set(response.data) == {"message"}

    def test_missing_file_is_400(self, client_for, alice):
        response = client_for(alice).post(self.url, {}, format="multipart")

        assert response.status_code == 400

    def test_blob_store_failure_is_502(self, client_for, alice):
        with patch(
            "toolkit.services.storage.DefaultStorageBlobStore.store",
            side_effect=ExternalServiceError("File upload failed"),
        ):
            response = client_for(alice).post(
                self.url, {"image": make_png()}, format="multipart"
            )

        assert response.status_code == 502
        assert response.data == {"message": "File upload failed"}


# =============================================================================
# TestEndToEndScenarios
# =============================================================================


class TestEndToEndScenarios:
    """Multi-step flows through the public API."""

    def test_direct_read_then_delete(self, client_for, alice, bob, realtime_spy):
        """
        Direct chat: send, read by the other side, delete, then 404.

        Why it matters: Read receipts and deletion must both be visible
        through the API exactly as clients consume them.
        """
        alice_client, bob_client = client_for(alice), client_for(bob)
        conversation_id = alice_client.post(
            "/api/conversations/", {"participant_ids": [bob.id]}, format="json"
        ).data["id"]
        alice_client.post(
            "/api/messages/", {"conversation_id": conversation_id, "content": "hi"}, format="json"
        )

        listed = bob_client.get(f"/api/messages/{conversation_id}/")
        assert listed.data[0]["read_by"] == sorted([alice.id, bob.id])

        deleted = alice_client.delete(f"/api/conversations/{conversation_id}/")
        assert deleted.status_code == 200

        after = bob_client.get(f"/api/messages/{conversation_id}/")
        assert after.status_code == 404

    def test_team_admin_leaves_and_loses_rights(self, client_for, alice, bob, carol, realtime_spy):
        alice_client = client_for(alice)
        team_id = alice_client.post(
            "/api/conversations/",
            {"is_group": True, "name": "Team", "participant_ids": [bob.id, carol.id]},
            format="json",
        ).data["id"]

        left = alice_client.delete(f"/api/conversations/{team_id}/users/{alice.id}/")
        assert left.status_code == 200
        assert left.data["admin"]["id"] == bob.id

        rename = alice_client.put(
            f"/api/conversations/{team_id}/", {"name": "Still mine?"}, format="json"
        )
        assert rename.status_code == 403

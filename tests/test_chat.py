import json
from unittest.mock import patch

import pytest

from cascade_api.domain.chat.service import dm_channel_name

ALICE = {"Authorization": "Bearer alice"}
BOB = {"Authorization": "Bearer bob"}
CAROL = {"Authorization": "Bearer carol"}


@pytest.fixture
def general(client):
    return client.post("/chat/channels", headers=ALICE, json={"name": "  general  "}).json()


def send(client, headers, channel_id, content, **extra):
    return client.post("/chat/messages", headers=headers, json={"channelId": channel_id, "content": content, **extra})


def test_routes_require_a_caller(client):
    assert client.get("/chat/channels").status_code == 401


def test_create_channel_makes_creator_a_member(client, general):
    assert general["name"] == "general"
    assert general["type"] == "public"

    channels = client.get("/chat/channels", headers=ALICE).json()
    assert [c["dbId"] for c in channels] == [general["id"]]


def test_blank_channel_name_is_400(client):
    assert client.post("/chat/channels", headers=ALICE, json={"name": "   "}).status_code == 400


def test_unread_counts_ignore_own_messages(client, general):
    client.post(f"/chat/channels/{general['id']}/join", headers=BOB)
    send(client, ALICE, general["id"], "Morning crew")
    send(client, ALICE, general["id"], "Site walk at 10")
    send(client, BOB, general["id"], "On my way")

    bob_channel = client.get("/chat/channels", headers=BOB).json()[0]
    assert bob_channel["unreadCount"] == 2
    assert bob_channel["lastMessage"]["content"] == "On my way"

    assert client.get("/chat/stats", headers=ALICE).json() == {"success": True, "unreadCount": 1}

    read = client.post(f"/chat/channels/{general['id']}/read", headers=BOB).json()
    assert read["success"] is True
    assert read["readAt"]
    assert client.get("/chat/stats", headers=BOB).json()["unreadCount"] == 0


def test_join_is_idempotent(client, general):
    client.post(f"/chat/channels/{general['id']}/join", headers=BOB)
    client.post(f"/chat/channels/{general['id']}/join", headers=BOB)
    assert len(client.get("/chat/channels", headers=BOB).json()) == 1


def test_posting_to_public_channel_auto_joins(client, general):
    assert send(client, CAROL, general["id"], "hi").status_code == 201
    assert len(client.get("/chat/channels", headers=CAROL).json()) == 1


def test_direct_messages(client):
    dm = client.post("/chat/dm", headers=BOB, json={"otherUserId": "alice"}).json()
    assert dm["id"] == "dm-alice-bob"
    assert dm["dmParticipants"] == ["alice", "bob"]

    again = client.post("/chat/dm", headers=ALICE, json={"otherUserId": "bob"}).json()
    assert again["dbId"] == dm["dbId"]

    assert send(client, ALICE, "dm-alice-bob", "private note").status_code == 201
    assert send(client, CAROL, "dm-alice-bob", "let me in").status_code == 403
    assert client.post(f"/chat/channels/{dm['dbId']}/join", headers=CAROL).status_code == 403

    alice_view = client.get("/chat/channels", headers=ALICE).json()[0]
    assert alice_view["id"] == "dm-alice-bob"
    assert alice_view["otherUserId"] == "bob"


def test_dm_with_yourself_is_400(client):
    assert client.post("/chat/dm", headers=ALICE, json={"otherUserId": "alice"}).status_code == 400


def test_history_is_oldest_first_with_reply_preview(client, general):
    first = send(client, ALICE, general["id"], "Who has the lift key?").json()
    send(client, ALICE, general["id"], "Need it by noon")
    send(client, BOB, general["id"], "I do", replyTo=first["id"])

    messages = client.get(f"/chat/channels/{general['id']}/messages", headers=ALICE).json()
    assert [m["content"] for m in messages] == ["Who has the lift key?", "Need it by noon", "I do"]
    assert messages[-1]["replyTo"] == {"id": first["id"], "senderId": "alice", "content": "Who has the lift key?"}

    latest = client.get(f"/chat/channels/{general['id']}/messages", headers=ALICE, params={"limit": 2}).json()
    assert [m["content"] for m in latest] == ["Need it by noon", "I do"]


def test_history_of_unknown_dm_is_empty(client):
    assert client.get("/chat/channels/dm-x-y/messages", headers=ALICE).json() == []


def test_reply_to_message_in_other_channel_is_400(client, general):
    other = client.post("/chat/channels", headers=ALICE, json={"name": "estimating"}).json()
    parent = send(client, ALICE, other["id"], "elsewhere").json()
    assert send(client, ALICE, general["id"], "reply", replyTo=parent["id"]).status_code == 400


def test_only_sender_can_edit_or_delete(client, general):
    message = send(client, ALICE, general["id"], "Pour at 7am").json()

    assert client.patch(f"/chat/messages/{message['id']}", headers=BOB, json={"content": "x"}).status_code == 403
    assert client.delete(f"/chat/messages/{message['id']}", headers=BOB).status_code == 403

    edited = client.patch(f"/chat/messages/{message['id']}", headers=ALICE, json={"content": "Pour at 8am"}).json()
    assert edited["content"] == "Pour at 8am"
    assert edited["isEdited"] is True
    assert edited["editedAt"]

    assert client.delete(f"/chat/messages/{message['id']}", headers=ALICE).json() == {"success": True}
    history = client.get(f"/chat/channels/{general['id']}/messages", headers=ALICE).json()
    assert history[0]["isDeleted"] is True
    assert history[0]["content"] == ""

    response = client.patch(f"/chat/messages/{message['id']}", headers=ALICE, json={"content": "again"})
    assert response.status_code == 400


def test_edit_missing_message_is_404(client):
    assert client.patch("/chat/messages/nope", headers=ALICE, json={"content": "x"}).status_code == 404


def test_mute(client, general):
    response = client.put(f"/chat/channels/{general['id']}/mute", headers=ALICE, json={"muted": True})
    assert response.json() == {"success": True, "isMuted": True}
    assert client.get("/chat/channels", headers=ALICE).json()[0]["isMuted"] is True

    response = client.put(f"/chat/channels/{general['id']}/mute", headers=BOB, json={"muted": True})
    assert response.status_code == 404


def test_dm_channel_name_is_order_independent():
    assert dm_channel_name("zed", "amy") == dm_channel_name("amy", "zed") == "dm-amy-zed"


class TestMessageNotifications:
    @pytest.fixture
    def subscribed(self, client, use_settings):
        use_settings(vapid_private_key="private-key")
        for user in ("alice", "bob"):
            client.post(
                "/push-subscribe",
                json={
                    "userId": user,
                    "subscription": {"endpoint": f"https://push.example.com/{user}", "keys": {"p256dh": "k", "auth": "a"}},
                },
            )

    def test_other_members_are_notified(self, client, general, subscribed):
        client.post(f"/chat/channels/{general['id']}/join", headers=BOB)

        with patch("cascade_api.services.push_service.webpush") as sender:
            assert send(client, ALICE, general["id"], "Site walk at 10").status_code == 201

        assert sender.call_count == 1
        call = sender.call_args.kwargs
        assert call["subscription_info"]["endpoint"] == "https://push.example.com/bob"
        payload = json.loads(call["data"])
        assert payload["title"] == "#general"
        assert payload["body"] == "Site walk at 10"
        assert payload["url"] == f"/chat?channel={general['id']}"

    def test_muted_members_are_skipped(self, client, general, subscribed):
        client.post(f"/chat/channels/{general['id']}/join", headers=BOB)
        client.put(f"/chat/channels/{general['id']}/mute", headers=BOB, json={"muted": True})

        with patch("cascade_api.services.push_service.webpush") as sender:
            send(client, ALICE, general["id"], "Site walk at 10")

        sender.assert_not_called()

# tests/test_api/test_consumers.py
import pytest
from channels.layers import get_channel_layer
from channels.testing import WebsocketCommunicator
from django.contrib.auth.models import User
from rest_framework_simplejwt.tokens import AccessToken

from src.api.consumers import NotificationConsumer
from src.tasks.notifications import user_group


def token_for(user_id):
    return str(AccessToken.for_user(User(id=user_id, username=f"user{user_id}")))


async def connect(user_id=42):
    communicator = WebsocketCommunicator(
        NotificationConsumer.as_asgi(), f"/ws/notifications/?token={token_for(user_id)}",
    )
    connected, _ = await communicator.connect()
    assert connected
    return communicator


@pytest.mark.asyncio
async def test_missing_token_is_rejected():
    communicator = WebsocketCommunicator(NotificationConsumer.as_asgi(), "/ws/notifications/")
    connected, code = await communicator.connect()
    assert not connected
    assert code == 4001


@pytest.mark.asyncio
async def test_invalid_token_is_rejected():
    communicator = WebsocketCommunicator(NotificationConsumer.as_asgi(), "/ws/notifications/?token=nope")
    connected, code = await communicator.connect()
    assert not connected
    assert code == 4001


@pytest.mark.asyncio
async def test_ping_pong():
    communicator = await connect()
    await communicator.send_json_to({"type": "ping"})
    assert await communicator.receive_json_from() == {"type": "pong"}
    await communicator.disconnect()


@pytest.mark.asyncio
async def test_invalid_json_gets_error():
    communicator = await connect()
    await communicator.send_to(text_data="{not json")
    response = await communicator.receive_json_from()
    assert response["type"] == "error"
    await communicator.disconnect()


@pytest.mark.asyncio
async def test_group_events_are_forwarded():
    communicator = await connect(42)
    channel_layer = get_channel_layer()

    await channel_layer.group_send(user_group(42), {"type": "user.notification", "message": "Recording deleted"})
    assert await communicator.receive_json_from() == {"type": "notification", "message": "Recording deleted"}

    await channel_layer.group_send(user_group(42), {
        "type": "job.status", "kind": "mixdown", "id": "abc", "status": "complete", "message": "",
    })
    assert await communicator.receive_json_from() == {
        "type": "job", "kind": "mixdown", "id": "abc", "status": "complete", "message": "",
    }
    await communicator.disconnect()


@pytest.mark.asyncio
async def test_other_users_events_are_not_received():
    communicator = await connect(42)
    await get_channel_layer().group_send(user_group(43), {"type": "user.notification", "message": "not yours"})
    assert await communicator.receive_nothing()
    await communicator.disconnect()

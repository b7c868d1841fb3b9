"""
WebSocket Consumer for per-user notifications

Protocol:
1. Client connects to /ws/notifications/?token=<jwt>
2. Server pushes events sent to the user's channel group:
   - {"type": "notification", "message": "Saved recording to Wonderwall – Intro"}
   - {"type": "job", "kind": "loop_analysis", "id": "<uuid>", "status": "complete", "message": ""}
3. Client may send {"type": "ping"} and receives {"type": "pong"}
"""

import json
import logging
from urllib.parse import parse_qs

from channels.generic.websocket import AsyncWebsocketConsumer
from rest_framework_simplejwt.exceptions import InvalidToken, TokenError
from rest_framework_simplejwt.tokens import AccessToken

from src.tasks.notifications import user_group

logger = logging.getLogger(__name__)


class NotificationConsumer(AsyncWebsocketConsumer):
    """
    Pushes toasts and background job updates to one user's clients.

    Authenticates with ?token=<jwt> and joins the user's channel group, which
    the views and Celery tasks send to.
    """

    async def connect(self):
        """Handle WebSocket connection."""
        query_string = self.scope.get("query_string", b"").decode()
        params = parse_qs(query_string)

        token = params.get("token", [None])[0]
        if not token:
            await self.close(code=4001)  # Unauthorized
            return

        try:
            access_token = AccessToken(token)
            self.user_id = access_token["user_id"]
        except (InvalidToken, TokenError, KeyError):
            await self.close(code=4001)  # Unauthorized
            return

        self.group_name = user_group(self.user_id)
        await self.channel_layer.group_add(self.group_name, self.channel_name)
        await self.accept()
        logger.debug(f"Notification socket opened for user {self.user_id}")

    async def disconnect(self, close_code):
        """Handle WebSocket disconnection."""
        if hasattr(self, "group_name"):
            await self.channel_layer.group_discard(self.group_name, self.channel_name)

    # Handlers for events sent to the user's group
    async def user_notification(self, event):
        await self.send_json({
            "type": "notification",
            "message": event["message"],
        })

    async def job_status(self, event):
        await self.send_json({
            "type": "job",
            "kind": event["kind"],
            "id": event["id"],
            "status": event["status"],
            "message": event.get("message", ""),
        })

    async def receive(self, text_data):
        """Handle incoming message from client."""
        try:
            data = json.loads(text_data)
        except json.JSONDecodeError:
            await self.send_error("Invalid JSON")
            return

        if data.get("type") == "ping":
            await self.send_json({"type": "pong"})
        else:
            await self.send_error(f"Unknown message type: {data.get('type')}")

    async def send_json(self, data: dict):
        """Send JSON message to client."""
        await self.send(text_data=json.dumps(data))

    async def send_error(self, message: str):
        """Send error message to client."""
        await self.send_json({
            "type": "error",
            "message": message,
        })

"""Tests for the authenticated per-user WebSocket channel."""

from uuid import uuid4

import pytest
from fastapi import FastAPI
from starlette.testclient import TestClient
from starlette.websockets import WebSocketDisconnect

from dashboard_feedback.api.realtime import UNAUTHORIZED_CLOSE_CODE
from dashboard_feedback.api.realtime import router as realtime_router
from dashboard_feedback.core.security import create_access_token
from dashboard_feedback.services import ConnectionHub, RealtimeEvent, get_hub


@pytest.fixture
def socket_hub() -> ConnectionHub:
    return ConnectionHub()


@pytest.fixture
def socket_client(socket_hub):
    app = FastAPI()
    app.include_router(realtime_router)
    app.dependency_overrides[get_hub] = lambda: socket_hub
    with TestClient(app) as client:
        yield client


class TestRealtimeSocket:

    @pytest.mark.parametrize("query", ["", "?token=garbage"])
    def test_rejects_missing_or_invalid_token(self, socket_client, query):
        with pytest.raises(WebSocketDisconnect) as exc_info:
            with socket_client.websocket_connect(f"/ws{query}"):
                pass
        assert exc_info.value.code == UNAUTHORIZED_CLOSE_CODE

    def test_joins_own_room(self, socket_client, socket_hub):
        user_id = uuid4()

        with socket_client.websocket_connect(f"/ws?token={create_access_token(user_id)}") as ws:
            assert ws.receive_json() == {"type": "joined", "payload": {"user_id": str(user_id)}}
            assert socket_hub.connection_count(user_id) == 1

            ws.send_json({"type": "join-room", "user_id": str(user_id)})
            assert ws.receive_json()["type"] == "joined"
            ws.close()

    def test_closed_socket_leaves_room(self, socket_client, socket_hub):
        user_id = uuid4()

        with socket_client.websocket_connect(f"/ws?token={create_access_token(user_id)}") as ws:
            ws.receive_json()
            assert socket_hub.connection_count(user_id) == 1
            ws.close()

        assert socket_hub.connection_count(user_id) == 0

    def test_join_foreign_room_is_refused(self, socket_client, socket_hub):
        user_id, other_id = uuid4(), uuid4()

        with socket_client.websocket_connect(f"/ws?token={create_access_token(user_id)}") as ws:
            ws.receive_json()
            ws.send_json({"type": "join-room", "user_id": str(other_id)})

            assert ws.receive_json() == {
                "type": "error",
                "payload": {"message": "You can only join your own room"},
            }
            assert socket_hub.connection_count(other_id) == 0

    def test_ping_and_unknown_messages(self, socket_client):
        token = create_access_token(uuid4())

        with socket_client.websocket_connect(f"/ws?token={token}") as ws:
            ws.receive_json()

            ws.send_json({"type": "ping"})
            assert ws.receive_json()["type"] == "pong"

            ws.send_json({"type": "dance"})
            assert ws.receive_json()["payload"]["message"] == "Unknown message type"

            ws.send_text("{not json")
            assert ws.receive_json()["payload"]["message"] == "Invalid message"

    def test_published_event_is_delivered(self, socket_client, socket_hub):
        user_id = uuid4()

        with socket_client.websocket_connect(f"/ws?token={create_access_token(user_id)}") as ws:
            ws.receive_json()

            delivered = socket_client.portal.call(
                socket_hub.publish,
                user_id,
                RealtimeEvent.STATUS_UPDATE,
                {"issue_id": "42", "status": "complete"},
            )

            assert delivered == 1
            assert ws.receive_json() == {
                "type": "status-update",
                "payload": {"issue_id": "42", "status": "complete"},
            }

"""HTTP and websocket surface, served by a scripted orchestrator."""

from __future__ import annotations

from fastapi.testclient import TestClient

from main import create_app
from models.intent import ChatIntent, StartFlowIntent
from models.session_models import FlowKind, Message, Sender
from services.flow.orchestrator import WELCOME_MESSAGE
from services.openai.response_composer import FLOW_FALLBACKS
from tests.conftest import InMemoryMessageDAL, ScriptedClassifier, build_harness
from utils.settings import Settings


def _client(harness):
    app = create_app(Settings())
    # No lifespan: the harness stands in for the real services.
    app.state.orchestrator = harness.orchestrator
    return TestClient(app)


def test_health_reports_store_state():
    client = _client(build_harness())
    body = client.get("/health").json()
    assert body["status"] == "OK"
    assert body["store_enabled"] is True


def test_post_chat_returns_reply_and_history():
    harness = build_harness(ScriptedClassifier(ChatIntent(response="Hello from the airline!")))
    response = _client(harness).post("/chat", json={"message": "hi", "userId": "u1"})

    assert response.status_code == 200
    body = response.json()
    assert body["message"]["content"] == "Hello from the airline!"
    assert body["message"]["sender"] == "assistant"
    assert [m["content"] for m in body["history"]] == ["hi", "Hello from the airline!"]


def test_post_chat_keeps_flow_between_requests():
    harness = build_harness(
        ScriptedClassifier(StartFlowIntent(flow=FlowKind.CHECK_IN), ChatIntent(response="Sure"))
    )
    client = _client(harness)
    first = client.post("/chat", json={"message": "check me in", "userId": "u1"}).json()
    assert first["message"]["content"] == FLOW_FALLBACKS[FlowKind.CHECK_IN]

    client.post("/chat", json={"message": "hello", "userId": "u1"})
    _, context = harness.classifier.calls[1]
    assert context["activeFlow"] == "CHECK_IN"


def test_post_chat_requires_fields():
    client = _client(build_harness())
    assert client.post("/chat", json={"message": "hi"}).status_code == 400
    assert client.post("/chat", json={"userId": "u1", "message": "   "}).status_code == 400


def test_get_history_returns_stored_messages():
    dal = InMemoryMessageDAL(
        rows=[
            Message(content="hi", sender=Sender.USER, user_id="u1"),
            Message(content="hello", sender=Sender.ASSISTANT, user_id="u1"),
            Message(content="other", sender=Sender.USER, user_id="u2"),
        ]
    )
    client = _client(build_harness(dal=dal))
    body = client.get("/history", params={"userId": "u1"}).json()
    assert [(m["sender"], m["content"]) for m in body] == [("user", "hi"), ("assistant", "hello")]
    assert client.get("/history").status_code == 400


def test_delete_history():
    dal = InMemoryMessageDAL(rows=[Message(content="hi", sender=Sender.USER, user_id="u1")])
    client = _client(build_harness(dal=dal))
    response = client.delete("/history", params={"userId": "u1"})
    assert response.status_code == 200
    assert response.json() == {"message": "History cleared successfully"}
    assert dal.rows == []


def test_delete_history_failure_is_500():
    client = _client(build_harness(dal=InMemoryMessageDAL(fail=True)))
    response = client.delete("/history", params={"userId": "u1"})
    assert response.status_code == 500
    assert response.json()["detail"] == "Failed to clear history"


def test_websocket_identify_then_chat():
    dal = InMemoryMessageDAL(rows=[Message(content="earlier", sender=Sender.USER, user_id="u1")])
    harness = build_harness(ScriptedClassifier(ChatIntent(response="Happy to help")), dal=dal)
    client = _client(harness)

    with client.websocket_connect("/ws") as ws:
        ws.send_json({"type": "identify", "userId": "u1"})
        history = ws.receive_json()
        assert history["type"] == "history"
        assert [m["content"] for m in history["messages"]] == ["earlier"]
        welcome = ws.receive_json()
        assert welcome["message"]["content"] == WELCOME_MESSAGE

        ws.send_json({"type": "message", "message": {"content": "hello", "sender": "user"}})
        reply = ws.receive_json()
        assert reply["type"] == "message"
        assert reply["message"]["content"] == "Happy to help"
        assert reply["message"]["userId"] == "u1"

    assert len(harness.registry) == 0
    assert [m.content for m in dal.rows] == ["earlier", WELCOME_MESSAGE, "hello", "Happy to help"]


def test_websocket_errors():
    client = _client(build_harness())
    with client.websocket_connect("/ws") as ws:
        ws.send_text("not json")
        assert ws.receive_json() == {"type": "error", "detail": "Payload must be JSON"}

        ws.send_json({"type": "message", "content": "hi"})
        assert ws.receive_json()["type"] == "error"

        ws.send_json({"type": "identify"})
        assert ws.receive_json()["detail"] == "userId is required to identify."

        ws.send_json({"type": "subscribe"})
        assert ws.receive_json()["detail"] == "Unsupported message type."

        ws.send_json({"type": "identify", "userId": "u1"})
        assert ws.receive_json()["message"]["content"] == WELCOME_MESSAGE

        ws.send_json({"type": "message", "content": "  "})
        assert ws.receive_json()["detail"] == "Message content is required."


def test_post_chat_sessions_and_history_are_bounded():
    replies = [ChatIntent(response=f"reply {i}") for i in range(80)]
    harness = build_harness(ScriptedClassifier(*replies), history_limit=20, max_idle_sessions=10)
    client = _client(harness)

    for i in range(50):
        client.post("/chat", json={"message": "hi", "userId": f"user{i}"})
    for _ in range(29):
        body = client.post("/chat", json={"message": "again", "userId": "user0"}).json()

    assert len(harness.registry) <= 10
    assert len(body["history"]) == 20
    assert body["history"][-1] == body["message"]

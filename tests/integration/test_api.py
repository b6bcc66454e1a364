import pytest
from fastapi.testclient import TestClient

from conftest import ANSWER_MODEL, CLASSIFIER_MODEL, DECLINE_MODEL, NODE_COLLECTION, FakeChatModel, FakeVectorStore, hit
from lectureqa.core.dependencies import get_pipeline, get_registry
from lectureqa.main import app
from lectureqa.pipeline.orchestrator import GENERIC_FAILURE_MESSAGE


@pytest.fixture
def client_for(make_pipeline, registry):
    """TestClient with the pipeline dependency swapped; lifespan (real providers) is not started."""

    def _client(chat: FakeChatModel, store: FakeVectorStore | None = None) -> TestClient:
        pipeline = make_pipeline(chat, store or FakeVectorStore())
        app.dependency_overrides[get_pipeline] = lambda: pipeline
        app.dependency_overrides[get_registry] = lambda: registry
        return TestClient(app)

    yield _client
    app.dependency_overrides.clear()


def test_chat_returns_cited_answer(client_for) -> None:
    reply = "Timers run first [lecture: Event Loop, start_time: 00:12:03]."
    chat = FakeChatModel({CLASSIFIER_MODEL: ['{"topic": "nodejs"}'], ANSWER_MODEL: [reply]})
    store = FakeVectorStore({NODE_COLLECTION: [hit("Timers run first.", "Event Loop", "00:12:03")]})

    response = client_for(chat, store).post("/api/chat", json={"message": "event loop?"})

    assert response.status_code == 200
    assert response.json() == {"response": reply}


def test_chat_decline_is_a_normal_response(client_for) -> None:
    chat = FakeChatModel({
        CLASSIFIER_MODEL: ['{"topic": "none"}'],
        DECLINE_MODEL: ["I only cover Node.js and Python lectures."],
    })

    response = client_for(chat).post("/api/chat", json={"message": "capital of France?"})

    assert response.status_code == 200
    assert response.json() == {"response": "I only cover Node.js and Python lectures."}


@pytest.mark.parametrize("body", [{}, {"message": ""}, {"message": "   "}, {"message": None}, {"message": 42}])
def test_chat_rejects_missing_message_without_routing(client_for, body) -> None:
    chat = FakeChatModel()

    response = client_for(chat).post("/api/chat", json=body)

    assert response.status_code == 400
    assert response.json() == {"error": "Message is required"}
    assert chat.calls == []


def test_chat_failure_is_generic_500(client_for) -> None:
    chat = FakeChatModel({CLASSIFIER_MODEL: ['{"topic": "nodejs"}']})
    store = FakeVectorStore(error=RuntimeError("chroma at 10.0.0.5 refused connection"))

    response = client_for(chat, store).post("/api/chat", json={"message": "event loop?"})

    assert response.status_code == 500
    assert response.json() == {"error": GENERIC_FAILURE_MESSAGE}
    assert "10.0.0.5" not in response.text


def test_health_lists_topics_and_partitions(client_for) -> None:
    response = client_for(FakeChatModel()).get("/api/health")

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "ok"
    assert body["topics"] == ["nodejs", "python"]
    assert body["partitions"]["nodejs"] == NODE_COLLECTION

"""
Tests for the FastAPI adapter.
"""

from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient

from chatmux.api import http_api
from chatmux.api.multimodal.pdf_extractor import PdfExtractionError
from chatmux.core.engine import TurnRouter
from chatmux.retrieval.types import PdfPage, PdfProcessingResult


@pytest.fixture
def client():
    return TestClient(http_api.app)


@pytest.fixture(autouse=True)
def clean_sessions():
    http_api.SESSIONS.clear()
    yield
    http_api.SESSIONS.clear()


@pytest.fixture
def session(make_router):
    router = make_router()
    http_api.SESSIONS["s1"] = router
    return router


class TestPdfExtractEndpoint:

    def test_health(self, client):
        response = client.get("/api/pdf-extract")
        assert response.status_code == 200
        assert response.json()["message"] == "PDF extraction API is working"
        assert "timestamp" in response.json()

    def test_missing_file(self, client):
        response = client.post("/api/pdf-extract", data={"other": "x"})
        assert response.status_code == 400
        assert response.json() == {"error": "No file provided"}

    def test_wrong_content_type(self, client):
        files = {"file": ("notes.txt", b"hello", "text/plain")}
        response = client.post("/api/pdf-extract", files=files)
        assert response.status_code == 400
        assert response.json() == {"error": "File must be a PDF"}

    def test_success(self, client):
        result = PdfProcessingResult(
            text="Hello PDF",
            page_count=1,
            pages=(PdfPage(1, "Hello PDF", 2),),
            file_name="a.pdf",
            file_size=9,
            metadata={"Title": "A"},
        )
        files = {"file": ("a.pdf", b"%PDF-1.4", "application/pdf")}
        with patch("chatmux.api.http_api.extract_pdf", return_value=result):
            response = client.post("/api/pdf-extract", files=files)

        assert response.status_code == 200
        assert response.json() == {
            "text": "Hello PDF",
            "pageCount": 1,
            "pages": [{"pageNumber": 1, "text": "Hello PDF", "wordCount": 2}],
            "metadata": {"Title": "A"},
            "fileName": "a.pdf",
            "fileSize": 9,
        }

    def test_extraction_failure(self, client):
        files = {"file": ("a.pdf", b"garbage", "application/pdf")}
        response = client.post("/api/pdf-extract", files=files)

        assert response.status_code == 500
        body = response.json()
        assert body["error"] == "Failed to process PDF"
        assert "not a valid PDF" in body["details"]

    def test_extraction_error_detail(self, client):
        files = {"file": ("a.pdf", b"%PDF-1.4", "application/pdf")}
        with patch("chatmux.api.http_api.extract_pdf", side_effect=PdfExtractionError("Unable to read PDF: x")):
            response = client.post("/api/pdf-extract", files=files)
        assert response.json()["details"] == "Unable to read PDF: x"


class TestDecommissionedRoutes:

    @pytest.mark.parametrize("path", ["/api/sandbox", "/api/chat"])
    def test_acknowledgment(self, client, path):
        response = client.post(path, json={})
        assert response.status_code == 200
        assert response.json()["status"] == "Client-side only"


class TestChatTurn:

    def test_empty_message(self, client):
        response = client.post("/v1/chat/turn", json={"message": "  "})
        assert response.status_code == 400

    def test_turn_on_existing_session(self, client, session):
        response = client.post("/v1/chat/turn", json={"message": "tell me a joke", "session_id": "s1"})

        assert response.status_code == 200
        assert response.json() == {
            "session_id": "s1",
            "route": "plain_chat",
            "state": "idle",
            "message": {
                "role": "assistant",
                "content": [{"type": "text", "text": "assistant reply"}],
            },
        }
        assert len(session.messages) == 2

    def test_turn_in_flight_returns_409(self, client, session, completer):
        session._in_flight.acquire()
        try:
            response = client.post("/v1/chat/turn", json={"message": "hello", "session_id": "s1"})
        finally:
            session._in_flight.release()

        assert response.status_code == 409
        completer.assert_not_called()

    def test_new_session_is_created(self):
        session_id, router = http_api.get_session_router(None)

        assert isinstance(router, TurnRouter)
        assert http_api.SESSIONS[session_id] is router
        assert http_api.get_session_router(session_id) == (session_id, router)


class TestSessionControls:

    def test_unknown_session(self, client):
        assert client.post("/v1/chat/undo", json={"session_id": "missing"}).status_code == 404
        assert client.post("/v1/chat/clear", json={"session_id": "missing"}).status_code == 404

    def test_undo_and_clear(self, client, session):
        client.post("/v1/chat/turn", json={"message": "hi", "session_id": "s1"})

        undo = client.post("/v1/chat/undo", json={"session_id": "s1"}).json()
        assert undo == {"session_id": "s1", "undone": True, "message_count": 0}

        clear = client.post("/v1/chat/clear", json={"session_id": "s1"}).json()
        assert clear == {"session_id": "s1", "cleared": True}
        assert session.messages == []
        assert "s1" not in http_api.SESSIONS
        assert client.post("/v1/chat/undo", json={"session_id": "s1"}).status_code == 404

    def test_oldest_session_evicted_at_capacity(self, make_router, monkeypatch):
        monkeypatch.setattr(http_api, "MAX_SESSIONS", 2)
        http_api.SESSIONS["old"] = make_router()
        http_api.SESSIONS["recent"] = make_router()

        session_id, _ = http_api.get_session_router(None)

        assert list(http_api.SESSIONS) == ["recent", session_id]

    def test_in_flight_session_is_not_evicted(self, make_router, monkeypatch):
        monkeypatch.setattr(http_api, "MAX_SESSIONS", 2)
        busy = make_router()
        http_api.SESSIONS["busy"] = busy
        http_api.SESSIONS["idle"] = make_router()

        busy._in_flight.acquire()
        try:
            session_id, _ = http_api.get_session_router(None)
        finally:
            busy._in_flight.release()

        assert list(http_api.SESSIONS) == ["busy", session_id]

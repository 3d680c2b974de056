"""
HTTP API adapter for the chatmux turn router.

Architectural role:
- Expose the PDF extraction collaborator over multipart upload.
- Run chat turns on process-local, per-session `TurnRouter` instances.
- Keep the decommissioned `/api/sandbox` and `/api/chat` routes answering
  with a fixed acknowledgment so older clients do not break.

Endpoint responsibilities:
- `GET /api/pdf-extract`: health probe.
- `POST /api/pdf-extract`: validate the upload and return page-level text.
- `POST /v1/chat/turn`: run one turn and return the assistant message.
- `POST /v1/chat/undo`, `POST /v1/chat/clear`: conversation controls.

Input validation behavior:
- Missing upload -> HTTP 400; non-PDF content type -> HTTP 400.
- Empty chat message without images -> HTTP 400.
- Turn submitted while another is in flight -> HTTP 409.
- Unknown session on undo/clear -> HTTP 404.

Session lifecycle:
- Clear drops the session; the next turn with that id starts fresh.
- At most `MAX_SESSIONS` are kept; the oldest idle ones are evicted first.

Error handling strategy:
- Extraction failures return HTTP 500 with the failure detail.
- Connector and completion failures never reach this layer; the router turns
  them into assistant messages.

Side effects:
- Holds session routers in memory for the life of the process.
- Emits request/response debug logs only when `DEBUG == "true"`.
- Loads environment variables at import time via `load_dotenv()`.
"""

from dotenv import load_dotenv

load_dotenv()

import os
import uuid
import asyncio
import logging
from datetime import datetime, timezone

from fastapi import FastAPI, File, UploadFile
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from chatmux.api.multimodal.pdf_extractor import PdfExtractionError, extract_pdf
from chatmux.config import ClientConfig
from chatmux.core.engine import TurnRouter
from chatmux.documents.pdf_processor import PDF_CONTENT_TYPE

logger = logging.getLogger(__name__)

app = FastAPI()
# Sensitive request/response debug logging is opt-in.
DEBUG = os.getenv("DEBUG") == "true"

# Process-local session routers, keyed by session id, oldest first.
SESSIONS: dict[str, TurnRouter] = {}
MAX_SESSIONS = int(os.getenv("MAX_SESSIONS", "256"))


def _evict_oldest_sessions():
    for session_id in list(SESSIONS):
        if len(SESSIONS) < MAX_SESSIONS:
            return
        if SESSIONS[session_id].in_flight:
            continue
        del SESSIONS[session_id]
        logger.info("Evicted chat session %s", session_id)


def get_session_router(session_id: str | None) -> tuple[str, TurnRouter]:
    """Return `(session_id, router)`, creating a session when needed."""
    if session_id and session_id in SESSIONS:
        return session_id, SESSIONS[session_id]

    _evict_oldest_sessions()
    session_id = session_id or uuid.uuid4().hex
    router = TurnRouter(ClientConfig.from_env())
    SESSIONS[session_id] = router
    logger.info("Created chat session %s", session_id)
    return session_id, router


# ============================================================
# Request Schema
# ============================================================

class TurnRequest(BaseModel):
    message: str = ""
    images: list[str] = []
    session_id: str | None = None


class SessionRequest(BaseModel):
    session_id: str


# ============================================================
# PDF Extraction
# ============================================================

@app.get("/api/pdf-extract")
def pdf_extract_health():
    return {
        "message": "PDF extraction API is working",
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


@app.post("/api/pdf-extract")
async def pdf_extract(file: UploadFile | None = File(None)):
    """
    Extract text from an uploaded PDF.

    Response formatting:
    - `{text, pageCount, pages[{pageNumber, text, wordCount}], metadata,
      fileName, fileSize}`
    """
    if file is None:
        return JSONResponse(status_code=400, content={"error": "No file provided"})

    if DEBUG:
        logger.debug("PDF upload: %s (%s)", file.filename, file.content_type)

    if file.content_type != PDF_CONTENT_TYPE:
        return JSONResponse(status_code=400, content={"error": "File must be a PDF"})

    data = await file.read()
    file_name = file.filename or "document.pdf"

    try:
        result = await asyncio.to_thread(extract_pdf, data, file_name)
    except PdfExtractionError as e:
        logger.warning("PDF extraction failed for %s: %s", file_name, e)
        return JSONResponse(
            status_code=500,
            content={"error": "Failed to process PDF", "details": str(e)},
        )

    return {
        "text": result.text,
        "pageCount": result.page_count,
        "pages": [
            {
                "pageNumber": page.page_number,
                "text": page.text,
                "wordCount": page.word_count,
            }
            for page in result.pages
        ],
        "metadata": result.metadata or None,
        "fileName": result.file_name,
        "fileSize": result.file_size,
    }


# ============================================================
# Decommissioned Routes
# ============================================================

@app.post("/api/sandbox")
def sandbox():
    return {
        "status": "Client-side only",
        "message": "This API route is no longer used. Frontend now simulates sandbox responses.",
    }


@app.post("/api/chat")
def legacy_chat():
    return {
        "status": "Client-side only",
        "message": "This API route is no longer used. Use /v1/chat/turn instead.",
    }


# ============================================================
# Chat Turns
# ============================================================

@app.post("/v1/chat/turn")
async def chat_turn(request: TurnRequest):
    """
    Run one user turn on the session's router.

    API request lifecycle:
    1. Validate that the message carries text or images.
    2. Resolve (or create) the session router.
    3. Reject with 409 when the router already has a turn in flight.
    4. Return the routed assistant message.
    """
    if not request.message.strip() and not request.images:
        return JSONResponse(status_code=400, content={"error": "Message is empty"})

    session_id, router = get_session_router(request.session_id)

    if DEBUG:
        logger.debug("Turn request (session=%s): %r", session_id, request.message)

    if router.in_flight:
        return JSONResponse(
            status_code=409,
            content={"error": "A turn is already in progress", "session_id": session_id},
        )

    reply = await router.submit(request.message, images=request.images)

    if reply is None:
        return JSONResponse(
            status_code=409,
            content={"error": "A turn is already in progress", "session_id": session_id},
        )

    decision = router.last_decision

    if DEBUG:
        logger.debug("Turn reply (session=%s): %r", session_id, reply.text)

    return {
        "session_id": session_id,
        "route": decision.route.value if decision else None,
        "state": router.state.value,
        "message": reply.to_dict(),
    }


@app.post("/v1/chat/undo")
def chat_undo(request: SessionRequest):
    router = SESSIONS.get(request.session_id)
    if router is None:
        return JSONResponse(status_code=404, content={"error": "Unknown session"})

    removed = router.undo()
    return {
        "session_id": request.session_id,
        "undone": removed,
        "message_count": len(router.messages),
    }


@app.post("/v1/chat/clear")
def chat_clear(request: SessionRequest):
    router = SESSIONS.get(request.session_id)
    if router is None:
        return JSONResponse(status_code=404, content={"error": "Unknown session"})

    router.clear()
    del SESSIONS[request.session_id]
    return {"session_id": request.session_id, "cleared": True}

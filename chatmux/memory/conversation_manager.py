"""In-memory conversation state with optional PDF grounding context.

Purpose of this abstraction:
    Hold one conversation's ordered messages and its PDF context behind a
    lock, so adapters and the turn router mutate it only through atomic
    operations.

Invariants:
    - Messages are append-only for the router; removal happens only through
      `undo` (last two messages, atomically) and `clear`.
    - `undo` on fewer than two messages is a no-op.
    - `pdf_context` exists from a successful PDF upload until
      `clear_pdf_context` or `clear`.

Side effects:
    None outside the process; nothing is persisted.
"""

import logging
import threading
from dataclasses import dataclass

from chatmux.core.messages import Message


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PDFContext:
    """Grounding document injected into every text-path system prompt."""

    file_name: str
    content: str
    page_count: int
    summary: str


class Conversation:
    """Thread-safe message list plus optional PDF context."""

    def __init__(self, messages=None) -> None:
        self._lock = threading.Lock()
        self._messages: list[Message] = list(messages or [])
        self._pdf_context: PDFContext | None = None

    @property
    def messages(self) -> list[Message]:
        """Snapshot copy of the messages, oldest first."""
        with self._lock:
            return list(self._messages)

    @property
    def pdf_context(self) -> PDFContext | None:
        with self._lock:
            return self._pdf_context

    def __len__(self) -> int:
        with self._lock:
            return len(self._messages)

    def append(self, message: Message) -> None:
        with self._lock:
            self._messages.append(message)

    def last_message(self) -> Message | None:
        with self._lock:
            return self._messages[-1] if self._messages else None

    def undo(self) -> bool:
        """Remove the last two messages (the last exchange).

        Returns:
            `True` when messages were removed, `False` for the no-op case.
        """
        with self._lock:
            if len(self._messages) < 2:
                return False
            del self._messages[-2:]
            return True

    def clear(self) -> None:
        """Drop all messages and the PDF context."""
        with self._lock:
            self._messages.clear()
            self._pdf_context = None

    def set_pdf_context(self, context: PDFContext) -> None:
        with self._lock:
            self._pdf_context = context
        logger.info("PDF context set: %s (%s pages)", context.file_name, context.page_count)

    def clear_pdf_context(self) -> None:
        with self._lock:
            self._pdf_context = None

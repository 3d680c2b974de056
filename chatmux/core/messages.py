"""Conversation message data model.

A `Message` is one conversation turn authored by the user or the assistant.
Its content is an ordered, non-empty tuple of typed parts; the `type` tag on
each part selects how adapters render it and how it is sent to the
completion provider.
"""

import base64
from dataclasses import dataclass
from typing import Literal, Union

USER_ROLE = "user"
ASSISTANT_ROLE = "assistant"

Role = Literal["user", "assistant"]


@dataclass(frozen=True)
class TextPart:
    text: str
    type: str = "text"


@dataclass(frozen=True)
class CodePart:
    text: str
    type: str = "code"


@dataclass(frozen=True)
class ImagePart:
    """User-attached image as a data URL."""

    image: str
    type: str = "image"


@dataclass(frozen=True)
class GeneratedImagePart:
    """Provider-hosted image produced by the image-generation connector."""

    url: str
    type: str = "generated-image"


@dataclass(frozen=True)
class PdfPart:
    file_name: str
    file_size: int
    page_count: int
    summary: str
    extracted_text: str
    type: str = "pdf"


ContentPart = Union[TextPart, CodePart, ImagePart, GeneratedImagePart, PdfPart]


@dataclass(frozen=True)
class Message:
    """One immutable conversation turn.

    Raises:
        ValueError: For an unknown role or empty content.
    """

    role: Role
    content: tuple

    def __post_init__(self):
        if self.role not in (USER_ROLE, ASSISTANT_ROLE):
            raise ValueError(f"Unsupported message role: {self.role!r}")
        if not isinstance(self.content, tuple):
            object.__setattr__(self, "content", tuple(self.content))
        if not self.content:
            raise ValueError("Message content must not be empty")

    @property
    def text(self) -> str:
        """Joined text of all text and code parts."""
        return "\n".join(
            part.text for part in self.content if isinstance(part, (TextPart, CodePart))
        )

    @property
    def images(self) -> list[str]:
        """Data URLs of user-attached images, in order."""
        return [part.image for part in self.content if isinstance(part, ImagePart)]

    @classmethod
    def user_text(cls, text: str) -> "Message":
        return cls(role=USER_ROLE, content=(TextPart(text),))

    @classmethod
    def assistant_text(cls, text: str) -> "Message":
        return cls(role=ASSISTANT_ROLE, content=(TextPart(text),))

    def to_dict(self) -> dict:
        """Serialize for JSON adapters."""
        parts = []
        for part in self.content:
            if isinstance(part, (TextPart, CodePart)):
                parts.append({"type": part.type, "text": part.text})
            elif isinstance(part, ImagePart):
                parts.append({"type": part.type, "image": part.image})
            elif isinstance(part, GeneratedImagePart):
                parts.append({"type": part.type, "url": part.url})
            elif isinstance(part, PdfPart):
                parts.append({
                    "type": part.type,
                    "fileName": part.file_name,
                    "fileSize": part.file_size,
                    "pageCount": part.page_count,
                    "summary": part.summary,
                })
        return {"role": self.role, "content": parts}


def _part_to_provider(part) -> dict:
    if isinstance(part, (TextPart, CodePart)):
        return {"type": "text", "text": part.text}
    if isinstance(part, ImagePart):
        return {"type": "image_url", "image_url": {"url": part.image}}
    if isinstance(part, GeneratedImagePart):
        return {"type": "text", "text": f"[Generated image: {part.url}]"}
    if isinstance(part, PdfPart):
        return {
            "type": "text",
            "text": (
                f"[PDF Document: {part.file_name} - {part.page_count} pages]\n\n"
                f"{part.extracted_text}"
            ),
        }
    raise TypeError(f"Unsupported content part: {type(part).__name__}")


def to_provider_messages(messages) -> list[dict]:
    """Convert messages to OpenAI-compatible chat message dicts.

    Code parts are sent as text, generated images as a bracketed URL marker,
    and PDFs as a header line followed by the extracted text.
    """
    return [
        {"role": message.role, "content": [_part_to_provider(p) for p in message.content]}
        for message in messages
    ]


def to_data_url(data: bytes, mime_type: str = "image/png") -> str:
    """Encode raw bytes as a base64 data URL."""
    encoded = base64.b64encode(data).decode("ascii")
    return f"data:{mime_type};base64,{encoded}"


def split_data_url(data_url: str) -> tuple[str, str]:
    """Return `(mime_type, base64_payload)` for a data URL.

    Raises:
        ValueError: When the value is not a base64 data URL.
    """
    if not data_url.startswith("data:") or "," not in data_url:
        raise ValueError("Expected a base64 data URL")
    header, payload = data_url.split(",", 1)
    mime_type = header[len("data:"):].split(";", 1)[0] or "application/octet-stream"
    return mime_type, payload

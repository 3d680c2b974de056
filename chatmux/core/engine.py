"""Turn router: per-conversation orchestration of one user turn.

Architectural role:
    Transforms one user submission (text, attached images, or a PDF upload)
    into exactly one assistant message appended to the conversation. API and
    CLI adapters drive it; everything below it (classifiers, connectors,
    aggregators, completion client) is injected.

Control-flow model (`submit`):
    1. Take the in-flight gate; a second concurrent turn returns `None`.
    2. Append the user message and classify (`decide_route`).
    3. Execute the route:
       - image generation -> image URLs or an apology with the reason;
       - image analysis -> vision description folded into the prompt;
       - real-time / deep search / live search -> connector data formatted
         into the prompt, with a capability note on the system prompt;
       - plain chat.
    4. Run the completion (except for image generation) and append the reply.

Error handling strategy:
    Connectors degrade on their own. A connector that still raises turns into
    a failure note on the system prompt. A failing completion moves the router
    to `ERRORED` and appends a categorized assistant message; the conversation
    stays usable. No path ends without an assistant message.

Concurrency:
    Blocking provider calls (`requests`) run via `asyncio.to_thread`. The gate
    is a non-blocking lock acquire, so overlapping submissions are rejected
    instead of queued. `stop` clears indicators only; it neither cancels the
    in-flight request nor releases the gate.
"""

import asyncio
import logging
import threading
from typing import Callable, Protocol

from chatmux.config import ClientConfig
from chatmux.core.messages import (
    ASSISTANT_ROLE,
    USER_ROLE,
    GeneratedImagePart,
    ImagePart,
    Message,
    PdfPart,
    TextPart,
)
from chatmux.core.routing_types import ROUTE_STATES, Route, RoutingDecision, TurnState
from chatmux.documents.pdf_processor import (
    extract_text_from_pdf,
    format_file_size,
    generate_pdf_summary,
    is_pdf_file,
)
from chatmux.image import vision
from chatmux.image.client import ImageGenerationError
from chatmux.image.service import generate_image
from chatmux.llm.service import FALLBACK_RESPONSE, complete
from chatmux.memory.conversation_manager import Conversation, PDFContext
from chatmux.nlp.intent_router import decide_route
from chatmux.nlp.query_extractors import extract_image_prompt, extract_search_query
from chatmux.prompting import prompt_builder
from chatmux.retrieval.realtime import RealtimeDataConnector
from chatmux.retrieval.summaries import (
    format_live_search_for_ai,
    format_realtime_data_for_ai,
    format_search_results_for_ai,
)
from chatmux.retrieval.types import DeepSearchResult, LiveSearchResult, RealtimeData
from chatmux.retrieval.web.deep_search import DeepSearch
from chatmux.retrieval.web.live_search import LiveSearch


logger = logging.getLogger(__name__)

IMAGE_GENERATED_TEXT = "Here's the image I generated based on your request:"
IMAGE_FAILURE_PREFIX = "I'm sorry, I couldn't generate that image."
PDF_FAILURE_PREFIX = "I'm sorry, I couldn't process that PDF."
PDF_READY_TEXT = (
    "I've successfully processed your PDF and I'm ready to answer questions about it!"
)
IMAGE_EXPLAIN_FAILURE_TEXT = "I'm sorry, I couldn't analyze that image. Please try again."

QUOTA_FAILURE_TEXT = (
    "I've reached my API quota limit. Please try again in a few minutes."
)
CONFIG_FAILURE_TEXT = (
    "There's an issue with the API configuration. Please check your API key settings."
)
NETWORK_FAILURE_TEXT = (
    "There was a network error. Please check your internet connection and try again."
)

PDF_ANALYSIS_TEMPERATURE = 0.3
PDF_ANALYSIS_MAX_TOKENS = 2048

INDICATORS = ("loading", "image_generating", "pdf_processing", "deep_searching", "live_searching")


class DeepSearchProtocol(Protocol):
    async def perform_deep_search(self, query: str) -> DeepSearchResult:
        ...


class LiveSearchProtocol(Protocol):
    async def perform_live_search(self, query: str) -> LiveSearchResult:
        ...


class RealtimeProtocol(Protocol):
    async def get_realtime_data(self) -> RealtimeData:
        ...


def describe_completion_failure(exc: BaseException, default: str | None = None) -> tuple[str, bool]:
    """Map a completion failure to user-facing text.

    Categories are chosen by substring of the error message, in order:
    quota/rate limit (`429`, `quota`, `rate limit`), configuration
    (`api key`), network (`network`, `fetch`, `connection`, `timed out`),
    otherwise the generic connection message (or `default`).

    Returns:
        `(text, is_rate_limited)`.
    """
    message = str(exc)
    lowered = message.lower()

    if "429" in lowered or "quota" in lowered or "rate limit" in lowered:
        return QUOTA_FAILURE_TEXT, True
    if "api key" in lowered:
        return CONFIG_FAILURE_TEXT, False
    if any(marker in lowered for marker in ("network", "fetch", "connection", "timed out")):
        return NETWORK_FAILURE_TEXT, False
    if default is not None:
        return default, False
    return (
        f"I'm having trouble connecting to the AI service. Error: {message or 'Unknown error'}. "
        "Please try again.",
        False,
    )


class TurnRouter:
    """Turn state machine for one conversation.

    Args:
        config: Provider and network configuration passed to every connector.
        conversation: Conversation state; a fresh one when omitted.
        deep_search / live_search / realtime: Async connectors; defaults are
            built from `config`.
        completer: `(system, user, config, temperature, max_tokens) -> str`.
        image_generator: `(prompt, config) -> list[str]`.
        describe_image / classify_image / explain_image: Vision functions.
        pdf_extractor: `(bytes, file_name) -> PdfProcessingResult`; `None`
            uses the pdfplumber extractor.
    """

    def __init__(
        self,
        config: ClientConfig,
        conversation: Conversation | None = None,
        deep_search: DeepSearchProtocol | None = None,
        live_search: LiveSearchProtocol | None = None,
        realtime: RealtimeProtocol | None = None,
        completer: Callable[..., str] = complete,
        image_generator: Callable[[str, ClientConfig], list[str]] = generate_image,
        describe_image: Callable = vision.describe_image,
        classify_image: Callable = vision.classify_image,
        explain_image: Callable = vision.explain_image,
        pdf_extractor: Callable | None = None,
    ) -> None:
        self.config = config
        self.conversation = conversation or Conversation()
        self.deep_search = deep_search or DeepSearch(config)
        self.live_search = live_search or LiveSearch(config)
        self.realtime = realtime or RealtimeDataConnector(config)
        self._completer = completer
        self._image_generator = image_generator
        self._describe_image = describe_image
        self._classify_image = classify_image
        self._explain_image = explain_image
        self._pdf_extractor = pdf_extractor

        self._in_flight = threading.Lock()
        self._state = TurnState.IDLE
        self._indicators = dict.fromkeys(INDICATORS, False)
        self._rate_limited = False
        self.last_error: BaseException | None = None
        self.last_decision: RoutingDecision | None = None

    # =========================================================
    # STATE
    # =========================================================

    @property
    def state(self) -> TurnState:
        return self._state

    @property
    def is_loading(self) -> bool:
        return self._indicators["loading"]

    @property
    def is_rate_limited(self) -> bool:
        return self._rate_limited

    @property
    def indicators(self) -> dict[str, bool]:
        return dict(self._indicators)

    @property
    def in_flight(self) -> bool:
        return self._in_flight.locked()

    @property
    def messages(self) -> list[Message]:
        return self.conversation.messages

    def _try_begin_turn(self) -> bool:
        if not self._in_flight.acquire(blocking=False):
            logger.warning("Turn rejected: another turn is already in flight")
            return False
        self._indicators["loading"] = True
        self.last_error = None
        return True

    def _end_turn(self) -> None:
        for name in INDICATORS:
            self._indicators[name] = False
        self._in_flight.release()

    # =========================================================
    # SUBMIT
    # =========================================================

    async def submit(
        self,
        text: str,
        images=(),
        selected_image: str | None = None,
    ) -> Message | None:
        """Run one user turn.

        Args:
            text: User text.
            images: Attached image data URLs.
            selected_image: Separately selected image data URL.

        Returns:
            The appended assistant message, or `None` when a turn is already
            in flight (nothing is appended in that case).

        Raises:
            ValueError: When there is neither text nor an image.
        """
        images = list(images or ())
        if not (text and text.strip()) and not images and not selected_image:
            raise ValueError("Cannot submit an empty message")

        if not self._try_begin_turn():
            return None

        try:
            content = [TextPart(text or "")]
            content.extend(ImagePart(image) for image in images)
            if selected_image:
                content.append(ImagePart(selected_image))
            self.conversation.append(Message(role=USER_ROLE, content=tuple(content)))

            self._state = TurnState.CLASSIFYING
            image = selected_image or (images[0] if images else None)
            decision = decide_route(text or "", has_image=image is not None)
            self.last_decision = decision
            logger.info(
                "Route selected: %s (keyword=%r)", decision.route.value, decision.matched_keyword
            )
            self._state = ROUTE_STATES[decision.route]

            if decision.route is Route.IMAGE_GENERATION:
                reply = await self._run_image_generation(text)
            else:
                reply = await self._run_text_turn(decision.route, text or "", image)

            self.conversation.append(reply)
            return reply
        finally:
            self._end_turn()

    async def _run_image_generation(self, text: str) -> Message:
        self._indicators["image_generating"] = True
        prompt = extract_image_prompt(text)
        try:
            urls = await asyncio.to_thread(self._image_generator, prompt, self.config)
        except ImageGenerationError as exc:
            logger.warning("Image generation failed: %s", exc)
            self.last_error = exc
            self._state = TurnState.IDLE
            return Message.assistant_text(f"{IMAGE_FAILURE_PREFIX} {exc}")
        except Exception as exc:
            logger.exception("Unexpected image generation error")
            self.last_error = exc
            self._state = TurnState.IDLE
            return Message.assistant_text(f"{IMAGE_FAILURE_PREFIX} {exc}")

        self._state = TurnState.IDLE
        parts = [TextPart(IMAGE_GENERATED_TEXT)]
        parts.extend(GeneratedImagePart(url) for url in urls)
        return Message(role=ASSISTANT_ROLE, content=tuple(parts))

    async def _run_text_turn(self, route: Route, text: str, image: str | None) -> Message:
        if route is Route.IMAGE_ANALYSIS:
            try:
                description = await asyncio.to_thread(self._describe_image, image, self.config)
            except Exception:
                logger.exception("Image description failed")
                description = vision.DESCRIPTION_FALLBACK
            return await self._complete(
                prompt_builder.IMAGE_ANALYSIS_SYSTEM_PROMPT,
                prompt_builder.build_image_analysis_prompt(text, description),
            )

        system_prompt = prompt_builder.SYSTEM_PROMPT
        user_prompt = text

        pdf_context = self.conversation.pdf_context
        if pdf_context is not None:
            system_prompt += prompt_builder.build_pdf_grounding(
                pdf_context.file_name, pdf_context.page_count, pdf_context.content
            )

        if route is Route.REALTIME:
            try:
                data = await self.realtime.get_realtime_data()
                system_prompt += prompt_builder.REALTIME_NOTE
                user_prompt = prompt_builder.build_realtime_prompt(
                    text, format_realtime_data_for_ai(data)
                )
            except Exception:
                logger.exception("Real-time lookup failed")
                system_prompt += prompt_builder.REALTIME_FAILURE_NOTE

        elif route is Route.DEEP_SEARCH:
            self._indicators["deep_searching"] = True
            try:
                result = await self.deep_search.perform_deep_search(extract_search_query(text))
                system_prompt += prompt_builder.DEEP_SEARCH_NOTE
                user_prompt = prompt_builder.build_search_prompt(
                    text, format_search_results_for_ai(result)
                )
            except Exception:
                logger.exception("Deep search failed")
                system_prompt += prompt_builder.DEEP_SEARCH_FAILURE_NOTE
            finally:
                self._indicators["deep_searching"] = False

        elif route is Route.LIVE_SEARCH:
            self._indicators["live_searching"] = True
            try:
                result = await self.live_search.perform_live_search(text)
                system_prompt += prompt_builder.LIVE_SEARCH_NOTE
                user_prompt = prompt_builder.build_search_prompt(
                    text, format_live_search_for_ai(result)
                )
            except Exception:
                logger.exception("Live search failed")
                system_prompt += prompt_builder.LIVE_SEARCH_FAILURE_NOTE
            finally:
                self._indicators["live_searching"] = False

        return await self._complete(system_prompt, user_prompt)

    async def _complete(
        self,
        system_prompt: str,
        user_prompt: str,
        temperature: float | None = None,
        max_tokens: int | None = None,
        failure_prefix: str | None = None,
    ) -> Message:
        """Run the completion and convert failures into an assistant message."""
        self._state = TurnState.COMPLETING
        try:
            text = await asyncio.to_thread(
                self._completer, system_prompt, user_prompt, self.config, temperature, max_tokens
            )
        except Exception as exc:
            logger.exception("Completion failed")
            self._state = TurnState.ERRORED
            self.last_error = exc
            failure_text, rate_limited = describe_completion_failure(exc)
            if rate_limited:
                self._rate_limited = True
            if failure_prefix:
                failure_text = f"{failure_prefix} {exc}"
            return Message.assistant_text(failure_text)

        self._state = TurnState.IDLE
        self._rate_limited = False
        return Message.assistant_text(text)

    # =========================================================
    # PDF UPLOAD
    # =========================================================

    async def upload_pdf(
        self,
        data: bytes,
        file_name: str,
        content_type: str | None = None,
    ) -> Message | None:
        """Extract, summarize, and ground the conversation on a PDF.

        Returns:
            The assistant's document analysis, or `None` for non-PDF input or
            when a turn is already in flight.
        """
        if not is_pdf_file(file_name, content_type):
            logger.warning("Rejected non-PDF upload: %s (%s)", file_name, content_type)
            return None

        if not self._try_begin_turn():
            return None

        try:
            self._indicators["pdf_processing"] = True
            if self._pdf_extractor is None:
                result = await asyncio.to_thread(
                    extract_text_from_pdf, data, file_name, content_type
                )
            else:
                result = await asyncio.to_thread(
                    extract_text_from_pdf, data, file_name, content_type, self._pdf_extractor
                )
            summary = generate_pdf_summary(result)
            size_label = format_file_size(len(data))

            self.conversation.append(Message(
                role=USER_ROLE,
                content=(
                    TextPart(
                        f"📄 Uploaded PDF: {file_name} ({result.page_count} pages, {size_label})"
                    ),
                    PdfPart(
                        file_name=file_name,
                        file_size=len(data),
                        page_count=result.page_count,
                        summary=summary,
                        extracted_text=result.text,
                    ),
                ),
            ))
            self.conversation.set_pdf_context(PDFContext(
                file_name=file_name,
                content=result.text,
                page_count=result.page_count,
                summary=summary,
            ))

            if not result.text.strip():
                reply = Message.assistant_text(PDF_READY_TEXT)
            else:
                reply = await self._complete(
                    prompt_builder.PDF_ANALYSIS_SYSTEM_PROMPT,
                    prompt_builder.build_pdf_analysis_prompt(
                        file_name, result.page_count, size_label, result.text
                    ),
                    temperature=PDF_ANALYSIS_TEMPERATURE,
                    max_tokens=PDF_ANALYSIS_MAX_TOKENS,
                    failure_prefix=PDF_FAILURE_PREFIX,
                )
                if reply.text == FALLBACK_RESPONSE:
                    reply = Message.assistant_text(PDF_READY_TEXT)

            self.conversation.append(reply)
            return reply
        finally:
            self._end_turn()

    # =========================================================
    # IMAGE EXPLAIN
    # =========================================================

    async def explain_images(self, images) -> Message | None:
        """Two-stage explanation of uploaded images (classify, then explain).

        Returns:
            The assistant's explanation, or `None` for no images or when a
            turn is already in flight.
        """
        images = list(images or ())
        if not images:
            return None

        if not self._try_begin_turn():
            return None

        try:
            self.conversation.append(Message(
                role=USER_ROLE,
                content=tuple(ImagePart(image) for image in images),
            ))
            self._state = TurnState.IMAGE_ANALYSIS

            try:
                category = await asyncio.to_thread(self._classify_image, images[0], self.config)
                logger.info("Image classified as %s", category.value)
                self._state = TurnState.COMPLETING
                text = await asyncio.to_thread(
                    self._explain_image, images[0], category, self.config
                )
                self._state = TurnState.IDLE
            except Exception as exc:
                logger.exception("Image explanation failed")
                self._state = TurnState.ERRORED
                self.last_error = exc
                text, rate_limited = describe_completion_failure(
                    exc, default=IMAGE_EXPLAIN_FAILURE_TEXT
                )
                if rate_limited:
                    self._rate_limited = True

            reply = Message.assistant_text(text)
            self.conversation.append(reply)
            return reply
        finally:
            self._end_turn()

    # =========================================================
    # CONVERSATION CONTROLS
    # =========================================================

    def undo(self) -> bool:
        """Remove the last exchange; no-op below two messages."""
        return self.conversation.undo()

    def clear(self) -> None:
        """Reset messages, PDF context, and indicators."""
        self.conversation.clear()
        for name in INDICATORS:
            self._indicators[name] = False
        self._rate_limited = False
        self.last_error = None
        self.last_decision = None
        if not self.in_flight:
            self._state = TurnState.IDLE

    def clear_pdf_context(self) -> None:
        self.conversation.clear_pdf_context()

    def stop(self) -> None:
        """Clear busy indicators without cancelling or ungating the in-flight turn."""
        for name in INDICATORS:
            self._indicators[name] = False

"""Routing decision data contracts for `chatmux.core.engine`.

Architectural role:
    Defines the route and turn-state vocabulary shared by the intent router and
    the turn router, plus the decision record returned by
    `chatmux.nlp.intent_router.decide_route`.

Determinism:
    Purely structural and state-free.
"""

from dataclasses import dataclass, field
from enum import Enum


class Route(str, Enum):
    """Execution path selected for one user turn."""

    IMAGE_GENERATION = "image_generation"
    IMAGE_ANALYSIS = "image_analysis"
    REALTIME = "realtime"
    DEEP_SEARCH = "deep_search"
    LIVE_SEARCH = "live_search"
    PLAIN_CHAT = "plain_chat"


class TurnState(str, Enum):
    """Lifecycle states of the turn router.

    `IDLE -> CLASSIFYING -> <path> -> COMPLETING -> IDLE`, or `ERRORED` when the
    completion call fails. `ERRORED` is left on the next submitted turn.
    """

    IDLE = "idle"
    CLASSIFYING = "classifying"
    IMAGE_GEN = "image_gen"
    IMAGE_ANALYSIS = "image_analysis"
    DEEP_SEARCH = "deep_search"
    LIVE_SEARCH = "live_search"
    REALTIME_LOOKUP = "realtime_lookup"
    PLAIN_CHAT = "plain_chat"
    COMPLETING = "completing"
    ERRORED = "errored"


ROUTE_STATES = {
    Route.IMAGE_GENERATION: TurnState.IMAGE_GEN,
    Route.IMAGE_ANALYSIS: TurnState.IMAGE_ANALYSIS,
    Route.REALTIME: TurnState.REALTIME_LOOKUP,
    Route.DEEP_SEARCH: TurnState.DEEP_SEARCH,
    Route.LIVE_SEARCH: TurnState.LIVE_SEARCH,
    Route.PLAIN_CHAT: TurnState.PLAIN_CHAT,
}


@dataclass
class RoutingDecision:
    """Route selection produced by the intent router.

    Attributes:
        route: Selected execution path.
        matched_keyword: Trigger phrase that selected a keyword route, if any.
        evaluated: Classifier names evaluated before the decision was made,
            in evaluation order. Classifiers after the winning one are not run.
    """

    route: Route = Route.PLAIN_CHAT
    matched_keyword: str | None = None
    evaluated: list[str] = field(default_factory=list)

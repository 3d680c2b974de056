"""Intent router producing `RoutingDecision` for the turn router.

Precedence (first match wins, later classifiers are not evaluated):
1. Image-generation keywords preempt everything, including attached images.
2. An attached or selected image routes to image analysis.
3. Real-time keywords.
4. Deep-search keywords.
5. Live-search keywords.
6. Otherwise plain chat.

Because several tables overlap ("recent developments" is both deep and live,
"real time" is both real-time and live), this order is the only thing that
settles ambiguous text.

Determinism:
- Pure function of `(text, has_image)`.
"""

from chatmux.core.routing_types import Route, RoutingDecision
from chatmux.nlp.keyword_classifier import IntentCategory, match_keyword


# Keyword routes evaluated after the image checks, in precedence order.
KEYWORD_ROUTE_ORDER = (
    (IntentCategory.REALTIME, Route.REALTIME),
    (IntentCategory.DEEP_SEARCH, Route.DEEP_SEARCH),
    (IntentCategory.LIVE_SEARCH, Route.LIVE_SEARCH),
)


def decide_route(text: str, has_image: bool = False) -> RoutingDecision:
    """Classify one user turn into an execution route.

    Args:
        text: User text (may be empty for image-only turns).
        has_image: Whether an image is attached or selected.

    Returns:
        `RoutingDecision` with the route, the matched trigger phrase, and the
        classifiers evaluated to reach it.
    """
    decision = RoutingDecision()

    decision.evaluated.append(IntentCategory.IMAGE_GENERATION.value)
    keyword = match_keyword(text, IntentCategory.IMAGE_GENERATION)
    if keyword:
        decision.route = Route.IMAGE_GENERATION
        decision.matched_keyword = keyword
        return decision

    if has_image:
        decision.route = Route.IMAGE_ANALYSIS
        return decision

    for category, route in KEYWORD_ROUTE_ORDER:
        decision.evaluated.append(category.value)
        keyword = match_keyword(text, category)
        if keyword:
            decision.route = route
            decision.matched_keyword = keyword
            return decision

    return decision

"""Line-count cap applied to resolver output (core domain)."""

from __future__ import annotations

from core.models import GuardedItems, ResolutionResult

MAX_LINES = 50
SPAM_WARNING = (
    f"Sorry, but to prevent spam, we limit the number of lines displayed at {MAX_LINES}"
)


def apply(result: ResolutionResult) -> GuardedItems:
    """Drop every item when the result renders more than MAX_LINES lines."""

    if result.total_lines > MAX_LINES:
        return GuardedItems(items=(), warning=SPAM_WARNING)
    return GuardedItems(items=tuple(result.items), warning=None)

"""Reply rendering helpers.

Keeping rendering here prevents drift between transports and keeps code
excerpts consistent regardless of delivery channel.
"""

from __future__ import annotations

import re
from typing import Iterable, Optional

from core.models import LineDatum

_NON_WHITESPACE = re.compile(r"\S")
FRAGMENT_SEPARATOR = "\n"


def _class_attribute(item: LineDatum) -> str:
    # Whitespace-only excerpts must not advertise a language.
    if _NON_WHITESPACE.search(item.to_display):
        return f'class="language-{item.extension}"'
    return " "


def render_fragment(item: LineDatum) -> str:
    """Wrap one excerpt in a <pre><code> block tagged with its language."""

    return f"<pre><code {_class_attribute(item)}>{item.to_display}</code></pre>"


def render(items: Iterable[LineDatum], warning: Optional[str]) -> Optional[str]:
    """Return the reply markup, or None when there is nothing to send."""

    if warning is not None:
        return warning

    message = FRAGMENT_SEPARATOR.join(render_fragment(item) for item in items)
    return message or None

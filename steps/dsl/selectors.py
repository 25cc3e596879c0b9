"""Turn a step's selector and select type into a query expression."""

from __future__ import annotations

from typing import Tuple

from .models import Step

CONTENT_TAGS: Tuple[str, ...] = (
    "input",
    "button",
    ".alert",
    "a",
    "p",
    "h1",
    "h2",
    "h3",
    "h4",
    "h5",
    "h6",
)


def content_clause(tag: str, text: str) -> str:
    return f'{tag}:text-is("{text}")'


def build_selector(step: Step) -> str:
    """Content mode matches any allow-listed tag whose text equals the selector.

    ``:text-is`` compares case-sensitively, as ``cy.contains`` does; only
    surrounding whitespace is normalised.

    The text is inserted as-is; a selector the query engine cannot parse
    fails when it is queried.
    """

    if step.select_type == "content":
        return ", ".join(content_clause(tag, step.selector) for tag in CONTENT_TAGS)
    return step.selector

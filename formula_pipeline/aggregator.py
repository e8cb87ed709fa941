"""
Error aggregation and formatting.

Messages stay structured until the very end; only format_report turns them
into the text block a host displays.
"""

from typing import Iterable, List

from .models import ErrorReport, ValidationMessage

ERROR_HEADER = "ERROR:"
BULLET = " • "


def format_report(texts: Iterable[str]) -> str:
    """
    Format message texts as a bulleted error block.

    Args:
        texts: Non-empty message texts in report order

    Returns:
        "ERROR:" followed by one bullet line per message, or "" when there
        are no messages
    """
    lines = [f"{BULLET}{text}" for text in texts]
    if not lines:
        return ""
    return "\n".join([ERROR_HEADER] + lines)


def aggregate_errors(messages: Iterable[ValidationMessage]) -> ErrorReport:
    """
    Merge validation messages into one report.

    Empty messages are dropped and exact duplicate texts are kept only at
    their first occurrence. Order is otherwise preserved.

    Args:
        messages: Messages in argument declaration order

    Returns:
        ErrorReport with the surviving messages and their formatted text
    """
    seen = set()
    kept: List[ValidationMessage] = []

    for message in messages:
        if not message.text or message.text in seen:
            continue
        seen.add(message.text)
        kept.append(message)

    return ErrorReport(
        messages=tuple(kept),
        combined_text=format_report(message.text for message in kept),
    )

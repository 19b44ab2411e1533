"""
Plain-text cleanup for feed descriptions.
"""

import html
import re

TRUNCATION_MARKER = " ...\n"

_TAG_RE = re.compile(r"<[^>]+>")


def strip_markup(raw: str | None) -> str:
    """
    Remove markup tags and decode character entities.

    Tags are removed before entities are decoded so that escaped markup
    such as ``&lt;b&gt;`` survives as literal text.

    Parameters
    ----------
    raw : str | None
        Text possibly containing HTML/XML.

    Returns
    -------
    str
        Plain text.
    """
    if not raw:
        return ""
    return html.unescape(_TAG_RE.sub("", raw))


def truncate_to_summary(text: str) -> str:
    """
    Collapse a multi-line description to its first line.

    Parameters
    ----------
    text : str
        Description text.

    Returns
    -------
    str
        ``text`` unchanged if it is a single line or already summarized,
        otherwise the first line followed by the truncation marker.
    """
    head, sep, rest = text.partition("\n")
    if not sep:
        return text
    if not rest and text.endswith(TRUNCATION_MARKER):
        return text
    return f"{head}{TRUNCATION_MARKER}"


def sanitize_description(raw: str | None) -> str:
    """Turn a raw feed description into a single plain-text summary line."""
    return truncate_to_summary(strip_markup(raw))

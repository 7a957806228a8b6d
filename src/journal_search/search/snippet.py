"""Restricted-markup rendering for search snippets.

ts_headline output is user content with literal <mark>...</mark> spans around
matches. Only those two tags may reach a renderer as markup; everything else
is escaped to its entity form.
"""

import re

from markupsafe import escape

MARK_TAG = re.compile(r"(</?mark>)", re.IGNORECASE)


def sanitize_snippet(snippet: str) -> str:
    """Escape a highlighted snippet, keeping only <mark> and </mark> as tags.

    >>> sanitize_snippet("<b>x</b> <mark>hit</mark>")
    '&lt;b&gt;x&lt;/b&gt; <mark>hit</mark>'
    """
    if not snippet:
        return ""

    parts = MARK_TAG.split(snippet)
    rendered = []
    for part in parts:
        if MARK_TAG.fullmatch(part):
            rendered.append(part.lower())
        else:
            rendered.append(str(escape(part)))
    return "".join(rendered)


def strip_marks(snippet: str) -> str:
    """Plain text version of a snippet, for terminals and logs."""
    return MARK_TAG.sub("", snippet or "")

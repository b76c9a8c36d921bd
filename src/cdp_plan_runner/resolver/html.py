"""Reduce page markup before it is sent to a language model."""

from __future__ import annotations

import re

_SCRIPT_RE = re.compile(r"<script\b[^<]*(?:(?!</script>)<[^<]*)*</script>", re.IGNORECASE)
_STYLE_RE = re.compile(r"<style\b[^<]*(?:(?!</style>)<[^<]*)*</style>", re.IGNORECASE)
_COMMENT_RE = re.compile(r"<!--[\s\S]*?-->")
_BODY_RE = re.compile(r"<body[^>]*>([\s\S]*?)</body>", re.IGNORECASE)
_FORM_RE = re.compile(r"<form[^>]*>[\s\S]*?</form>", re.IGNORECASE)
_INTERACTIVE_RE = re.compile(
    r"<(input|button|a|select|textarea)[^>]*>[\s\S]*?(?:</\1>|/?>)",
    re.IGNORECASE,
)


def clean_html(html: str, max_chars: int = 50000) -> str:
    """Strip scripts, styles and comments; shrink oversized documents.

    Documents above ``max_chars`` are reduced to their body, and if still too large to
    forms and interactive elements followed by a prefix of the remaining markup.
    """

    cleaned = _SCRIPT_RE.sub("", html)
    cleaned = _STYLE_RE.sub("", cleaned)
    cleaned = _COMMENT_RE.sub("", cleaned)
    if len(cleaned) <= max_chars:
        return cleaned

    body = _BODY_RE.search(cleaned)
    if body and body.group(1):
        cleaned = body.group(1)
    if len(cleaned) <= max_chars:
        return cleaned

    forms = [match.group(0) for match in _FORM_RE.finditer(cleaned)]
    interactive = [match.group(0) for match in _INTERACTIVE_RE.finditer(cleaned)]
    sample = cleaned[: max_chars * 2 // 5]
    return "\n".join(
        [
            '<div class="important-content">',
            *forms,
            *interactive,
            f"{sample}...",
            "</div>",
        ]
    )

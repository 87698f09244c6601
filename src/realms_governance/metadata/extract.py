"""Reduce a fetched description document to ``{title, description}``.

Description links point at JSON documents, JSON-encoded strings, plain text or
rendered HTML depending on the tool that filed the proposal.
"""
from __future__ import annotations

import html
import json
import re
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Any
from urllib.parse import urlparse

DESCRIPTION_FIELDS: tuple[str, ...] = (
    "description",
    "body",
    "content",
    "text",
    "details",
    "summary",
    "proposalDescription",
    "proposal_description",
)
NESTED_SECTIONS: tuple[str, ...] = ("proposal", "metadata")
TITLE_FIELDS: tuple[str, ...] = ("title", "name")

MARKUP_DESCRIPTION_CHARS = 1500
TEXT_DESCRIPTION_CHARS = 2000
MIN_EXTRACTED_HTML_CHARS = 20

_HASH_LIKE = re.compile(r"^[A-Za-z0-9_-]{40,}$")
_TAG = re.compile(r"<[^>]+>")
_BREAK = re.compile(r"<br\s*/?>", re.IGNORECASE)
_PARAGRAPH_END = re.compile(r"</p>", re.IGNORECASE)
_EXTRA_NEWLINES = re.compile(r"\n{3,}")
_WHITESPACE = re.compile(r"\s+")
_SCRIPT_OR_STYLE = re.compile(r"<(script|style)\b.*?</\1>", re.IGNORECASE | re.DOTALL)
_BODY = re.compile(r"<body[^>]*>(.*?)</body>", re.IGNORECASE | re.DOTALL)
_MARKDOWN_ARTICLE = re.compile(
    r"<article[^>]*class=\"[^\"]*markdown-body[^\"]*\"[^>]*>(.*?)</article>",
    re.IGNORECASE | re.DOTALL,
)


@dataclass(slots=True, frozen=True)
class ProposalMetadata:
    title: str = ""
    description: str = ""

    def as_dict(self) -> dict[str, str]:
        return {"title": self.title, "description": self.description}


def is_allowed_metadata_url(url: str, allowed_domains: Iterable[str]) -> bool:
    try:
        parsed = urlparse(url)
    except ValueError:
        return False
    if parsed.scheme not in {"http", "https"} or not parsed.hostname:
        return False
    host = parsed.hostname.lower()
    return any(host == domain or host.endswith(f".{domain}") for domain in allowed_domains)


def looks_like_reference(value: str) -> bool:
    """True for links and content hashes, which are pointers rather than prose."""
    trimmed = value.strip()
    if trimmed.startswith(("http://", "https://", "ipfs://")):
        return True
    return bool(_HASH_LIKE.match(trimmed))


def truncate(text: str, limit: int) -> str:
    if len(text) <= limit:
        return text
    return f"{text[:limit]}..."


def strip_markup(text: str) -> str:
    stripped = _BREAK.sub("\n", text)
    stripped = _PARAGRAPH_END.sub("\n\n", stripped)
    stripped = _TAG.sub("", stripped)
    stripped = html.unescape(stripped)
    return _EXTRA_NEWLINES.sub("\n\n", stripped).strip()


def _collapse(fragment: str) -> str:
    return _WHITESPACE.sub(" ", html.unescape(_TAG.sub(" ", fragment))).strip()


def is_html_document(raw_text: str, content_type: str = "") -> bool:
    head = raw_text.lstrip()[:15].lower()
    return "text/html" in content_type.lower() or head.startswith(("<!doctype", "<html"))


def _text_from_html_document(document: str) -> str:
    article = _MARKDOWN_ARTICLE.search(document)
    if article:
        return _collapse(article.group(1))
    body = _BODY.search(_SCRIPT_OR_STYLE.sub("", document))
    if body:
        return _collapse(body.group(1))
    return ""


def _probe_description(section: Mapping[str, Any]) -> str:
    for name in DESCRIPTION_FIELDS:
        value = section.get(name)
        if isinstance(value, str) and value.strip() and not looks_like_reference(value):
            return value.strip()
    return ""


def _probe_title(document: Mapping[str, Any]) -> str:
    sections: list[Mapping[str, Any]] = [document]
    nested = document.get("proposal")
    if isinstance(nested, Mapping):
        sections.append(nested)
    for section in sections:
        for name in TITLE_FIELDS:
            value = section.get(name)
            if isinstance(value, str) and value.strip():
                return value.strip()
    return ""


def metadata_from_document(document: Mapping[str, Any], *, max_chars: int = TEXT_DESCRIPTION_CHARS) -> ProposalMetadata:
    description = _probe_description(document)
    for section_name in NESTED_SECTIONS:
        if description:
            break
        section = document.get(section_name)
        if isinstance(section, Mapping):
            description = _probe_description(section)
    return ProposalMetadata(title=_probe_title(document), description=truncate(description, max_chars))


def extract_description(
    raw_text: str,
    *,
    content_type: str = "",
    max_chars: int = TEXT_DESCRIPTION_CHARS,
) -> ProposalMetadata:
    """Best-effort title/description extraction; returns empty fields when nothing readable is found."""
    markup_limit = min(max_chars, MARKUP_DESCRIPTION_CHARS)

    if is_html_document(raw_text, content_type):
        text = _text_from_html_document(raw_text)
        if len(text) > MIN_EXTRACTED_HTML_CHARS:
            return ProposalMetadata(description=truncate(text, max_chars))
        return ProposalMetadata()

    try:
        document = json.loads(raw_text)
    except ValueError:
        stripped = raw_text.strip()
        if stripped and not stripped.startswith(("http", "<")):
            return ProposalMetadata(description=stripped[:max_chars])
        if stripped.startswith("<") or "<p>" in stripped or "<div>" in stripped:
            return ProposalMetadata(description=truncate(strip_markup(stripped), markup_limit))
        return ProposalMetadata()

    if isinstance(document, str):
        text = document
        if "<" in text and ">" in text:
            text = strip_markup(text)
        return ProposalMetadata(description=truncate(text.strip(), markup_limit))
    if isinstance(document, Mapping):
        return metadata_from_document(document, max_chars=max_chars)
    return ProposalMetadata()

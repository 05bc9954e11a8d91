# apps/frame/app/summary.py
#
# Summary Fetcher
# ---------------
# Looks a search term up on the Wikipedia extracts API and squeezes the intro
# down to something that fits on a 600x315 card: two sentences, 250 chars max.
#
# CONTRACT:
# - fetch() NEVER raises. Every failure becomes a SummaryResult whose kind
#   tells the controller what happened; the text is always displayable.
# - One attempt per request. No retries, bounded timeout.

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional

import httpx

log = logging.getLogger("searchcast.summary")

MAX_SUMMARY_CHARS = 250
MAX_SENTENCES = 2
SENTENCE_DELIMITER = ". "
ELLIPSIS = "..."

EMPTY_INPUT_TEXT = "Please enter a search term."
UPSTREAM_ERROR_TEXT = "Error connecting to Wikipedia."


def _not_found_text(term: str) -> str:
    return f'Sorry, no results found for "{term}".'


class SummaryKind(str, Enum):
    ok = "ok"
    empty_input = "empty_input"
    not_found = "not_found"
    upstream_error = "upstream_error"


@dataclass(frozen=True)
class SummaryResult:
    kind: SummaryKind
    text: str

    @property
    def is_error(self) -> bool:
        return self.kind is not SummaryKind.ok


def summarize(extract: str) -> str:
    """
    Reduce an extract to at most two sentences and 250 characters.

    "A is a. B is b. C is c." -> "A is a. B is b."
    Anything longer than the cap is cut to 247 chars + "...".
    """
    sentences = [s for s in extract.split(SENTENCE_DELIMITER) if s.strip()]
    kept = sentences[:MAX_SENTENCES]
    summary = SENTENCE_DELIMITER.join(kept)
    if len(kept) > 1 and not summary.endswith("."):
        summary += "."
    if len(summary) > MAX_SUMMARY_CHARS:
        summary = summary[: MAX_SUMMARY_CHARS - len(ELLIPSIS)] + ELLIPSIS
    return summary


def _first_page(data: Any) -> tuple[str, dict]:
    # {"query": {"pages": {"<id>": {...}}}}; "-1" means no such page
    pages = data["query"]["pages"]
    page_id = next(iter(pages), None)
    if page_id is None:
        raise KeyError("pages")
    return page_id, pages[page_id] or {}


class SummaryFetcher:
    """Wikipedia intro lookups with a bounded timeout."""

    def __init__(
        self,
        api_url: str,
        timeout: float = 5.0,
        user_agent: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.api_url = api_url
        self.timeout = timeout
        self.headers = {"User-Agent": user_agent} if user_agent else {}
        self._transport = transport

    @staticmethod
    def query_params(term: str) -> dict[str, str]:
        return {
            "action": "query",
            "format": "json",
            "prop": "extracts",
            "exintro": "true",
            "explaintext": "true",
            "redirects": "1",
            "titles": term,
        }

    async def _lookup(self, term: str) -> Any:
        async with httpx.AsyncClient(
            timeout=self.timeout,
            headers=self.headers,
            transport=self._transport,
        ) as client:
            r = await client.get(self.api_url, params=self.query_params(term))
            r.raise_for_status()
            return r.json()

    async def fetch(self, term: Optional[str]) -> SummaryResult:
        if not term or not term.strip():
            return SummaryResult(SummaryKind.empty_input, EMPTY_INPUT_TEXT)

        try:
            data = await self._lookup(term)
            page_id, page = _first_page(data)
        except (httpx.HTTPError, ValueError, KeyError, TypeError) as e:
            log.warning("summary.failed term=%r error=%s: %s", term, type(e).__name__, e)
            return SummaryResult(SummaryKind.upstream_error, UPSTREAM_ERROR_TEXT)

        extract = page.get("extract") if isinstance(page, dict) else None
        if page_id == "-1" or not isinstance(extract, str) or not extract:
            log.info("summary.lookup term=%r kind=%s", term, SummaryKind.not_found.value)
            return SummaryResult(SummaryKind.not_found, _not_found_text(term))

        text = summarize(extract)
        if not text:
            # extract was only delimiters/whitespace
            return SummaryResult(SummaryKind.not_found, _not_found_text(term))

        log.info("summary.lookup term=%r kind=%s chars=%d", term, SummaryKind.ok.value, len(text))
        return SummaryResult(SummaryKind.ok, text)

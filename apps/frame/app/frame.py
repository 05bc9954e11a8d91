# apps/frame/app/frame.py
#
# Frame Controller
# ----------------
# One frame interaction in, one HTML document out.
#
#   payload -> decide_action() -> ("initial" | "search")
#           -> search: SummaryFetcher.fetch(term)  (tagged result, never raises)
#           -> image_url(base, text, is_error)
#           -> frame.html with the fc:frame meta tags
#
# The payload is UNTRUSTED and may be missing or garbage. Anything we can't
# read is treated as the initial frame, never as an error.

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, List, Optional, Tuple
from urllib.parse import quote

from jinja2 import Environment, FileSystemLoader, select_autoescape
from pydantic import BaseModel, ConfigDict, StrictInt, ValidationError, field_validator

from apps.frame.app.config import Settings
from apps.frame.app.summary import SummaryFetcher

log = logging.getLogger("searchcast.frame")

INITIAL_TEXT = "Search for anything!"
FAILURE_TEXT = "Something went wrong. Please try again."
INPUT_PLACEHOLDER = "Enter search term..."
SEARCH_LABEL = "Search \U0001F50D"
SEARCH_BUTTON = 1
TEMPLATE_DIR = Path(__file__).parent / "templates"


# -----------------------------------------------------------------------------
# Payload models (only the fields we read)
# -----------------------------------------------------------------------------

class UntrustedData(BaseModel):
    model_config = ConfigDict(extra="ignore")

    inputText: Optional[str] = None
    buttonIndex: Optional[StrictInt] = None

    @field_validator("inputText")
    @classmethod
    def _encodable(cls, v: Optional[str]) -> Optional[str]:
        # lone surrogates survive json.loads but cannot be written back out
        if v is not None:
            v.encode("utf-8")
        return v


class FramePayload(BaseModel):
    model_config = ConfigDict(extra="ignore")

    untrustedData: Optional[UntrustedData] = None


class FrameAction(str, Enum):
    initial = "initial"
    search = "search"


@dataclass(frozen=True)
class FramePage:
    html: str
    status_code: int
    action: FrameAction
    text: str
    is_error: bool


# -----------------------------------------------------------------------------
# Pure helpers
# -----------------------------------------------------------------------------

def parse_payload(raw: Any) -> Optional[FramePayload]:
    if not isinstance(raw, dict):
        return None
    try:
        return FramePayload.model_validate(raw)
    except ValidationError:
        return None


def decide_action(payload: Optional[FramePayload]) -> Tuple[FrameAction, str]:
    """Return (action, input_text). Search only for button 1 with real input."""
    data = payload.untrustedData if payload else None
    if data is None:
        return FrameAction.initial, ""
    text = data.inputText or ""
    if data.buttonIndex == SEARCH_BUTTON and text.strip():
        return FrameAction.search, text
    return FrameAction.initial, text


def image_url(base_url: str, text: str, is_error: bool) -> str:
    return f"{base_url}/image?text={quote(text, safe='')}&error={'true' if is_error else 'false'}"


# -----------------------------------------------------------------------------
# Controller
# -----------------------------------------------------------------------------

_templates = Environment(
    loader=FileSystemLoader(str(TEMPLATE_DIR)),
    autoescape=select_autoescape(["html"]),
)


class FrameController:
    def __init__(self, settings: Settings, fetcher: SummaryFetcher) -> None:
        self.settings = settings
        self.fetcher = fetcher
        self.base_url = settings.resolved_base_url

    @property
    def post_url(self) -> str:
        return f"{self.base_url}/"

    @property
    def landing_image_url(self) -> str:
        return f"{self.base_url}/public/{self.settings.icon_file}"

    def render(
        self,
        image: str,
        intro: List[str],
        search_text: Optional[str] = None,
        result_text: Optional[str] = None,
    ) -> str:
        return _templates.get_template("frame.html").render(
            title=self.settings.frame_title,
            image_url=image,
            input_placeholder=INPUT_PLACEHOLDER,
            search_label=SEARCH_LABEL,
            profile_id=self.settings.profile_id,
            profile_url=self.settings.profile_url,
            post_url=self.post_url,
            intro=intro,
            show_search=search_text is not None,
            search_text=search_text,
            result_text=result_text,
        )

    def landing(self) -> str:
        return self.render(
            self.landing_image_url,
            intro=[
                f"Welcome to {self.settings.frame_title}. "
                "Cast this URL in a Farcaster client to use the frame.",
                "Or, paste this URL into a Farcaster frame validator.",
                "Your frame should show an input field and two buttons.",
            ],
        )

    async def _respond(self, raw: Any) -> FramePage:
        action, search_text = decide_action(parse_payload(raw))

        if action is FrameAction.search:
            result = await self.fetcher.fetch(search_text)
            text, is_error = result.text, result.is_error
            log.info("frame.action action=%s kind=%s error=%s", action.value, result.kind.value, is_error)
        else:
            text, is_error = INITIAL_TEXT, False
            log.info("frame.action action=%s", action.value)

        html = self.render(
            image_url(self.base_url, text, is_error),
            intro=["This is a Farcaster Frame. View it in a Farcaster client."],
            search_text=search_text,
            result_text=text if action is FrameAction.search else "Awaiting search...",
        )
        return FramePage(html=html, status_code=200, action=action, text=text, is_error=is_error)

    async def handle(self, raw: Any) -> FramePage:
        try:
            return await self._respond(raw)
        except Exception:
            log.exception("frame.failed")
            return FramePage(
                html=self.render(
                    image_url(self.base_url, FAILURE_TEXT, True),
                    intro=[FAILURE_TEXT],
                ),
                status_code=500,
                action=FrameAction.initial,
                text=FAILURE_TEXT,
                is_error=True,
            )

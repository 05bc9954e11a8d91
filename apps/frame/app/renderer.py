# apps/frame/app/renderer.py
#
# ROLE:
# - Turns display text into the 600x315 (1.91:1) frame card.
#   - layout()     : wraps/shrinks text into the fixed box
#   - render_svg() : vector rendition of that layout
#   - render_png() : Pillow raster of the same layout (what /image serves)
#
# NOTES:
# - Two palettes only: success (blue) and error (red).
# - The font is read from disk ONCE at startup and handed in as bytes.
#   Missing font is not fatal: we fall back to Pillow's default font.

from __future__ import annotations

import html
import logging
from dataclasses import dataclass
from io import BytesIO
from pathlib import Path
from typing import Dict, List, Optional, Union

from PIL import Image, ImageDraw, ImageFont

log = logging.getLogger("searchcast.renderer")

CARD_WIDTH = 600
CARD_HEIGHT = 315
BORDER = 5
PADDING = 30
LINE_HEIGHT = 1.5
FONT_SIZE = 24
MIN_FONT_SIZE = 14
FONT_STEP = 2
ELLIPSIS = "..."

_Font = Union[ImageFont.FreeTypeFont, ImageFont.ImageFont]


@dataclass(frozen=True)
class Palette:
    background: str
    foreground: str
    border: str


SUCCESS_PALETTE = Palette(background="#e3f2fd", foreground="#0d47a1", border="#0d47a1")
ERROR_PALETTE = Palette(background="#ffebee", foreground="#c62828", border="#c62828")


@dataclass(frozen=True)
class CardLayout:
    palette: Palette
    lines: List[str]
    font_size: int
    width: int = CARD_WIDTH
    height: int = CARD_HEIGHT

    @property
    def line_height(self) -> float:
        return self.font_size * LINE_HEIGHT

    def baseline_offsets(self) -> List[float]:
        """Top y of each line, block centered vertically."""
        block = len(self.lines) * self.line_height
        top = (self.height - block) / 2
        pad = (self.line_height - self.font_size) / 2
        return [top + i * self.line_height + pad for i in range(len(self.lines))]


def parse_error_flag(value: Optional[str]) -> bool:
    return value == "true"


def palette_for(error: bool) -> Palette:
    return ERROR_PALETTE if error else SUCCESS_PALETTE


def load_font(path: Union[str, Path]) -> Optional[bytes]:
    """Read the card font once. Returns None (and logs) if it can't be read."""
    try:
        return Path(path).read_bytes()
    except OSError as e:
        log.error("font.missing path=%s error=%s", path, e)
        return None


class CardRenderer:
    def __init__(self, font_data: Optional[bytes] = None) -> None:
        self.font_data = font_data
        self._fonts: Dict[int, _Font] = {}

    # -------------------------------------------------------------------
    # fonts / measuring
    # -------------------------------------------------------------------

    def font(self, size: int) -> _Font:
        f = self._fonts.get(size)
        if f is None:
            if self.font_data:
                try:
                    f = ImageFont.truetype(BytesIO(self.font_data), size)
                except OSError as e:
                    # unreadable font bytes: degrade to default, once
                    log.error("font.invalid size=%s error=%s", size, e)
                    self.font_data = None
                    f = ImageFont.load_default(size=size)
            else:
                f = ImageFont.load_default(size=size)
            self._fonts[size] = f
        return f

    @staticmethod
    def _fit_word(word: str, font: _Font, max_width: float) -> List[str]:
        # hard-break a single word that is wider than the box
        pieces: List[str] = []
        cur = ""
        for ch in word:
            if cur and font.getlength(cur + ch) > max_width:
                pieces.append(cur)
                cur = ch
            else:
                cur += ch
        if cur:
            pieces.append(cur)
        return pieces

    def wrap(self, text: str, font: _Font, max_width: float) -> List[str]:
        lines: List[str] = []
        cur = ""
        for word in text.split():
            candidate = f"{cur} {word}" if cur else word
            if font.getlength(candidate) <= max_width:
                cur = candidate
                continue
            if cur:
                lines.append(cur)
            if font.getlength(word) <= max_width:
                cur = word
            else:
                *full, cur = self._fit_word(word, font, max_width)
                lines.extend(full)
        if cur:
            lines.append(cur)
        return lines

    def _ellipsize(self, line: str, font: _Font, max_width: float) -> str:
        while line and font.getlength(line + ELLIPSIS) > max_width:
            line = line[:-1]
        return line.rstrip() + ELLIPSIS

    # -------------------------------------------------------------------
    # layout
    # -------------------------------------------------------------------

    def layout(self, text: str, error: bool = False) -> CardLayout:
        inner_w = CARD_WIDTH - 2 * (BORDER + PADDING)
        inner_h = CARD_HEIGHT - 2 * (BORDER + PADDING)

        size = FONT_SIZE
        while True:
            font = self.font(size)
            lines = self.wrap(text, font, inner_w)
            max_lines = max(1, int(inner_h // (size * LINE_HEIGHT)))
            if len(lines) <= max_lines:
                break
            if size - FONT_STEP < MIN_FONT_SIZE:
                lines = lines[:max_lines]
                lines[-1] = self._ellipsize(lines[-1], font, inner_w)
                break
            size -= FONT_STEP

        return CardLayout(palette=palette_for(error), lines=lines, font_size=size)

    # -------------------------------------------------------------------
    # output
    # -------------------------------------------------------------------

    def render_svg(self, text: str, error: bool = False) -> str:
        card = self.layout(text, error)
        p = card.palette
        half = BORDER / 2
        tspans = "\n".join(
            f'    <tspan x="{card.width / 2:g}" y="{y + card.font_size:g}">{html.escape(line)}</tspan>'
            for line, y in zip(card.lines, card.baseline_offsets())
        )
        return (
            f'<svg xmlns="http://www.w3.org/2000/svg" width="{card.width}" height="{card.height}" '
            f'viewBox="0 0 {card.width} {card.height}">\n'
            f'  <rect x="{half:g}" y="{half:g}" width="{card.width - BORDER}" height="{card.height - BORDER}" '
            f'fill="{p.background}" stroke="{p.border}" stroke-width="{BORDER}"/>\n'
            f'  <text font-family="Inter, sans-serif" font-size="{card.font_size}" '
            f'fill="{p.foreground}" text-anchor="middle">\n'
            f"{tspans}\n"
            f"  </text>\n"
            f"</svg>\n"
        )

    def render_png(self, text: str, error: bool = False) -> bytes:
        card = self.layout(text, error)
        p = card.palette

        img = Image.new("RGB", (card.width, card.height), p.background)
        draw = ImageDraw.Draw(img)
        draw.rectangle(
            (0, 0, card.width - 1, card.height - 1),
            outline=p.border,
            width=BORDER,
        )

        font = self.font(card.font_size)
        for line, y in zip(card.lines, card.baseline_offsets()):
            x = (card.width - font.getlength(line)) / 2
            draw.text((x, y), line, fill=p.foreground, font=font)

        buf = BytesIO()
        img.save(buf, format="PNG")
        return buf.getvalue()

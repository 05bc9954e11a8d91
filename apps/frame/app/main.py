# apps/frame/app/main.py
#
# SEARCHCAST FRAME SERVICE
#
# REQUEST FLOW (every request is independent, nothing is shared but config
# and the font bytes loaded at startup):
#
#   POST /        -> FrameController.handle()
#                     - button 1 + non-empty input -> Wikipedia summary
#                     - anything else              -> "Search for anything!"
#                     - emits HTML whose fc:frame:image points at /image?...
#
#   GET  /image   -> CardRenderer.render_png()
#                     - 600x315 PNG, blue palette or red (error=true)
#                     - render failure -> public/icon.png -> 500 text/plain
#
#   GET  /        -> landing frame (static icon image)
#
# ENV: see apps/frame/app/config.py (BASE_URL / VERCEL_URL, PROFILE_ID, ...)
#
# Run:
#   uvicorn apps.frame.app.main:app --port 3000

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from fastapi import FastAPI, Query, Request
from fastapi.responses import FileResponse, HTMLResponse, PlainTextResponse, Response
from fastapi.staticfiles import StaticFiles

from apps.frame.app.config import Settings, settings as default_settings
from apps.frame.app.frame import FrameController
from apps.frame.app.renderer import CardRenderer, load_font, parse_error_flag
from apps.frame.app.summary import SummaryFetcher

VERSION = "0.1.0"
DEFAULT_IMAGE_TEXT = "SearchCast"

log = logging.getLogger("searchcast.app")


# -----------------------------------------------------------------------------
# Logging
# -----------------------------------------------------------------------------

def configure_logging(cfg: Settings) -> None:
    level = getattr(logging, cfg.log_level.upper(), logging.INFO)
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s %(message)s",
    )
    # LOG_EVENTS=false keeps warnings/errors but drops the per-request events
    logging.getLogger("searchcast").setLevel(level if cfg.log_events else max(level, logging.WARNING))


# -----------------------------------------------------------------------------
# App factory
# -----------------------------------------------------------------------------

def create_app(
    cfg: Optional[Settings] = None,
    fetcher: Optional[SummaryFetcher] = None,
    renderer: Optional[CardRenderer] = None,
) -> FastAPI:
    cfg = cfg or default_settings
    configure_logging(cfg)

    if fetcher is None:
        fetcher = SummaryFetcher(
            cfg.wikipedia_api_url,
            timeout=cfg.http_timeout,
            user_agent=cfg.user_agent,
        )
    if renderer is None:
        renderer = CardRenderer(load_font(cfg.font_path))

    app = FastAPI(
        title=cfg.frame_title,
        version=VERSION,
        description=(
            "Farcaster Frame: search box -> Wikipedia intro -> 600x315 PNG card.\n"
            "POST / is the frame callback, GET /image renders the card."
        ),
    )
    app.state.settings = cfg
    app.state.controller = FrameController(cfg, fetcher)
    app.state.renderer = renderer

    public_dir = Path(cfg.public_dir)
    if public_dir.is_dir():
        app.mount("/public", StaticFiles(directory=str(public_dir)), name="public")
    else:
        log.warning("public dir missing path=%s; /public and icon fallback disabled", public_dir)

    _register_routes(app)
    return app


# -----------------------------------------------------------------------------
# Routes
# -----------------------------------------------------------------------------

def _image_headers(cfg: Settings) -> dict[str, str]:
    return {"Cache-Control": f"public, max-age={cfg.image_cache_max_age}"}


def _register_routes(app: FastAPI) -> None:

    @app.exception_handler(Exception)
    async def unhandled_exc_handler(_: Request, exc: Exception):
        log.error("unhandled error=%s", exc.__class__.__name__)
        return PlainTextResponse("Internal server error", status_code=500)

    @app.get("/health")
    def health(request: Request):
        """Liveness probe + the config a deploy usually gets wrong."""
        cfg: Settings = request.app.state.settings
        return {
            "status": "ok",
            "env": cfg.env,
            "base_url": cfg.resolved_base_url,
            "font_loaded": request.app.state.renderer.font_data is not None,
            "icon_present": cfg.icon_path.is_file(),
            "version": VERSION,
        }

    @app.get("/", response_class=HTMLResponse)
    def landing(request: Request):
        return HTMLResponse(request.app.state.controller.landing())

    @app.post("/", response_class=HTMLResponse)
    @app.post("/api", response_class=HTMLResponse, include_in_schema=False)
    async def frame_callback(request: Request):
        try:
            raw = await request.json()
        except ValueError:
            raw = None
        page = await request.app.state.controller.handle(raw)
        return HTMLResponse(page.html, status_code=page.status_code)

    @app.get("/image")
    @app.get("/api/image", include_in_schema=False)
    def image(
        request: Request,
        text: Optional[str] = Query(None, description="Display text (URL-encoded)"),
        error: Optional[str] = Query(None, description="'true' selects the error palette"),
    ):
        cfg: Settings = request.app.state.settings
        renderer: CardRenderer = request.app.state.renderer
        is_error = parse_error_flag(error)
        try:
            png = renderer.render_png(text or DEFAULT_IMAGE_TEXT, is_error)
        except Exception:
            log.exception("image.fallback")
            if cfg.icon_path.is_file():
                return FileResponse(str(cfg.icon_path), media_type="image/png")
            return PlainTextResponse("Error generating image", status_code=500)

        log.info("image.rendered error=%s bytes=%d", is_error, len(png))
        return Response(content=png, media_type="image/png", headers=_image_headers(cfg))

    @app.get("/image.svg")
    def image_svg(
        request: Request,
        text: Optional[str] = Query(None),
        error: Optional[str] = Query(None),
    ):
        """Vector rendition of the same card (handy for debugging layouts)."""
        cfg: Settings = request.app.state.settings
        svg = request.app.state.renderer.render_svg(text or DEFAULT_IMAGE_TEXT, parse_error_flag(error))
        return Response(content=svg, media_type="image/svg+xml", headers=_image_headers(cfg))


app = create_app()

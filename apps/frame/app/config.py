from pathlib import Path
from typing import Optional

from pydantic import model_validator
from pydantic_settings import BaseSettings

DEV_BASE_URL = "http://localhost:3000"


class Settings(BaseSettings):
    # runtime env
    env: str = "dev"

    # frame identity
    frame_title: str = "SearchCast-01"
    profile_id: str = "aminphantom.eth"
    profile_url: Optional[str] = None  # defaults to the warpcast page of profile_id

    # public origin; VERCEL_URL is set by the platform on deploys
    base_url: Optional[str] = None
    vercel_url: Optional[str] = None

    # static assets (font + fallback icon)
    public_dir: str = "public"
    font_file: str = "inter.ttf"
    icon_file: str = "icon.png"

    # upstream lookup
    wikipedia_api_url: str = "https://en.wikipedia.org/w/api.php"
    http_timeout: float = 5.0
    user_agent: str = "SearchCastFrame/1.0 (+https://warpcast.com/aminphantom.eth)"

    # image responses
    image_cache_max_age: int = 3600

    # observability
    log_level: str = "INFO"
    log_events: bool = True

    class Config:
        env_file = ".env"
        extra = "ignore"

    @model_validator(mode="after")
    def _fill_profile_url(self) -> "Settings":
        if not self.profile_url:
            self.profile_url = f"https://warpcast.com/{self.profile_id}"
        return self

    @property
    def resolved_base_url(self) -> str:
        """Origin used for every absolute link we hand to the frame client."""
        if self.base_url and self.base_url.strip():
            return self.base_url.strip().rstrip("/")
        if self.vercel_url and self.vercel_url.strip():
            return f"https://{self.vercel_url.strip().rstrip('/')}"
        return DEV_BASE_URL

    @property
    def font_path(self) -> Path:
        return Path(self.public_dir) / self.font_file

    @property
    def icon_path(self) -> Path:
        return Path(self.public_dir) / self.icon_file


settings = Settings()

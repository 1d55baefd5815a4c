"""
Runtime configuration.

Values come from the process environment, seeded from ``.env.local`` and
``.env`` via python-dotenv. The organization fallback table, keyword lists
and scrape targets are plain values handed to constructors; the constants
here are only their defaults.
"""

import json
import os
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Optional, Tuple

from dotenv import load_dotenv

from grantnavi.core.errors import ConfigurationError
from grantnavi.core.titles import TitleStrategy

logger = logging.getLogger(__name__)


# Organization name -> official site root, used when a record has no valid URL
DEFAULT_ORG_URLS: Dict[str, str] = {
    "厚生労働省": "https://www.mhlw.go.jp/",
    "経済産業省": "https://www.meti.go.jp/",
    "観光庁": "https://www.mlit.go.jp/kankocho/",
    "中小企業庁": "https://www.chusho.meti.go.jp/",
    "環境省": "https://www.env.go.jp/",
    "総務省": "https://www.soumu.go.jp/",
    "農林水産省": "https://www.maff.go.jp/",
    "文部科学省": "https://www.mext.go.jp/",
    "内閣府": "https://www.cao.go.jp/",
    "山形県": "https://www.pref.yamagata.jp/",
    "東京都": "https://www.metro.tokyo.lg.jp/",
}

# Anchor text must contain one of these to be kept
DEFAULT_KEYWORDS: Tuple[str, ...] = ("補助金", "助成金", "支援金", "奨励金")

# Boilerplate anchor text that says nothing about the grant itself
DEFAULT_GENERIC_PHRASES: Tuple[str, ...] = (
    "補助金",
    "助成金",
    "支援金",
    "奨励金",
    "補助金一覧",
    "助成金一覧",
    "支援金一覧",
    "一覧",
    "助成金・補助金",
    "補助金・助成金",
    "詳しく見る",
    "続きを読む",
    "こちら",
    "詳細",
    "more",
    "link",
)

# Legacy exports put the usable link in source_url or link
DEFAULT_URL_COLUMNS: Tuple[str, ...] = ("source_url", "url", "link")
# Current exports carry the detail page in url and the listing page in source_url
CURRENT_URL_COLUMNS: Tuple[str, ...] = ("url", "source_url")


def load_environment(env_dir: Optional[Path] = None) -> None:
    """Load ``.env.local`` then ``.env``; existing variables are kept."""
    base = Path(env_dir) if env_dir else Path.cwd()
    for name in (".env.local", ".env"):
        path = base / name
        if path.exists():
            load_dotenv(path, override=False)
            logger.debug(f"Loaded environment from {path}")


def _float_env(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        return float(raw)
    except ValueError:
        raise ConfigurationError(f"{name} must be a number, got {raw!r}")


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        value = int(raw)
    except ValueError:
        raise ConfigurationError(f"{name} must be an integer, got {raw!r}")
    if value < 1:
        raise ConfigurationError(f"{name} must be at least 1, got {value}")
    return value


def load_org_urls(path: Optional[str]) -> Dict[str, str]:
    """
    Built-in fallback table, optionally overlaid with a JSON file.

    Args:
        path: JSON file holding an object of organization -> URL

    Returns:
        Merged mapping
    """
    org_urls = dict(DEFAULT_ORG_URLS)
    if not path:
        return org_urls

    file_path = Path(path)
    if not file_path.exists():
        raise ConfigurationError(f"Organization URL file not found: {path}")

    try:
        with open(file_path, "r", encoding="utf-8") as f:
            overrides = json.load(f)
    except json.JSONDecodeError as e:
        raise ConfigurationError(f"Organization URL file is not valid JSON: {e}")

    if not isinstance(overrides, dict):
        raise ConfigurationError("Organization URL file must contain a JSON object")

    org_urls.update({str(k): str(v) for k, v in overrides.items()})
    return org_urls


@dataclass
class Settings:
    """Resolved configuration for one process."""
    database_url: Optional[str] = None
    sqlite_path: str = "grants.db"
    data_dir: Path = Path("data")
    title_strategy: TitleStrategy = TitleStrategy.STRIP
    request_delay: float = 0.5
    request_timeout: float = 15.0
    workers: int = 1
    openai_api_key: Optional[str] = None
    openai_model: str = "gpt-4o-mini"
    org_urls: Dict[str, str] = field(default_factory=lambda: dict(DEFAULT_ORG_URLS))

    @property
    def uses_postgres(self) -> bool:
        return bool(self.database_url)

    @classmethod
    def from_env(cls, require_database: bool = False, require_openai: bool = False) -> "Settings":
        """
        Build settings from the environment.

        Args:
            require_database: Fail unless DATABASE_URL is set
            require_openai: Fail unless OPENAI_API_KEY is set

        Raises:
            ConfigurationError: Missing or malformed values
        """
        load_environment()

        database_url = os.getenv("DATABASE_URL") or None
        if require_database and not database_url:
            raise ConfigurationError("DATABASE_URL is not set")

        openai_api_key = os.getenv("OPENAI_API_KEY") or None
        if require_openai and not openai_api_key:
            raise ConfigurationError(
                "OPENAI_API_KEY environment variable not set. "
                "Get your key from: https://platform.openai.com/api-keys"
            )

        raw_strategy = os.getenv("GRANTNAVI_TITLE_STRATEGY", TitleStrategy.STRIP.value)
        try:
            strategy = TitleStrategy(raw_strategy.strip().lower())
        except ValueError:
            raise ConfigurationError(
                f"GRANTNAVI_TITLE_STRATEGY must be 'strip' or 'collapse', got {raw_strategy!r}"
            )

        return cls(
            database_url=database_url,
            sqlite_path=os.getenv("GRANTNAVI_SQLITE_PATH", "grants.db"),
            data_dir=Path(os.getenv("GRANTNAVI_DATA_DIR", "data")),
            title_strategy=strategy,
            request_delay=_float_env("GRANTNAVI_REQUEST_DELAY", 0.5),
            request_timeout=_float_env("GRANTNAVI_REQUEST_TIMEOUT", 15.0),
            workers=_int_env("GRANTNAVI_WORKERS", 1),
            openai_api_key=openai_api_key,
            openai_model=os.getenv("GRANTNAVI_OPENAI_MODEL", "gpt-4o-mini"),
            org_urls=load_org_urls(os.getenv("GRANTNAVI_ORG_URLS_FILE")),
        )

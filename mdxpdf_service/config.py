"""
MDX-PDF Service Configuration Module

Centralized configuration management with Pydantic validation.
All environment variables are validated at startup to catch misconfigurations early.
The pipeline receives a settings instance explicitly, so tests can inject temporary paths.
"""

import logging
import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Dict, List, Tuple

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings

logger = logging.getLogger(__name__)

DEFAULT_STYLESHEET = Path(__file__).parent / "static" / "style.css"

# Paper formats understood by Chromium's page.pdf()
SUPPORTED_PAGE_FORMATS = {
    "letter", "legal", "tabloid", "ledger",
    "a0", "a1", "a2", "a3", "a4", "a5", "a6",
}


@dataclass(frozen=True)
class LayoutConfig:
    """Fixed page layout handed to the conversion engine."""

    page_format: str = "A4"
    margin_top: str = "1in"
    margin_right: str = "1in"
    margin_bottom: str = "1in"
    margin_left: str = "1in"
    stylesheet_path: Path = DEFAULT_STYLESHEET
    body_class: Tuple[str, ...] = ("markdown-body",)
    timeout_ms: int = 30000
    print_background: bool = True

    @property
    def margins(self) -> Dict[str, str]:
        return {
            "top": self.margin_top,
            "right": self.margin_right,
            "bottom": self.margin_bottom,
            "left": self.margin_left,
        }

    @property
    def timeout_seconds(self) -> float:
        return self.timeout_ms / 1000


class MdxPdfSettings(BaseSettings):
    """
    MDX-PDF service configuration with validation.

    All settings can be overridden via environment variables.
    Validation happens at startup to fail fast on misconfiguration.
    """

    # === Filesystem ===
    save_path: Path = Field(
        default_factory=lambda: Path.home() / "Documents" / "GeneratedPDF",
        description="Directory receiving <file_name>.md and <file_name>.pdf"
    )
    stylesheet_path: Path = Field(
        default=DEFAULT_STYLESHEET,
        description="CSS stylesheet embedded into every rendered document"
    )

    # === Result links ===
    download_base_url: str = Field(
        default="http://localhost:8000",
        description="Base URL of the static server exposing save_path"
    )

    # === Rendering ===
    render_timeout_ms: int = Field(
        default=30000,
        ge=1000,
        le=300000,
        description="Conversion engine timeout in milliseconds (1000-300000)"
    )
    page_format: str = Field(default="A4", description="Chromium paper format")
    page_margin: str = Field(default="1in", description="Margin applied to all four sides")
    body_class: str = Field(
        default="markdown-body",
        description="Comma-separated CSS classes for the document body wrapper"
    )
    playwright_headless: bool = Field(default=True, description="Run Chromium headless")
    diagram_languages: str = Field(
        default="mermaid",
        description="Comma-separated fence languages rendered as diagrams"
    )

    @field_validator("download_base_url")
    @classmethod
    def validate_url_format(cls, v: str) -> str:
        """Basic URL format validation."""
        if not v.startswith(("http://", "https://")):
            raise ValueError(f"Invalid URL format: {v}")
        return v.rstrip("/")

    @field_validator("page_format")
    @classmethod
    def validate_page_format(cls, v: str) -> str:
        """Validate the paper format is one Chromium knows."""
        if v.lower() not in SUPPORTED_PAGE_FORMATS:
            raise ValueError(
                f"page_format must be one of: {', '.join(sorted(SUPPORTED_PAGE_FORMATS))}"
            )
        return v.upper() if v.lower().startswith("a") else v.capitalize()

    @field_validator("save_path", "stylesheet_path")
    @classmethod
    def expand_user_path(cls, v: Path) -> Path:
        return v.expanduser()

    @property
    def body_class_list(self) -> List[str]:
        """Parse body classes into a list."""
        return [name.strip() for name in self.body_class.split(",") if name.strip()]

    @property
    def diagram_language_list(self) -> Tuple[str, ...]:
        return tuple(
            lang.strip().lower() for lang in self.diagram_languages.split(",") if lang.strip()
        )

    @property
    def layout(self) -> LayoutConfig:
        """Immutable layout derived from these settings."""
        return LayoutConfig(
            page_format=self.page_format,
            margin_top=self.page_margin,
            margin_right=self.page_margin,
            margin_bottom=self.page_margin,
            margin_left=self.page_margin,
            stylesheet_path=self.stylesheet_path,
            body_class=tuple(self.body_class_list),
            timeout_ms=self.render_timeout_ms,
        )

    class Config:
        env_prefix = ""  # No prefix, use exact env var names
        case_sensitive = False  # SAVE_PATH = save_path


@lru_cache()
def get_settings() -> MdxPdfSettings:
    """
    Get cached settings instance.

    Settings are loaded once and cached for performance.
    Use this function to access configuration throughout the app.
    """
    return MdxPdfSettings()


def validate_config_on_startup(settings: MdxPdfSettings) -> None:
    """
    Validate configuration at application startup.

    Raises ValueError with details if the output directory cannot be used.
    Logs a warning if the stylesheet is missing (renders will fail until fixed).
    """
    try:
        settings.save_path.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise ValueError(f"Cannot create output directory {settings.save_path}: {e}")

    if not os.access(settings.save_path, os.W_OK):
        raise ValueError(f"Output directory is not writable: {settings.save_path}")

    if not settings.stylesheet_path.is_file():
        logger.warning(f"Stylesheet not found: {settings.stylesheet_path}")

    logger.info("Configuration loaded:")
    logger.info(f"  save_path={settings.save_path}")
    logger.info(f"  stylesheet_path={settings.stylesheet_path}")
    logger.info(f"  download_base_url={settings.download_base_url}")
    logger.info(f"  page_format={settings.page_format} margin={settings.page_margin}")
    logger.info(f"  render_timeout={settings.render_timeout_ms}ms")

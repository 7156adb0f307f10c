import os
from pathlib import Path

# Basic settings helper to read environment configuration.

BACKEND_ROOT = Path(__file__).resolve().parent


def _as_bool(val: str | None, default: bool = False) -> bool:
    if val is None:
        return default
    return val.lower() in ("1", "true", "yes", "on")


def _as_float(val: str | None, default: float) -> float:
    if val is None or val.strip() == "":
        return default
    return float(val)


def _as_int(val: str | None, default: int) -> int:
    if val is None or val.strip() == "":
        return default
    return int(val)


class Settings:
    def __init__(self) -> None:
        assets_dir = os.getenv("POSTER_ASSETS_DIR")
        self.ASSETS_DIR: Path = Path(assets_dir) if assets_dir else BACKEND_ROOT / "assets"
        font_path = os.getenv("POSTER_FONT_PATH")
        self.FONT_PATH: Path = Path(font_path) if font_path else self.ASSETS_DIR / "fonts" / "Georgia_pro.ttf"
        bold_path = os.getenv("POSTER_FONT_BOLD_PATH")
        self.FONT_BOLD_PATH: Path | None = Path(bold_path) if bold_path else None

        self.DEFAULT_SIZE_LABEL: str = os.getenv("POSTER_DEFAULT_SIZE", "18x24")
        self.PREVIEW_SCALE: float = _as_float(os.getenv("POSTER_PREVIEW_SCALE"), 0.5)
        self.ERASER_THRESHOLD: int = _as_int(os.getenv("POSTER_ERASER_THRESHOLD"), 50)
        self.ERASER_MAX_CANVAS_SIDE: int = _as_int(os.getenv("POSTER_ERASER_MAX_CANVAS_SIDE"), 12000)
        self.EXPORT_DPI: int = _as_int(os.getenv("POSTER_EXPORT_DPI"), 300)
        self.EXPORT_JPEG_QUALITY: int = _as_int(os.getenv("POSTER_EXPORT_JPEG_QUALITY"), 95)

        self.GEMINI_API_KEY: str | None = os.getenv("GEMINI_API_KEY") or None
        self.GEMINI_MODEL: str = os.getenv("GEMINI_MODEL", "gemini-3-pro-image-preview")
        self.GEMINI_API_BASE: str = os.getenv(
            "GEMINI_API_BASE", "https://generativelanguage.googleapis.com/v1beta"
        )
        self.HTTP_TIMEOUT: float = _as_float(os.getenv("POSTER_HTTP_TIMEOUT"), 60.0)

        self.CORS_ORIGINS: list[str] = [
            o.strip() for o in os.getenv("POSTER_CORS_ORIGINS", "*").split(",") if o.strip()
        ]
        self.LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()
        self.DEBUG_TIMINGS: bool = _as_bool(os.getenv("POSTER_DEBUG_TIMINGS"), False)


settings = Settings()

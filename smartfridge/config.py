"""TOML configuration loader for the fridge server."""

from __future__ import annotations

import os
import sys
from dataclasses import dataclass, field
from pathlib import Path

if sys.version_info >= (3, 11):
    import tomllib
else:
    try:
        import tomli as tomllib
    except ImportError:
        tomllib = None  # type: ignore[assignment]

_DEFAULT_DB_PATH = "~/.config/smartfridge/fridge.db"
_DEFAULT_UPLOAD_DIR = "uploads/products"
_DEFAULT_TMP_DIR = "uploads/tmp"


@dataclass
class ServerConfig:
    host: str = "0.0.0.0"
    port: int = 3000
    upload_dir: str = _DEFAULT_UPLOAD_DIR
    tmp_dir: str = _DEFAULT_TMP_DIR
    max_upload_bytes: int = 5 * 1024 * 1024


@dataclass
class DatabaseConfig:
    path: str = _DEFAULT_DB_PATH


@dataclass
class ClaudeOCRConfig:
    api_key: str = ""
    model: str = "claude-sonnet-4-5-20250929"


@dataclass
class OCRConfig:
    backend: str = "tesseract"
    languages: str = "ita+eng"
    timeout: float = 30.0
    tesseract_cmd: str = ""
    claude: ClaudeOCRConfig = field(default_factory=ClaudeOCRConfig)


@dataclass
class SchedulerConfig:
    enabled: bool = True
    expiry_check_schedule: str = "0 9 * * *"
    warn_days: int = 3


@dataclass
class LoggingConfig:
    level: str = "INFO"


@dataclass
class FridgeConfig:
    server: ServerConfig = field(default_factory=ServerConfig)
    database: DatabaseConfig = field(default_factory=DatabaseConfig)
    ocr: OCRConfig = field(default_factory=OCRConfig)
    scheduler: SchedulerConfig = field(default_factory=SchedulerConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def load_config(path: str | Path | None = None) -> FridgeConfig:
    """Load configuration from a TOML file.

    Falls back to defaults if no path is given or the file doesn't exist.
    The API key, database path and port can be overridden via environment
    variables.
    """
    raw: dict = {}

    if path is not None:
        p = Path(path)
        if p.exists():
            if tomllib is None:
                raise ImportError(
                    "tomli is required on Python < 3.11: pip install tomli"
                )
            with open(p, "rb") as f:
                raw = tomllib.load(f)

    srv = raw.get("server", {})
    dbc = raw.get("database", {})
    ocr = raw.get("ocr", {})
    sch = raw.get("scheduler", {})
    log = raw.get("logging", {})

    claude_cfg = ocr.get("claude", {})

    # Resolve API key: config file → environment variable
    claude_api_key = claude_cfg.get("api_key", "") or os.environ.get(
        "ANTHROPIC_API_KEY", ""
    )

    # Deployment knobs: environment variable → config file
    db_path = os.environ.get("SMARTFRIDGE_DB") or dbc.get("path", _DEFAULT_DB_PATH)
    port = int(os.environ.get("PORT") or srv.get("port", 3000))

    return FridgeConfig(
        server=ServerConfig(
            host=srv.get("host", "0.0.0.0"),
            port=port,
            upload_dir=srv.get("upload_dir", _DEFAULT_UPLOAD_DIR),
            tmp_dir=srv.get("tmp_dir", _DEFAULT_TMP_DIR),
            max_upload_bytes=srv.get("max_upload_bytes", 5 * 1024 * 1024),
        ),
        database=DatabaseConfig(path=db_path),
        ocr=OCRConfig(
            backend=ocr.get("backend", "tesseract"),
            languages=ocr.get("languages", "ita+eng"),
            timeout=float(ocr.get("timeout", 30.0)),
            tesseract_cmd=ocr.get("tesseract_cmd", ""),
            claude=ClaudeOCRConfig(
                api_key=claude_api_key,
                model=claude_cfg.get("model", "claude-sonnet-4-5-20250929"),
            ),
        ),
        scheduler=SchedulerConfig(
            enabled=sch.get("enabled", True),
            expiry_check_schedule=sch.get("expiry_check_schedule", "0 9 * * *"),
            warn_days=sch.get("warn_days", 3),
        ),
        logging=LoggingConfig(level=log.get("level", "INFO")),
    )

# apps/common/settings.py
from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

import yaml


def _read_yaml(path: Path) -> Dict[str, Any]:
    if not path.exists():
        return {}
    data = yaml.safe_load(path.read_text(encoding="utf-8"))
    return data or {}


def _env(key: str) -> Optional[str]:
    v = os.getenv(key)
    return v.strip() if isinstance(v, str) and v.strip() else None


def _as_path(v: str) -> Path:
    return Path(v).expanduser().resolve()


@dataclass(frozen=True)
class AppSettings:
    roster_path: Path
    ocr_lang: str = "en"
    max_concurrency: int = 4
    log_level: str = "INFO"
    similarity_threshold: float = 0.6
    max_suggestions: int = 3


def load_settings(config_path: Optional[str] = None) -> AppSettings:
    """
    Resolution order (highest -> lowest):
      1) Explicit function argument
      2) DOCVERIFY_CONFIG_PATH env var
      3) config/app.yaml
    Individual fields can be overridden via env vars:
      - DOCVERIFY_ROSTER_PATH
      - DOCVERIFY_OCR_LANG
      - DOCVERIFY_MAX_CONCURRENCY
      - DOCVERIFY_LOG_LEVEL
    """
    cfg_path = (
        Path(config_path)
        if config_path
        else Path(_env("DOCVERIFY_CONFIG_PATH") or "config/app.yaml")
    )
    cfg = _read_yaml(cfg_path)

    roster_path = _env("DOCVERIFY_ROSTER_PATH") or cfg.get("roster_path")
    ocr_lang = _env("DOCVERIFY_OCR_LANG") or cfg.get("ocr_lang") or "en"
    max_concurrency = _env("DOCVERIFY_MAX_CONCURRENCY") or cfg.get("max_concurrency") or 4
    log_level = _env("DOCVERIFY_LOG_LEVEL") or cfg.get("log_level") or "INFO"

    missing = []
    if not roster_path:
        missing.append("roster_path / DOCVERIFY_ROSTER_PATH")

    if missing:
        raise ValueError(
            "Missing required configuration: " + ", ".join(missing) +
            f". Config file used: {cfg_path}"
        )

    try:
        max_concurrency = int(max_concurrency)
    except ValueError as e:
        raise ValueError(f"max_concurrency must be an integer, got {max_concurrency!r}") from e
    if max_concurrency < 1:
        raise ValueError(f"max_concurrency must be >= 1, got {max_concurrency}")

    return AppSettings(
        roster_path=_as_path(str(roster_path)),
        ocr_lang=str(ocr_lang),
        max_concurrency=max_concurrency,
        log_level=str(log_level).upper(),
        similarity_threshold=float(cfg.get("similarity_threshold", 0.6)),
        max_suggestions=int(cfg.get("max_suggestions", 3)),
    )

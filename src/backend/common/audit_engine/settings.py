from __future__ import annotations

import json
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

from .config import AuditRulesConfig


load_dotenv()

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass(frozen=True)
class AuditSettings:
    max_workers: int = 4
    log_level: str = "INFO"
    rules_config_path: Optional[Path] = None


def get_audit_settings() -> AuditSettings:
    """
    Load process settings from environment variables (.env supported).

    Reads:
      NFE_AUDIT_MAX_WORKERS, NFE_AUDIT_LOG_LEVEL, NFE_AUDIT_RULES_CONFIG
    """
    raw_workers = os.getenv("NFE_AUDIT_MAX_WORKERS", "4").strip()
    try:
        max_workers = int(raw_workers)
    except ValueError as exc:
        raise ValueError("NFE_AUDIT_MAX_WORKERS must be an integer.") from exc
    if max_workers < 1:
        raise ValueError("NFE_AUDIT_MAX_WORKERS must be >= 1.")

    log_level = os.getenv("NFE_AUDIT_LOG_LEVEL", "INFO").strip().upper()
    if log_level not in _LOG_LEVELS:
        raise ValueError(f"NFE_AUDIT_LOG_LEVEL must be one of {', '.join(_LOG_LEVELS)}.")

    rules_path = os.getenv("NFE_AUDIT_RULES_CONFIG", "").strip()
    return AuditSettings(
        max_workers=max_workers,
        log_level=log_level,
        rules_config_path=Path(rules_path) if rules_path else None,
    )


def load_rules_config(path: Optional[Path]) -> AuditRulesConfig:
    """Load an `AuditRulesConfig` from a JSON or YAML file; empty config when no path."""
    if path is None:
        return AuditRulesConfig()
    text = path.read_text(encoding="utf-8")
    if path.suffix.lower() in (".yaml", ".yml"):
        import yaml

        payload = yaml.safe_load(text) or {}
    else:
        payload = json.loads(text)
    if "rules" not in payload:
        payload = {"rules": payload}
    return AuditRulesConfig.model_validate(payload)

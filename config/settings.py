"""Configuration helpers for the Kowalski web client."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional


@dataclass(slots=True)
class AppConfig:
    """Centralized application configuration."""

    backend_url: str = "http://localhost:8080"
    request_timeout: Optional[float] = None
    storage_dir: Path = Path("data")
    history_key: str = "kowalskiHistory"
    history_limit: int = 50
    storage_quota_bytes: int = 5 * 1024 * 1024
    log_dir: Path = Path("logs")
    log_level: str = "INFO"
    server_port: int = 7860


def _load_env_file(path: Path) -> None:
    """Populate environment variables from a simple KEY=VALUE .env file."""
    if not path.exists():
        return

    for line in path.read_text(encoding="utf-8").splitlines():
        stripped = line.strip()
        if not stripped or stripped.startswith("#") or "=" not in stripped:
            continue
        key, value = stripped.split("=", 1)
        os.environ[key.strip()] = value.strip()


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw in (None, ""):
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_float(name: str, default: Optional[float]) -> Optional[float]:
    raw = os.getenv(name)
    if raw in (None, ""):
        return default
    try:
        value = float(raw)
    except ValueError:
        return default
    # 0 或负数视为不限制超时
    return value if value > 0 else None


def load_config(config_path: Optional[str] = None) -> AppConfig:
    """Return an AppConfig instance with environment-aware settings."""
    env_path = Path(config_path) if config_path else Path(".env")
    _load_env_file(env_path)

    defaults = AppConfig()
    backend_url = (os.getenv("KOWALSKI_URL") or defaults.backend_url).rstrip("/")
    storage_dir = Path(os.getenv("KOWALSKI_STORAGE_DIR", str(defaults.storage_dir))).expanduser()
    log_dir = Path(os.getenv("KOWALSKI_LOG_DIR", str(defaults.log_dir))).expanduser()

    history_limit = _env_int("KOWALSKI_HISTORY_LIMIT", defaults.history_limit)
    if history_limit <= 0:
        history_limit = defaults.history_limit

    return AppConfig(
        backend_url=backend_url,
        request_timeout=_env_float("KOWALSKI_REQUEST_TIMEOUT", defaults.request_timeout),
        storage_dir=storage_dir,
        history_key=os.getenv("KOWALSKI_HISTORY_KEY") or defaults.history_key,
        history_limit=history_limit,
        storage_quota_bytes=_env_int("KOWALSKI_STORAGE_QUOTA", defaults.storage_quota_bytes),
        log_dir=log_dir,
        log_level=os.getenv("KOWALSKI_LOG_LEVEL") or defaults.log_level,
        server_port=_env_int("KOWALSKI_PORT", defaults.server_port),
    )

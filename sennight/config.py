"""Configuration loading for the dating service."""
from __future__ import annotations

import logging
import os
import secrets
from dataclasses import dataclass, field, replace
from datetime import timedelta
from pathlib import Path
from typing import Dict, List, Mapping, Optional

import yaml
from dotenv import dotenv_values

from .security import DEFAULT_TOKEN_TTL
from .store import resolve_data_dir

logger = logging.getLogger("sennight.config")

DEFAULT_HOST = "0.0.0.0"
DEFAULT_PORT = 3000
DEFAULT_MAX_BODY_BYTES = 2 * 1024 * 1024


def _default_config_path() -> Path:
    return (Path(__file__).resolve().parent.parent / "config" / "sennight.yaml").resolve(strict=False)


def _first_env(environ: Mapping[str, str], *names: str) -> Optional[str]:
    for name in names:
        value = environ.get(name)
        if value is not None and value.strip():
            return value.strip()
    return None


def _split_origins(raw: object) -> List[str]:
    if isinstance(raw, str):
        items = raw.split(",")
    elif isinstance(raw, (list, tuple)):
        items = [str(item) for item in raw]
    else:
        raise ValueError("cors_origins must be a list or a comma separated string")
    origins = [item.strip() for item in items if item.strip()]
    return origins or ["*"]


def _body_limit(megabytes: object) -> int:
    if megabytes is None:
        return DEFAULT_MAX_BODY_BYTES
    limit = int(float(str(megabytes)) * 1024 * 1024)
    if limit <= 0:
        raise ValueError("max_body_mb must be positive")
    return limit


@dataclass(frozen=True)
class Settings:
    """Runtime settings for the API service."""

    data_dir: Path
    token_secret: str
    token_ttl: timedelta = DEFAULT_TOKEN_TTL
    cors_origins: List[str] = field(default_factory=lambda: ["*"])
    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    max_body_bytes: int = DEFAULT_MAX_BODY_BYTES

    @staticmethod
    def from_dict(data: Dict[str, object], base_path: Path | None = None) -> "Settings":
        """Create :class:`Settings` from raw (YAML) dictionary data."""

        raw_data_dir = data.get("data_dir")
        if raw_data_dir:
            candidate = Path(str(raw_data_dir)).expanduser()
            if not candidate.is_absolute() and base_path is not None:
                candidate = base_path / candidate
            data_dir = candidate.resolve(strict=False)
        else:
            data_dir = resolve_data_dir(None)

        ttl_days = data.get("token_ttl_days")
        token_ttl = timedelta(days=float(ttl_days)) if ttl_days is not None else DEFAULT_TOKEN_TTL
        if token_ttl <= timedelta(0):
            raise ValueError("token_ttl_days must be positive")

        origins = data.get("cors_origins")
        return Settings(
            data_dir=data_dir,
            token_secret=str(data.get("token_secret") or ""),
            token_ttl=token_ttl,
            cors_origins=_split_origins(origins) if origins is not None else ["*"],
            host=str(data.get("host") or DEFAULT_HOST),
            port=int(data.get("port", DEFAULT_PORT)),
            max_body_bytes=_body_limit(data.get("max_body_mb")),
        )


def _apply_environment(settings: Settings, environ: Mapping[str, str]) -> Settings:
    overrides: Dict[str, object] = {}

    data_dir = _first_env(environ, "SENNIGHT_DATA_DIR", "DATA_DIR")
    if data_dir:
        overrides["data_dir"] = resolve_data_dir(data_dir)

    secret = _first_env(environ, "SENNIGHT_TOKEN_SECRET", "JWT_SECRET")
    if secret:
        overrides["token_secret"] = secret

    ttl_days = _first_env(environ, "SENNIGHT_TOKEN_TTL_DAYS")
    if ttl_days:
        token_ttl = timedelta(days=float(ttl_days))
        if token_ttl <= timedelta(0):
            raise ValueError("SENNIGHT_TOKEN_TTL_DAYS must be positive")
        overrides["token_ttl"] = token_ttl

    host = _first_env(environ, "SENNIGHT_HOST")
    if host:
        overrides["host"] = host

    port = _first_env(environ, "SENNIGHT_PORT", "PORT")
    if port:
        overrides["port"] = int(port)

    origins = _first_env(environ, "SENNIGHT_CORS_ORIGINS")
    if origins:
        overrides["cors_origins"] = _split_origins(origins)

    body_mb = _first_env(environ, "SENNIGHT_MAX_BODY_MB")
    if body_mb:
        overrides["max_body_bytes"] = _body_limit(body_mb)

    return replace(settings, **overrides) if overrides else settings


def _environment(environ: Optional[Mapping[str, str]], env_file: Optional[Path]) -> Dict[str, str]:
    if env_file is None and environ is None:
        env_file = Path.cwd() / ".env"

    merged: Dict[str, str] = {}
    if env_file is not None and env_file.is_file():
        merged.update({key: value for key, value in dotenv_values(env_file).items() if value is not None})
    merged.update(os.environ if environ is None else environ)
    return merged


def load_settings(
    config_path: Optional[Path] = None,
    *,
    environ: Optional[Mapping[str, str]] = None,
    env_file: Optional[Path] = None,
) -> Settings:
    """Load settings from an optional YAML file, then apply environment overrides.

    Variables from a ``.env`` file (``env_file``, or ``.env`` in the working directory when
    reading the process environment) fill in values the environment does not set.
    """

    env = _environment(environ, env_file)
    explicit = config_path is not None or bool(_first_env(env, "SENNIGHT_CONFIG"))
    if config_path is None:
        configured = _first_env(env, "SENNIGHT_CONFIG")
        config_path = Path(configured).expanduser() if configured else _default_config_path()

    raw: Dict[str, object] = {}
    if config_path.exists():
        with config_path.open("r", encoding="utf-8") as handle:
            loaded = yaml.safe_load(handle) or {}
        if not isinstance(loaded, dict):
            raise ValueError(f"Configuration file {config_path} must contain a mapping")
        raw = loaded
    elif explicit:
        raise FileNotFoundError(f"Configuration file {config_path} does not exist")

    settings = _apply_environment(Settings.from_dict(raw, base_path=config_path.parent), env)

    if not settings.token_secret:
        logger.warning(
            "No token secret configured; generated an ephemeral one. Set SENNIGHT_TOKEN_SECRET"
            " so issued tokens survive a restart."
        )
        settings = replace(settings, token_secret=secrets.token_urlsafe(32))

    return settings


__all__ = ["DEFAULT_HOST", "DEFAULT_MAX_BODY_BYTES", "DEFAULT_PORT", "Settings", "load_settings"]

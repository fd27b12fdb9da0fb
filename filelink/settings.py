from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from filelink.client import DEFAULT_TIME_TO_LIVE, FileClient
from filelink.metadata import Encoding, Language, MediaType, Metadata, metadata_from_spec


class SettingsError(RuntimeError):
    pass


@dataclass(frozen=True)
class ClientSettings:
    time_to_live: int = DEFAULT_TIME_TO_LIVE
    default_media_type: str = "text/plain"
    default_language: str = "en-us"
    default_encoding: str = "identity"
    common_extensions: bool = True
    temp_dir: Optional[Path] = None
    extensions: dict[str, Metadata] = field(default_factory=dict)


def _env_bool(name: str, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    value = raw.strip().lower()
    if value in ("1", "true", "yes", "on"):
        return True
    if value in ("0", "false", "no", "off"):
        return False
    raise SettingsError(f"{name} must be a boolean, got {raw!r}")


def _env_str(name: str, default: str) -> str:
    return os.environ.get(name, default).strip() or default


def _env_ttl() -> int:
    raw = os.environ.get("FILELINK_TIME_TO_LIVE", "").strip()
    if not raw:
        return DEFAULT_TIME_TO_LIVE
    try:
        ttl = int(raw)
    except ValueError as e:
        raise SettingsError(f"FILELINK_TIME_TO_LIVE must be an integer, got {raw!r}") from e
    if ttl < 0:
        raise SettingsError("FILELINK_TIME_TO_LIVE must not be negative")
    return ttl


def _env_extensions() -> dict[str, Metadata]:
    """
    FILELINK_EXTENSIONS: JSON object, e.g.
        {"md": {"kind": "mediaType", "name": "text/markdown"}, "de": {"kind": "language", "name": "de"}}
    """
    raw = os.environ.get("FILELINK_EXTENSIONS")
    if not raw:
        return {}
    try:
        data = json.loads(raw)
    except ValueError as e:
        raise SettingsError(f"FILELINK_EXTENSIONS is not valid JSON: {e}") from e
    if not isinstance(data, dict):
        raise SettingsError("FILELINK_EXTENSIONS must be a JSON object")
    out: dict[str, Metadata] = {}
    for ext, item in data.items():
        if not isinstance(item, dict):
            raise SettingsError(f"FILELINK_EXTENSIONS[{ext!r}] must be an object")
        try:
            out[str(ext)] = metadata_from_spec(
                str(item.get("kind") or ""),
                str(item.get("name") or ""),
                item.get("description"),
            )
        except ValueError as e:
            raise SettingsError(f"FILELINK_EXTENSIONS[{ext!r}]: {e}") from e
    return out


def load_client_settings() -> ClientSettings:
    temp_raw = os.environ.get("FILELINK_TEMP_DIR", "").strip()
    return ClientSettings(
        time_to_live=_env_ttl(),
        default_media_type=_env_str("FILELINK_DEFAULT_MEDIA_TYPE", "text/plain"),
        default_language=_env_str("FILELINK_DEFAULT_LANGUAGE", "en-us"),
        default_encoding=_env_str("FILELINK_DEFAULT_ENCODING", "identity"),
        common_extensions=_env_bool("FILELINK_COMMON_EXTENSIONS", True),
        temp_dir=Path(temp_raw).expanduser() if temp_raw else None,
        extensions=_env_extensions(),
    )


def build_client(settings: Optional[ClientSettings] = None) -> FileClient:
    settings = settings or load_client_settings()
    client = FileClient(
        settings.common_extensions,
        default_media_type=MediaType(settings.default_media_type),
        default_encoding=Encoding(settings.default_encoding),
        default_language=Language(settings.default_language),
        time_to_live=settings.time_to_live,
        temp_dir=settings.temp_dir,
    )
    for ext, metadata in settings.extensions.items():
        client.add_extension(ext, metadata)
    return client


def cors_origins() -> list[str]:
    raw = os.environ.get("FILELINK_CORS_ORIGINS", "http://localhost:5173")
    return [o.strip() for o in raw.split(",") if o.strip()]

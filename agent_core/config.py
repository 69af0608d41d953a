from __future__ import annotations

import json
import os
from dataclasses import dataclass
from pathlib import Path
from types import MappingProxyType
from typing import Any, Iterable, Mapping


DEFAULT_UPLOAD_DIRECTORY = Path("/tmp/agent-uploads")
DEFAULT_OPENER = "xdg-open"
DEFAULT_MAX_UPLOAD_SIZE = 50 * 1024 * 1024
DEFAULT_DISPATCH_WORKERS = 4

DEFAULT_EXTENSION_MAP: dict[str, str] = {
    ".pdf": "okular",
    ".txt": "gedit",
    ".png": "eog",
    ".jpg": "eog",
    ".jpeg": "eog",
    ".webp": "eog",
    ".gif": "eog",
    ".mp4": "vlc",
    ".mp3": "vlc",
    ".docx": "desktopeditors",
    ".xlsx": "desktopeditors",
    ".pptx": "desktopeditors",
    ".odt": "desktopeditors",
    ".ods": "desktopeditors",
    ".odp": "desktopeditors",
    ".csv": "desktopeditors",
    # archives
    ".zip": "file-roller",
    ".tar": "file-roller",
    ".gz": "file-roller",
    ".bz2": "file-roller",
    ".xz": "file-roller",
    ".7z": "file-roller",
    ".rar": "file-roller",
    # video
    ".avi": "vlc",
    ".mkv": "vlc",
    ".mov": "vlc",
    ".wmv": "vlc",
    ".flv": "vlc",
    ".webm": "vlc",
}

DEFAULT_ALLOWED_EXTENSIONS: tuple[str, ...] = (
    ".pdf", ".txt", ".png", ".jpg", ".jpeg", ".gif", ".mp4", ".mp3",
    ".docx", ".xlsx", ".pptx", ".odt", ".ods", ".odp", ".csv",
    ".zip", ".tar", ".gz", ".bz2", ".xz", ".7z", ".rar",
    ".avi", ".mkv", ".mov", ".wmv", ".flv", ".webm",
)


@dataclass(frozen=True)
class OpenerConfig:
    extension_map: Mapping[str, str]
    default_opener: str
    allowed_extensions: frozenset[str]
    max_upload_size: int
    upload_directory: Path
    dispatch_workers: int = DEFAULT_DISPATCH_WORKERS

    def is_allowed(self, extension: str) -> bool:
        """An empty allow-list admits every extension."""
        if not self.allowed_extensions:
            return True
        return normalize_extension(extension) in self.allowed_extensions


def normalize_extension(extension: str) -> str:
    value = extension.strip().lower()
    if value and not value.startswith("."):
        value = f".{value}"
    return value


def build_opener_config(
    *,
    extension_map: Mapping[str, str] | None = None,
    default_opener: str = DEFAULT_OPENER,
    allowed_extensions: Iterable[str] | None = None,
    max_upload_size: int = DEFAULT_MAX_UPLOAD_SIZE,
    upload_directory: Path | str = DEFAULT_UPLOAD_DIRECTORY,
    dispatch_workers: int = DEFAULT_DISPATCH_WORKERS,
) -> OpenerConfig:
    mapping = _normalize_map(DEFAULT_EXTENSION_MAP if extension_map is None else extension_map)
    allowed = DEFAULT_ALLOWED_EXTENSIONS if allowed_extensions is None else allowed_extensions
    return OpenerConfig(
        extension_map=MappingProxyType(mapping),
        default_opener=default_opener.strip() or DEFAULT_OPENER,
        allowed_extensions=frozenset(normalize_extension(ext) for ext in allowed if ext.strip()),
        max_upload_size=max_upload_size,
        upload_directory=Path(upload_directory).expanduser(),
        dispatch_workers=max(dispatch_workers, 1),
    )


def load_config_file(path: str | None) -> dict[str, Any]:
    if not path:
        return {}
    config_path = Path(path).expanduser()
    with config_path.open(encoding="utf-8") as handle:
        payload = json.load(handle)
    if not isinstance(payload, dict):
        raise ValueError(f"Config file {config_path} must contain a JSON object")
    return payload


def get_opener_config() -> OpenerConfig:
    file_values = load_config_file(os.getenv("FILE_AGENT_CONFIG"))

    extension_map = dict(DEFAULT_EXTENSION_MAP)
    extension_map.update(_normalize_map(file_values.get("fileTypeOpeners") or {}))
    extension_map.update(_parse_opener_pairs(os.getenv("FILE_AGENT_OPENERS")))

    allowed_raw = os.getenv("FILE_AGENT_ALLOWED_EXTENSIONS")
    if allowed_raw is not None:
        allowed_extensions: Iterable[str] = _parse_extension_list(allowed_raw)
    elif "allowedExtensions" in file_values:
        allowed_extensions = file_values.get("allowedExtensions") or []
    else:
        allowed_extensions = DEFAULT_ALLOWED_EXTENSIONS

    default_opener = os.getenv("FILE_AGENT_DEFAULT_OPENER") or file_values.get("defaultOpener") or DEFAULT_OPENER
    upload_directory = (
        os.getenv("FILE_AGENT_UPLOAD_DIR") or file_values.get("uploadDirectory") or DEFAULT_UPLOAD_DIRECTORY
    )
    max_upload_size = parse_int(
        os.getenv("FILE_AGENT_MAX_UPLOAD_SIZE"),
        parse_int(_optional_str(file_values.get("maxUploadSize")), DEFAULT_MAX_UPLOAD_SIZE),
    )
    dispatch_workers = parse_int(os.getenv("FILE_AGENT_DISPATCH_WORKERS"), DEFAULT_DISPATCH_WORKERS)

    return build_opener_config(
        extension_map=extension_map,
        default_opener=str(default_opener),
        allowed_extensions=allowed_extensions,
        max_upload_size=max_upload_size,
        upload_directory=upload_directory,
        dispatch_workers=dispatch_workers,
    )


def ensure_upload_directory(config: OpenerConfig) -> Path:
    config.upload_directory.mkdir(parents=True, exist_ok=True)
    return config.upload_directory


def _normalize_map(mapping: Mapping[str, str]) -> dict[str, str]:
    normalized: dict[str, str] = {}
    for extension, command in mapping.items():
        key = normalize_extension(str(extension))
        if key and str(command).strip():
            normalized[key] = str(command).strip()
    return normalized


def _parse_opener_pairs(value: str | None) -> dict[str, str]:
    if not value:
        return {}
    pairs: dict[str, str] = {}
    for item in value.split(","):
        item = item.strip()
        if not item:
            continue
        extension, sep, command = item.partition("=")
        if not sep or not extension.strip() or not command.strip():
            raise ValueError(f"FILE_AGENT_OPENERS entry '{item}' must look like '.ext=command'")
        pairs[extension] = command
    return _normalize_map(pairs)


def _parse_extension_list(value: str) -> list[str]:
    items = [item.strip() for item in value.split(",") if item.strip()]
    if items == ["*"]:
        return []
    return items


def parse_int(value: str | None, default: int) -> int:
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        return default


def _optional_str(value: Any) -> str | None:
    if value is None:
        return None
    return str(value).strip()

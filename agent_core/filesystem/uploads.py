from __future__ import annotations

import logging
import re
import time
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO, Optional, Tuple

from agent_core.config import OpenerConfig
from agent_core.filesystem.errors import (
    InvalidName,
    NotFound,
    PayloadTooLarge,
    StorageFailure,
    UnsupportedFileType,
)
from agent_core.filesystem.sandbox import SandboxPathError, safe_join
from agent_core.logging.audit import audit_event
from agent_core.logging.logger import get_logger
from agent_core.openers.dispatcher import Dispatcher

CHUNK_SIZE = 1024 * 1024
MAX_NAME_ATTEMPTS = 32

_UNSAFE_CHARS_RE = re.compile(r"[\x00-\x1f\x7f]")


@dataclass(frozen=True)
class StoredUpload:
    path: Path
    success: bool = True


def sanitize_filename(filename: str) -> str:
    # browsers on Windows may send "C:\\Users\\me\\report.pdf"
    name = filename.replace("\\", "/").rsplit("/", 1)[-1]
    name = _UNSAFE_CHARS_RE.sub("", name).strip()
    if name in {"", ".", ".."}:
        raise InvalidName()
    return name


class UploadGatekeeper:
    def __init__(self, config: OpenerConfig, dispatcher: Dispatcher) -> None:
        self._config = config
        self._dispatcher = dispatcher

    @property
    def upload_directory(self) -> Path:
        return self._config.upload_directory.resolve()

    def accept_upload(
        self,
        stream: BinaryIO,
        original_filename: str,
        size_limit: Optional[int] = None,
        open_now: bool = False,
    ) -> StoredUpload:
        """Validate and persist an uploaded file, optionally opening it.

        ``size_limit`` defaults to the configured maximum; a non-positive
        limit disables the check. The dispatch triggered by ``open_now`` is
        queued, never awaited.
        """
        limit = self._config.max_upload_size if size_limit is None else size_limit
        name = sanitize_filename(original_filename or "")
        extension = Path(name).suffix.lower()
        if not self._config.is_allowed(extension):
            audit_event("upload.rejected", level=logging.WARNING, filename=name, reason="unsupported_type")
            raise UnsupportedFileType()

        destination, handle = self._open_destination(name)
        written = 0
        try:
            with handle:
                while True:
                    chunk = stream.read(CHUNK_SIZE)
                    if not chunk:
                        break
                    written += len(chunk)
                    if limit > 0 and written > limit:
                        raise PayloadTooLarge()
                    handle.write(chunk)
        except PayloadTooLarge:
            _discard(destination)
            audit_event("upload.rejected", level=logging.WARNING, filename=name, reason="too_large", limit=limit)
            raise
        except OSError as exc:
            _discard(destination)
            audit_event("upload.failed", level=logging.ERROR, filename=name, error=str(exc))
            raise StorageFailure(f"Failed to save file: {exc}") from exc

        audit_event("upload.stored", path=str(destination), size=written, open_now=open_now)
        if open_now:
            self._dispatcher.dispatch_open(destination)
        return StoredUpload(path=destination)

    def lookup_and_open(self, filename: str) -> Path:
        try:
            resolved = safe_join(self.upload_directory, filename)
        except SandboxPathError as exc:
            audit_event("open.rejected", level=logging.WARNING, filename=filename, reason=str(exc))
            raise InvalidName() from exc
        if not resolved.is_file():
            raise NotFound()
        audit_event("open.requested", path=str(resolved))
        self._dispatcher.dispatch_open(resolved)
        return resolved

    def _open_destination(self, name: str) -> Tuple[Path, BinaryIO]:
        base = self.upload_directory
        token = time.time_ns()
        for _ in range(MAX_NAME_ATTEMPTS):
            destination = base / f"{token}_{name}"
            try:
                return destination, destination.open("xb")
            except FileExistsError:
                token += 1
            except OSError as exc:
                audit_event("upload.failed", level=logging.ERROR, filename=name, error=str(exc))
                raise StorageFailure(f"Failed to create destination file: {exc}") from exc
        raise StorageFailure("Failed to create destination file: no free name")


def _discard(path: Path) -> None:
    try:
        path.unlink(missing_ok=True)
    except OSError as exc:
        get_logger("uploads").warning("Could not remove partial upload %s: %s", path, exc)

from __future__ import annotations

import logging
import shutil
import subprocess
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

from agent_core.config import OpenerConfig
from agent_core.logging.audit import audit_event
from agent_core.logging.logger import get_logger
from agent_core.openers.registry import OpenerRegistry, default_registry, plain_arguments


@dataclass(frozen=True)
class LaunchOutcome:
    path: str
    opener: str
    launched: bool
    fallback_attempted: bool = False
    fallback_launched: bool = False
    error: Optional[str] = None


def _spawn_detached(executable: str, args: List[str]) -> subprocess.Popen:
    return subprocess.Popen(
        [executable, *args],
        stdin=subprocess.DEVNULL,
        stdout=subprocess.DEVNULL,
        stderr=subprocess.DEVNULL,
        close_fds=True,
        start_new_session=True,
    )


class Dispatcher:
    """Launches the opener for a stored file on a background worker.

    ``dispatch_open`` returns as soon as the work is queued. Whatever happens
    afterwards (missing opener, failed spawn, fallback) is reported through
    the audit log only; callers never see an error.
    """

    def __init__(
        self,
        config: OpenerConfig,
        registry: OpenerRegistry | None = None,
        executor: ThreadPoolExecutor | None = None,
    ) -> None:
        self._registry = registry or default_registry(config)
        self._executor = executor or ThreadPoolExecutor(
            max_workers=config.dispatch_workers,
            thread_name_prefix="dispatch",
        )

    @property
    def registry(self) -> OpenerRegistry:
        return self._registry

    def dispatch_open(self, path: Path | str) -> Future[LaunchOutcome]:
        target = Path(path)
        future = self._executor.submit(self.launch, target)
        future.add_done_callback(_log_unexpected_failure)
        return future

    def launch(self, path: Path | str) -> LaunchOutcome:
        target = Path(path)
        default_opener = self._registry.default_opener
        opener = self._registry.resolve_opener(target.suffix)

        if shutil.which(opener) is None:
            audit_event(
                "dispatch.opener_missing",
                level=logging.WARNING,
                path=str(target),
                opener=opener,
                fallback=default_opener,
            )
            opener = default_opener

        executable, args = self._registry.build_invocation(opener, target)
        try:
            _spawn_detached(executable, args)
        except (OSError, subprocess.SubprocessError) as exc:
            audit_event("dispatch.failed", level=logging.ERROR, path=str(target), opener=opener, error=str(exc))
            if opener == default_opener:
                return LaunchOutcome(path=str(target), opener=opener, launched=False, error=str(exc))
            return self._fallback(target, opener, exc)

        audit_event("dispatch.launched", path=str(target), opener=opener, argv=[executable, *args])
        return LaunchOutcome(path=str(target), opener=opener, launched=True)

    def _fallback(self, target: Path, failed_opener: str, cause: Exception) -> LaunchOutcome:
        default_opener = self._registry.default_opener
        audit_event("dispatch.fallback", path=str(target), opener=failed_opener, fallback=default_opener)
        try:
            _spawn_detached(default_opener, plain_arguments(target))
        except (OSError, subprocess.SubprocessError) as exc:
            audit_event(
                "dispatch.failed",
                level=logging.ERROR,
                path=str(target),
                opener=default_opener,
                error=str(exc),
            )
            return LaunchOutcome(
                path=str(target),
                opener=failed_opener,
                launched=False,
                fallback_attempted=True,
                fallback_launched=False,
                error=str(exc),
            )
        audit_event("dispatch.launched", path=str(target), opener=default_opener, fallback=True)
        return LaunchOutcome(
            path=str(target),
            opener=failed_opener,
            launched=False,
            fallback_attempted=True,
            fallback_launched=True,
            error=str(cause),
        )

    def shutdown(self, wait: bool = False) -> None:
        self._executor.shutdown(wait=wait)


def _log_unexpected_failure(future: Future) -> None:
    if future.cancelled():
        return
    exc = future.exception()
    if exc is not None:
        get_logger("dispatch").error("Dispatch worker crashed: %s", exc, exc_info=exc)

from __future__ import annotations

import logging
import subprocess
from pathlib import Path

import pytest

from agent_core.config import build_opener_config
from agent_core.openers import dispatcher as dispatcher_module
from agent_core.openers.dispatcher import Dispatcher


class _PopenRecorder:
    def __init__(self, failing: set[str] | None = None) -> None:
        self.calls: list[list[str]] = []
        self.failing = failing or set()

    def __call__(self, argv, **kwargs):
        self.calls.append(list(argv))
        if argv[0] in self.failing:
            raise FileNotFoundError(2, "No such file or directory", argv[0])
        assert kwargs["start_new_session"] is True
        assert kwargs["stdout"] is subprocess.DEVNULL
        return object()


def _dispatcher(tmp_path: Path) -> Dispatcher:
    config = build_opener_config(
        extension_map={".pdf": "okular", ".mkv": "vlc", ".zip": "xarchiver"},
        default_opener="xdg-open",
        upload_directory=tmp_path,
        dispatch_workers=1,
    )
    return Dispatcher(config)


def _install(monkeypatch: pytest.MonkeyPatch, available: set[str], failing: set[str] | None = None) -> _PopenRecorder:
    recorder = _PopenRecorder(failing)
    monkeypatch.setattr(dispatcher_module.shutil, "which", lambda name: f"/usr/bin/{name}" if name in available else None)
    monkeypatch.setattr(dispatcher_module.subprocess, "Popen", recorder)
    return recorder


def test_launch_uses_mapped_opener(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    recorder = _install(monkeypatch, {"okular", "xdg-open"})
    target = tmp_path / "1_report.PDF"

    outcome = _dispatcher(tmp_path).launch(target)

    assert outcome.launched is True
    assert outcome.opener == "okular"
    assert outcome.fallback_attempted is False
    assert recorder.calls == [["okular", str(target)]]


def test_launch_shapes_media_and_archive_arguments(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    recorder = _install(monkeypatch, {"vlc", "xarchiver", "xdg-open"})
    dispatcher = _dispatcher(tmp_path)

    dispatcher.launch(tmp_path / "1_clip.mkv")
    dispatcher.launch(tmp_path / "2_bundle.zip")

    assert recorder.calls == [
        ["vlc", "--no-video-title-show", str(tmp_path / "1_clip.mkv")],
        ["xarchiver", f"--extract-to={tmp_path}", str(tmp_path / "2_bundle.zip")],
    ]


def test_missing_opener_substitutes_default(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path, caplog: pytest.LogCaptureFixture
) -> None:
    recorder = _install(monkeypatch, {"xdg-open"})
    target = tmp_path / "1_clip.mkv"

    with caplog.at_level(logging.INFO, logger="file_agent"):
        outcome = _dispatcher(tmp_path).launch(target)

    assert outcome.launched is True
    assert outcome.opener == "xdg-open"
    assert recorder.calls == [["xdg-open", str(target)]]
    assert "dispatch.opener_missing" in caplog.text


def test_spawn_failure_falls_back_once(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path, caplog: pytest.LogCaptureFixture
) -> None:
    recorder = _install(monkeypatch, {"okular", "xdg-open"}, failing={"okular"})
    target = tmp_path / "1_report.pdf"

    with caplog.at_level(logging.INFO, logger="file_agent"):
        outcome = _dispatcher(tmp_path).launch(target)

    assert recorder.calls == [["okular", str(target)], ["xdg-open", str(target)]]
    assert outcome.launched is False
    assert outcome.fallback_attempted is True
    assert outcome.fallback_launched is True
    assert "dispatch.fallback" in caplog.text


def test_fallback_failure_is_only_logged(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    recorder = _install(monkeypatch, {"okular", "xdg-open"}, failing={"okular", "xdg-open"})
    target = tmp_path / "1_report.pdf"

    outcome = _dispatcher(tmp_path).launch(target)

    assert len(recorder.calls) == 2
    assert outcome.fallback_attempted is True
    assert outcome.fallback_launched is False
    assert outcome.error


def test_default_opener_failure_is_not_retried(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    recorder = _install(monkeypatch, set(), failing={"xdg-open"})
    target = tmp_path / "1_notes.unknown"

    outcome = _dispatcher(tmp_path).launch(target)

    assert recorder.calls == [["xdg-open", str(target)]]
    assert outcome.launched is False
    assert outcome.fallback_attempted is False


def test_dispatch_open_runs_in_background(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    recorder = _install(monkeypatch, {"okular"})
    dispatcher = _dispatcher(tmp_path)
    target = tmp_path / "1_report.pdf"

    future = dispatcher.dispatch_open(target)
    outcome = future.result(timeout=5)
    dispatcher.shutdown(wait=True)

    assert outcome.launched is True
    assert recorder.calls == [["okular", str(target)]]

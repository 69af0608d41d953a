from pathlib import Path

from agent_core.config import DEFAULT_EXTENSION_MAP, build_opener_config
from agent_core.openers.registry import OpenerRegistry, default_registry


def _registry() -> OpenerRegistry:
    return OpenerRegistry({".pdf": "okular", ".MKV": "vlc", "zip": "xarchiver"}, "xdg-open")


def test_resolve_opener_mapped_and_unmapped() -> None:
    registry = _registry()
    assert registry.resolve_opener(".pdf") == "okular"
    assert registry.resolve_opener(".PDF") == "okular"
    assert registry.resolve_opener(".mkv") == "vlc"
    assert registry.resolve_opener("zip") == "xarchiver"
    assert registry.resolve_opener(".exe") == "xdg-open"
    assert registry.resolve_opener("") == "xdg-open"


def test_default_registry_covers_every_configured_extension() -> None:
    registry = default_registry(build_opener_config())
    for extension, command in DEFAULT_EXTENSION_MAP.items():
        assert registry.resolve_opener(extension) == command
    assert registry.resolve_opener(".unknown") == "xdg-open"


def test_build_invocation_archive_extracts_next_to_file() -> None:
    path = Path("/tmp/agent-uploads/1_bundle.zip")
    executable, args = _registry().build_invocation("xarchiver", path)
    assert executable == "xarchiver"
    assert args == ["--extract-to=/tmp/agent-uploads", str(path)]


def test_build_invocation_media_hides_title() -> None:
    path = Path("/tmp/agent-uploads/1_clip.mkv")
    executable, args = _registry().build_invocation("vlc", path)
    assert executable == "vlc"
    assert "--no-video-title-show" in args
    assert args[-1] == str(path)


def test_build_invocation_plain_for_other_commands() -> None:
    path = Path("/tmp/agent-uploads/1_notes.txt")
    assert _registry().build_invocation("gedit", path) == ("gedit", [str(path)])
    assert _registry().build_invocation("xdg-open", str(path)) == ("xdg-open", [str(path)])


def test_build_invocation_matches_absolute_executable_by_name() -> None:
    path = Path("/tmp/agent-uploads/1_clip.mp4")
    executable, args = _registry().build_invocation("/usr/bin/vlc", path)
    assert executable == "/usr/bin/vlc"
    assert args == ["--no-video-title-show", str(path)]


def test_register_arguments_extends_table() -> None:
    registry = _registry()
    registry.register_arguments("okular", lambda path: ["--unique", str(path)])
    path = Path("/tmp/agent-uploads/1_doc.pdf")
    assert registry.build_invocation("okular", path) == ("okular", ["--unique", str(path)])
    # other registries keep the stock table
    assert _registry().build_invocation("okular", path) == ("okular", [str(path)])

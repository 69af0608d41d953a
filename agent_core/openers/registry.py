from __future__ import annotations

from pathlib import Path
from typing import Callable, Dict, List, Mapping, Optional, Tuple

from agent_core.config import OpenerConfig, normalize_extension


ArgumentBuilder = Callable[[Path], List[str]]


def _extract_to_parent(path: Path) -> List[str]:
    return [f"--extract-to={path.parent}", str(path)]


def _without_title(path: Path) -> List[str]:
    return ["--no-video-title-show", str(path)]


def plain_arguments(path: Path) -> List[str]:
    return [str(path)]


ARGUMENT_BUILDERS: Dict[str, ArgumentBuilder] = {
    "xarchiver": _extract_to_parent,
    "vlc": _without_title,
}


class OpenerRegistry:
    """Maps file extensions to opener commands and shapes their arguments.

    Lookups never fail: an unmapped extension resolves to the default opener
    and an unregistered command gets the plain ``executable path`` form.
    """

    def __init__(
        self,
        extension_map: Mapping[str, str],
        default_opener: str,
        builders: Optional[Mapping[str, ArgumentBuilder]] = None,
    ) -> None:
        self._extension_map = {normalize_extension(ext): command for ext, command in extension_map.items()}
        self._default_opener = default_opener
        self._builders: Dict[str, ArgumentBuilder] = dict(ARGUMENT_BUILDERS if builders is None else builders)

    @property
    def default_opener(self) -> str:
        return self._default_opener

    def resolve_opener(self, extension: str) -> str:
        return self._extension_map.get(normalize_extension(extension), self._default_opener)

    def register_arguments(self, command: str, builder: ArgumentBuilder) -> None:
        self._builders[command] = builder

    def build_invocation(self, command: str, path: Path | str) -> Tuple[str, List[str]]:
        target = Path(path)
        # "/usr/bin/vlc" shapes its arguments like "vlc"
        builder = self._builders.get(command) or self._builders.get(Path(command).name, plain_arguments)
        return command, builder(target)


def default_registry(config: OpenerConfig) -> OpenerRegistry:
    return OpenerRegistry(config.extension_map, config.default_opener)

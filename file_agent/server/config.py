from __future__ import annotations

from dataclasses import dataclass
import os

from agent_core.config import load_config_file, parse_int


DEFAULT_PORT = 8080


@dataclass(frozen=True)
class ServerSettings:
    host: str
    port: int
    version: str


def get_settings() -> ServerSettings:
    file_values = load_config_file(os.getenv("FILE_AGENT_CONFIG"))
    host = os.getenv("FILE_AGENT_HOST", "0.0.0.0").strip() or "0.0.0.0"
    file_port = file_values.get("port")
    port = parse_int(
        os.getenv("FILE_AGENT_PORT"),
        parse_int(None if file_port is None else str(file_port), DEFAULT_PORT),
    )
    version = os.getenv("FILE_AGENT_VERSION", "0.1.0")
    return ServerSettings(host=host, port=port, version=version)

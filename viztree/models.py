from __future__ import annotations

import re
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, ValidationError, field_validator

DEFAULT_ADDR = "localhost:8080"

_ADDR_PATTERN = re.compile(r"^(?:\[(?P<ipv6>[0-9A-Fa-f:.]+)\]|(?P<host>[^:\[\]]*)):(?P<port>\d+)$")


def split_addr(value: str) -> tuple[str, int]:
    match = _ADDR_PATTERN.match(value.strip())
    if match is None:
        raise ValueError("Address must look like 'host:port', ':port' or '[ipv6]:port'")
    port = int(match.group("port"))
    if port > 65535:
        raise ValueError(f"Port out of range: {port}")
    host = match.group("ipv6") if match.group("ipv6") is not None else match.group("host")
    return host, port


class ViewerSettings(BaseModel):
    model_config = ConfigDict(extra="forbid")

    addr: str = DEFAULT_ADDR
    pipe: bool = False
    title: str = "Viztree"
    script: Path | None = None
    open_browser: bool = False

    @field_validator("addr")
    @classmethod
    def validate_addr(cls, value: str) -> str:
        split_addr(value)
        return value.strip()

    @property
    def host(self) -> str:
        return split_addr(self.addr)[0]

    @property
    def port(self) -> int:
        return split_addr(self.addr)[1]


def parse_settings_data(data: dict[str, Any]) -> ViewerSettings:
    return ViewerSettings.model_validate(data)


def load_settings(path: Path) -> ViewerSettings:
    raw = yaml.safe_load(path.read_text(encoding="utf-8"))
    if raw is None:
        raw = {}
    if not isinstance(raw, dict):
        raise ValueError(f"Config at {path} must be a YAML object")
    settings = parse_settings_data(raw)
    if settings.script is not None and not settings.script.is_absolute():
        settings = settings.model_copy(update={"script": path.parent / settings.script})
    return settings


def format_validation_error(exc: ValidationError) -> str:
    messages: list[str] = []
    for issue in exc.errors():
        loc = ".".join(str(part) for part in issue.get("loc", []))
        message = issue.get("msg", "validation error")
        messages.append(f"{loc}: {message}")
    return "\n".join(messages)

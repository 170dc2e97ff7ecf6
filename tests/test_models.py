from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import ValidationError

from viztree.models import (
    ViewerSettings,
    format_validation_error,
    load_settings,
    parse_settings_data,
    split_addr,
)


def test_defaults_match_command_line_defaults() -> None:
    settings = ViewerSettings()

    assert settings.addr == "localhost:8080"
    assert (settings.host, settings.port) == ("localhost", 8080)
    assert settings.pipe is False
    assert settings.script is None


@pytest.mark.parametrize(
    ("addr", "expected"),
    [
        ("127.0.0.1:0", ("127.0.0.1", 0)),
        (":9000", ("", 9000)),
        ("[::1]:8081", ("::1", 8081)),
        (" example.test:80 ", ("example.test", 80)),
    ],
)
def test_split_addr_accepts_host_port_forms(addr: str, expected: tuple[str, int]) -> None:
    assert split_addr(addr) == expected


@pytest.mark.parametrize("addr", ["localhost", "localhost:http", "host:70000", "::1:80"])
def test_invalid_addr_fails_validation(addr: str) -> None:
    with pytest.raises(ValidationError):
        parse_settings_data({"addr": addr})


def test_unknown_keys_are_rejected() -> None:
    with pytest.raises(ValidationError):
        parse_settings_data({"adress": "localhost:1"})


def test_load_settings_from_yaml(tmp_path: Path) -> None:
    config = tmp_path / "viztree.yaml"
    config.write_text(
        """
        addr: "0.0.0.0:9090"
        pipe: true
        title: Build graph
        script: render.js
        """,
        encoding="utf-8",
    )

    settings = load_settings(config)

    assert settings.port == 9090
    assert settings.pipe is True
    assert settings.title == "Build graph"
    assert settings.script == tmp_path / "render.js"


def test_empty_yaml_uses_defaults(tmp_path: Path) -> None:
    config = tmp_path / "empty.yaml"
    config.write_text("", encoding="utf-8")

    assert load_settings(config) == ViewerSettings()


def test_non_mapping_yaml_is_rejected(tmp_path: Path) -> None:
    config = tmp_path / "list.yaml"
    config.write_text("- addr\n- pipe\n", encoding="utf-8")

    with pytest.raises(ValueError, match="must be a YAML object"):
        load_settings(config)


def test_format_validation_error_lists_locations() -> None:
    with pytest.raises(ValidationError) as exc_info:
        parse_settings_data({"addr": "nope", "pipe": "maybe"})

    message = format_validation_error(exc_info.value)

    assert "addr:" in message
    assert "pipe:" in message

from __future__ import annotations

from importlib.resources import files
from importlib.resources.abc import Traversable


def _assets_root() -> Traversable:
    return files("viztree").joinpath("assets")


def list_asset_names() -> list[str]:
    return sorted(entry.name for entry in _assets_root().iterdir() if entry.is_file())


def read_asset(name: str) -> str:
    asset_path = _assets_root().joinpath(name)
    if not asset_path.is_file():
        raise FileNotFoundError(f"Asset not found: {name}")
    return asset_path.read_text(encoding="utf-8")

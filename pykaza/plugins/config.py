from __future__ import annotations

import pathlib

import yaml

from pykaza.exceptions.client import InvalidConfigException
from pykaza.logging import getLogger
from pykaza.plugins.registry import PluginRegistry
from pykaza.type_hints.dict_typing import JSON_DICT_TYPE

LOGGER = getLogger("PyKaza.PluginConfig")


def read_plugin_config(path: str | pathlib.Path) -> JSON_DICT_TYPE:
    """Reads plugin overrides from a YAML file.

    Raises
    ------
    :class:`InvalidConfigException`
        When the file can not be read or does not hold a mapping.
    """
    path = pathlib.Path(path)
    try:
        with path.open(encoding="utf-8") as file:
            data = yaml.safe_load(file)
    except (OSError, yaml.YAMLError) as exc:
        raise InvalidConfigException(
            f"Unable to read plugin configuration from {path}", details={"path": str(path), "error": repr(exc)}
        ) from exc
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise InvalidConfigException(
            f"Plugin configuration in {path} must be a mapping", details={"path": str(path)}
        )
    return data


def apply_plugin_config(registry: PluginRegistry, path: str | pathlib.Path) -> list[str]:
    """Applies the overrides in a YAML file to a registry, returns the updated plugin names"""
    updated = registry.import_config(read_plugin_config(path))
    LOGGER.info("Applied plugin configuration from %s to %s", path, ", ".join(updated) or "no plugins")
    return updated


def write_plugin_config(registry: PluginRegistry, path: str | pathlib.Path) -> None:
    """Writes the registry's configuration to a YAML file"""
    path = pathlib.Path(path)
    with path.open("w", encoding="utf-8") as file:
        yaml.safe_dump({"plugins": registry.export_config()}, file, default_flow_style=False, sort_keys=False)

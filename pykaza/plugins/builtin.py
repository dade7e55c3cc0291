from __future__ import annotations

from pykaza.plugins.auto_leave import AutoLeavePlugin
from pykaza.plugins.player_moved import PlayerMovedPlugin
from pykaza.plugins.registry import PluginRegistration, PluginRegistry

BUILTIN_PLUGINS = (
    PluginRegistration(
        name=PlayerMovedPlugin.name,
        factory=PlayerMovedPlugin,
        enabled=True,
        priority=100,
        config=dict(PlayerMovedPlugin.default_config),
        builtin=True,
    ),
    PluginRegistration(
        name=AutoLeavePlugin.name,
        factory=AutoLeavePlugin,
        enabled=False,
        priority=50,
        config=dict(AutoLeavePlugin.default_config),
        builtin=True,
    ),
)


def register_builtin_plugins(registry: PluginRegistry) -> None:
    for registration in BUILTIN_PLUGINS:
        registry.register(registration)

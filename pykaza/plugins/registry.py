from __future__ import annotations

import dataclasses
from collections.abc import Callable, Iterable, Mapping
from typing import TYPE_CHECKING, Any

from pykaza.constants.errors import ErrorCode
from pykaza.exceptions.base import KazaException
from pykaza.exceptions.client import InvalidConfigException, PluginLoadException
from pykaza.helpers.errors import create_error, log_error
from pykaza.logging import getLogger
from pykaza.plugins.base import KazaPlugin
from pykaza.type_hints.dict_typing import JSON_DICT_TYPE

if TYPE_CHECKING:
    from pykaza.core.client import Client

LOGGER = getLogger("PyKaza.PluginRegistry")

PluginFactory = Callable[[Mapping[str, Any]], KazaPlugin]

DEFAULT_PRIORITY = 10


@dataclasses.dataclass(repr=True, frozen=True, kw_only=True, slots=True)
class PluginRegistration:
    """A plugin known to the registry.

    Attributes
    ----------
    name: :class:`str`
        The unique plugin name.
    factory: Callable
        Called with :attr:`config` to create the plugin instance.
    enabled: :class:`bool`
        Whether the plugin is loaded by :meth:`PluginRegistry.load_all`.
    priority: :class:`int`
        Higher priorities load first among plugins whose dependencies allow it.
    dependencies: tuple[:class:`str`, ...]
        Plugins that must be loaded before this one.
    config: Mapping
        Passed to the factory.
    builtin: :class:`bool`
        Whether the plugin ships with the library.
    """

    name: str
    factory: PluginFactory
    enabled: bool = True
    priority: int = DEFAULT_PRIORITY
    dependencies: tuple[str, ...] = ()
    config: Mapping[str, Any] = dataclasses.field(default_factory=dict)
    builtin: bool = False

    def to_dict(self) -> JSON_DICT_TYPE:
        return {
            "enabled": self.enabled,
            "priority": self.priority,
            "dependencies": list(self.dependencies),
            "config": dict(self.config),
        }


class PluginRegistry:
    """An explicit registry of plugin factories.

    Plugins are registered by name ahead of time, :meth:`load_all` instantiates the enabled ones in dependency
    order. A plugin that fails to load, or whose dependencies did not load, is skipped and reported without
    affecting the others.
    """

    __slots__ = ("_registrations", "_loaded", "_failed")

    def __init__(self) -> None:
        self._registrations: dict[str, PluginRegistration] = {}
        self._loaded: dict[str, KazaPlugin] = {}
        self._failed: dict[str, str] = {}

    def __len__(self) -> int:
        return len(self._registrations)

    def __contains__(self, name: str) -> bool:
        return name in self._registrations

    @property
    def registrations(self) -> list[PluginRegistration]:
        return list(self._registrations.values())

    @property
    def loaded(self) -> dict[str, KazaPlugin]:
        """Loaded plugin instances, in load order"""
        return dict(self._loaded)

    @property
    def failed(self) -> dict[str, str]:
        """Plugins skipped during the last load, with the reason"""
        return dict(self._failed)

    @property
    def healthy(self) -> bool:
        return not self._failed

    def register(
        self,
        registration: PluginRegistration | type[KazaPlugin],
        *,
        name: str | None = None,
        enabled: bool = True,
        priority: int = DEFAULT_PRIORITY,
        dependencies: Iterable[str] = (),
        config: Mapping[str, Any] | None = None,
    ) -> PluginRegistration:
        """Registers a plugin, replacing any registration with the same name.

        Parameters
        ----------
        registration: :class:`PluginRegistration` | type[:class:`KazaPlugin`]
            A full registration, or a plugin class registered with the keyword arguments.

        Raises
        ------
        :class:`InvalidConfigException`
            When the plugin has no name.
        """
        if not isinstance(registration, PluginRegistration):
            registration = PluginRegistration(
                name=name or registration.name,
                factory=registration,
                enabled=enabled,
                priority=priority,
                dependencies=tuple(dependencies),
                config=dict(config or {}),
            )
        if not registration.name:
            raise InvalidConfigException("Plugins must have a name", details={"plugin": repr(registration)})
        if registration.name in self._registrations:
            LOGGER.debug("Replacing plugin registration %s", registration.name)
        self._registrations[registration.name] = registration
        return registration

    def unregister(self, name: str) -> bool:
        if name in self._loaded:
            LOGGER.warning("Unregistering plugin %s while it is loaded, it stays loaded until unload", name)
        return self._registrations.pop(name, None) is not None

    def get(self, name: str) -> PluginRegistration | None:
        return self._registrations.get(name)

    def plugin(self, name: str) -> KazaPlugin | None:
        """Returns the loaded instance of a plugin"""
        return self._loaded.get(name)

    def set_enabled(self, name: str, enabled: bool) -> bool:
        if name not in self._registrations:
            return False
        self._registrations[name] = dataclasses.replace(self._registrations[name], enabled=enabled)
        return True

    def update(
        self,
        name: str,
        *,
        enabled: bool | None = None,
        priority: int | None = None,
        dependencies: Iterable[str] | None = None,
        config: Mapping[str, Any] | None = None,
    ) -> PluginRegistration:
        """Updates a registration, ``config`` is merged into the existing configuration.

        Raises
        ------
        :class:`PluginLoadException`
            When no plugin with that name is registered.
        """
        if (registration := self._registrations.get(name)) is None:
            raise PluginLoadException(f"Plugin {name} is not registered", details={"plugin": name})
        changes: dict[str, Any] = {}
        if enabled is not None:
            changes["enabled"] = bool(enabled)
        if priority is not None:
            changes["priority"] = int(priority)
        if dependencies is not None:
            changes["dependencies"] = tuple(dependencies)
        if config:
            changes["config"] = {**registration.config, **config}
        registration = dataclasses.replace(registration, **changes)
        self._registrations[name] = registration
        if config and (plugin := self._loaded.get(name)) is not None:
            plugin.update_config(**config)
        return registration

    def _resolve_order(self) -> tuple[list[str], set[str]]:
        enabled = {name: reg for name, reg in self._registrations.items() if reg.enabled}
        order: list[str] = []
        done: set[str] = set()
        skipped: set[str] = set()

        def visit(name: str, path: list[str]) -> bool:
            if name in done:
                return True
            if name in skipped:
                return False
            if name in path:
                cycle = path[path.index(name) :]
                LOGGER.warning("Circular plugin dependency: %s", " -> ".join([*cycle, name]))
                skipped.update(cycle)
                return False
            path.append(name)
            loadable = True
            for dependency in enabled[name].dependencies:
                if dependency in enabled and not visit(dependency, path):
                    loadable = False
            path.pop()
            if not loadable or name in skipped:
                skipped.add(name)
                return False
            done.add(name)
            order.append(name)
            return True

        for name in sorted(enabled, key=lambda n: (-enabled[n].priority, n)):
            visit(name, [])
        return order, skipped

    def load_order(self) -> list[str]:
        """Enabled plugins with dependencies first, otherwise by descending priority then name.

        Plugins in a dependency cycle, and plugins depending on them, are left out.
        """
        return self._resolve_order()[0]

    def validate_dependencies(self) -> list[str]:
        """Returns a message for every enabled plugin whose dependency is missing or disabled"""
        errors = []
        for name, registration in self._registrations.items():
            if not registration.enabled:
                continue
            for dependency in registration.dependencies:
                target = self._registrations.get(dependency)
                if target is None:
                    errors.append(f'Plugin "{name}" requires "{dependency}" which is not registered')
                elif not target.enabled:
                    errors.append(f'Plugin "{name}" requires "{dependency}" to be enabled')
        return errors

    def _skip(self, name: str, error: KazaException) -> None:
        self._failed[name] = error.message
        log_error(error, "PluginRegistry")

    async def load_all(self, client: Client) -> list[str]:
        """|coro|
        Loads every enabled plugin that is not loaded yet.

        Returns
        -------
        list[:class:`str`]
            The names of the plugins loaded by this call.
        """
        self._failed.clear()
        order, skipped = self._resolve_order()
        for name in sorted(skipped):
            self._skip(
                name,
                PluginLoadException(
                    f"Plugin {name} is part of or depends on a dependency cycle", details={"plugin": name}
                ),
            )
        newly_loaded = []
        for name in order:
            if name in self._loaded:
                continue
            registration = self._registrations[name]
            if missing := [dependency for dependency in registration.dependencies if dependency not in self._loaded]:
                self._skip(
                    name,
                    PluginLoadException(
                        f"Plugin {name} requires {', '.join(missing)}",
                        details={"plugin": name, "missing": missing},
                    ),
                )
                continue
            try:
                plugin = registration.factory(dict(registration.config))
                await plugin.setup(client)
            except Exception as exc:
                error = create_error(
                    ErrorCode.PLUGIN_LOAD_FAILED,
                    {"plugin": name, "original_error": repr(exc)},
                    f"Failed to load plugin {name}: {exc}",
                )
                self._skip(name, error)
                continue
            self._loaded[name] = plugin
            newly_loaded.append(name)
            LOGGER.info("Loaded plugin %s", name)
        return newly_loaded

    async def unload_all(self) -> None:
        """|coro|
        Tears down every loaded plugin, in reverse load order"""
        for name, plugin in reversed(list(self._loaded.items())):
            try:
                await plugin.teardown()
            except Exception:  # noqa
                LOGGER.exception("Plugin %s failed to tear down", name)
            LOGGER.verbose("Unloaded plugin %s", name)
        self._loaded.clear()

    def stats(self) -> JSON_DICT_TYPE:
        builtin = sum(registration.builtin for registration in self._registrations.values())
        return {
            "total": len(self._registrations),
            "enabled": sum(registration.enabled for registration in self._registrations.values()),
            "loaded": len(self._loaded),
            "failed": len(self._failed),
            "builtin": builtin,
            "custom": len(self._registrations) - builtin,
        }

    def export_config(self) -> JSON_DICT_TYPE:
        return {name: registration.to_dict() for name, registration in self._registrations.items()}

    def import_config(self, data: Mapping[str, Any]) -> list[str]:
        """Applies configuration overrides to registered plugins.

        Parameters
        ----------
        data: Mapping
            ``{name: {enabled, priority, dependencies, config}}``, optionally nested under a ``plugins`` key.

        Returns
        -------
        list[:class:`str`]
            The names of the plugins that were updated, overrides for unregistered plugins are ignored.

        Raises
        ------
        :class:`InvalidConfigException`
            When an override is not a mapping.
        """
        if isinstance(data.get("plugins"), Mapping):
            data = data["plugins"]
        updated = []
        for name, overrides in data.items():
            if not isinstance(overrides, Mapping):
                raise InvalidConfigException(
                    f"Configuration for plugin {name} must be a mapping", details={"plugin": name}
                )
            if name not in self._registrations:
                LOGGER.warning("Ignoring configuration for unregistered plugin %s", name)
                continue
            self.update(
                name,
                enabled=overrides.get("enabled"),
                priority=overrides.get("priority"),
                dependencies=overrides.get("dependencies"),
                config=overrides.get("config"),
            )
            updated.append(name)
        return updated

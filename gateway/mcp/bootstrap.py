"""
Gateway assembly - build a registry from settings and serve it.

The enabled provider names in a Settings snapshot decide which tools exist.
``Gateway.reload`` never edits the live registry: it builds a complete new
one and replaces the active snapshot in a single assignment, so a call in
flight keeps the registry it resolved against.
"""

from typing import Callable, Dict, List, NamedTuple, Optional

import structlog

from ..core.config import Settings
from .dispatcher import Dispatcher
from .errors import UnknownProviderError
from .providers import CoreProvider, MemoryProvider, Provider
from .registry import ToolRegistry

logger = structlog.get_logger(__name__)

ProviderFactory = Callable[[Settings], Provider]

PROVIDER_CATALOG: Dict[str, ProviderFactory] = {
    "core": CoreProvider,
    "memory": lambda settings: MemoryProvider(),
}


def build_registry(
    settings: Settings,
    catalog: Optional[Dict[str, ProviderFactory]] = None,
) -> ToolRegistry:
    """
    Build and freeze a registry for the providers enabled in ``settings``.

    Raises:
        UnknownProviderError: A provider name is missing from the catalog
        DuplicateToolError: Two providers expose the same tool name
    """
    catalog = PROVIDER_CATALOG if catalog is None else catalog
    registry = ToolRegistry()

    for provider_name in settings.enabled_providers:
        factory = catalog.get(provider_name)
        if factory is None:
            raise UnknownProviderError(provider_name, sorted(catalog))
        provider = factory(settings)
        entries = registry.register_provider(provider)
        logger.info("Provider loaded", provider=provider_name, tools=len(entries))

    registry.freeze()
    logger.info(
        "Tool registry built",
        tools=len(registry),
        providers=settings.enabled_providers,
    )
    return registry


class _Snapshot(NamedTuple):
    settings: Settings
    dispatcher: Dispatcher


class Gateway:
    """Owns the active registry and the dispatcher bound to it."""

    def __init__(
        self,
        settings: Settings,
        catalog: Optional[Dict[str, ProviderFactory]] = None,
    ) -> None:
        self._catalog = PROVIDER_CATALOG if catalog is None else catalog
        self._snapshot = self._build(settings)

    @classmethod
    def from_registry(cls, registry: ToolRegistry, settings: Settings) -> "Gateway":
        """Serve a registry assembled by the caller."""
        gateway = cls.__new__(cls)
        gateway._catalog = {}
        gateway._snapshot = _Snapshot(settings, cls._dispatcher_for(registry, settings))
        return gateway

    @property
    def settings(self) -> Settings:
        return self._snapshot.settings

    @property
    def dispatcher(self) -> Dispatcher:
        return self._snapshot.dispatcher

    @property
    def registry(self) -> ToolRegistry:
        return self._snapshot.dispatcher.registry

    @property
    def providers(self) -> List[str]:
        return self.registry.providers()

    def reload(self, settings: Settings) -> ToolRegistry:
        """Rebuild from new settings and swap it in; the old registry is untouched on failure."""
        snapshot = self._build(settings)
        self._snapshot = snapshot
        logger.info("Gateway reloaded", tools=len(snapshot.dispatcher.registry))
        return snapshot.dispatcher.registry

    def _build(self, settings: Settings) -> _Snapshot:
        registry = build_registry(settings, self._catalog)
        return _Snapshot(settings, self._dispatcher_for(registry, settings))

    @staticmethod
    def _dispatcher_for(registry: ToolRegistry, settings: Settings) -> Dispatcher:
        return Dispatcher(
            registry.freeze(),
            default_timeout_seconds=settings.tool_timeout_seconds,
            strict_arguments=settings.strict_arguments,
        )

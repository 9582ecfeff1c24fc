"""Tool registry: name-keyed definitions and their bound handlers."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Awaitable, Callable, Dict, Iterator, List, Union, ValuesView

import structlog

from .errors import DuplicateToolError, RegistryFrozenError, ToolNotFoundError
from .tool import ToolDefinition

if TYPE_CHECKING:
    from .providers.base import Provider

logger = structlog.get_logger(__name__)

# Handlers receive the validated, default-filled argument object and return
# any JSON value. Coroutine functions are preferred; plain callables run in a
# worker thread.
ToolHandler = Union[
    Callable[[Dict[str, Any]], Awaitable[Any]],
    Callable[[Dict[str, Any]], Any],
]


@dataclass(frozen=True)
class RegisteredTool:
    """A definition paired with the handler that executes it."""

    definition: ToolDefinition
    handler: ToolHandler
    provider: str = "local"

    @property
    def name(self) -> str:
        return self.definition.name


class ToolRegistry:
    """
    In-memory registry of tools.

    Populated once at startup and frozen before it serves traffic. Readers
    never take a lock: a reconfiguration builds a new registry and swaps the
    reference instead of mutating this one.
    """

    def __init__(self) -> None:
        self._tools: Dict[str, RegisteredTool] = {}
        self._definitions: Dict[str, ToolDefinition] = {}
        self._frozen = False

    def register(
        self,
        definition: ToolDefinition,
        handler: ToolHandler,
        provider: str = "local",
    ) -> RegisteredTool:
        """
        Register a tool implementation.

        Raises:
            DuplicateToolError: Name already registered (existing entry kept)
            RegistryFrozenError: Registry already published
        """
        if self._frozen:
            raise RegistryFrozenError(definition.name)
        if definition.name in self._tools:
            raise DuplicateToolError(definition.name)

        entry = RegisteredTool(definition=definition, handler=handler, provider=provider)
        self._tools[definition.name] = entry
        self._definitions[definition.name] = definition

        logger.info(
            "Registered MCP tool",
            tool=definition.name,
            version=definition.version,
            provider=provider,
            parameters=list(definition.parameters),
        )
        return entry

    def register_provider(self, provider: "Provider") -> List[RegisteredTool]:
        """Register every tool a provider module exposes."""
        entries = []
        for name, description, schema in provider.get_tools():
            definition = ToolDefinition.from_json_schema(
                name,
                description,
                schema,
                annotations=provider.get_annotations(name),
            )
            if provider.timeout_ms is not None:
                definition.timeout_ms = provider.timeout_ms
            entries.append(
                self.register(definition, provider.get_handler(name), provider=provider.name)
            )
        return entries

    def get(self, name: str) -> RegisteredTool:
        """Return a tool or raise ToolNotFoundError."""
        try:
            return self._tools[name]
        except KeyError:
            raise ToolNotFoundError(name) from None

    def list_tools(self) -> ValuesView[ToolDefinition]:
        """Live view of definitions in registration order; iterable any number of times."""
        return self._definitions.values()

    def names(self) -> List[str]:
        return list(self._tools)

    def providers(self) -> List[str]:
        seen: Dict[str, None] = {}
        for entry in self._tools.values():
            seen.setdefault(entry.provider, None)
        return list(seen)

    def freeze(self) -> "ToolRegistry":
        self._frozen = True
        return self

    @property
    def frozen(self) -> bool:
        return self._frozen

    def __contains__(self, name: object) -> bool:
        return name in self._tools

    def __len__(self) -> int:
        return len(self._tools)

    def __iter__(self) -> Iterator[RegisteredTool]:
        return iter(self._tools.values())

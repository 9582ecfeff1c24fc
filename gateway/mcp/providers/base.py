"""Base abstraction for provider modules."""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Tuple

from ..registry import ToolHandler
from ..tool import ToolAnnotation

ToolListing = Tuple[str, str, Dict[str, Any]]


class Provider(ABC):
    """
    A provider module contributes tools and their handlers.

    Subclasses must implement:
    - get_tools(): (name, description, JSON schema) per tool
    - get_handler(name): async callable executing one tool
    """

    name: str
    timeout_ms: Optional[int] = None

    @abstractmethod
    def get_tools(self) -> List[ToolListing]:
        """Return the tools this provider exposes."""

    @abstractmethod
    def get_handler(self, tool_name: str) -> ToolHandler:
        """Return the handler bound to one of this provider's tools."""

    def get_annotations(self, tool_name: str) -> Optional[ToolAnnotation]:
        """Return annotations for a tool; None keeps the defaults."""
        return None

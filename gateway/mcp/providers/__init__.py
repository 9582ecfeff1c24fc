"""Provider modules shipped with the gateway."""

from .base import Provider
from .core import CoreProvider
from .memory import MemoryProvider

__all__ = ["Provider", "CoreProvider", "MemoryProvider"]

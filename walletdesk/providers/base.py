from abc import ABC, abstractmethod
from typing import Any, Dict


class Provider(ABC):
    """Base interface for upstream services the gateway forwards to"""

    name: str
    timeout_s: int = 10

    @abstractmethod
    async def ready(self) -> bool:
        """Check if provider is configured well enough to serve requests"""
        pass

    @abstractmethod
    async def health_check(self) -> Dict[str, Any]:
        """Return provider health status"""
        pass

    async def aclose(self) -> None:
        """Release pooled connections; default is a no-op"""
        return None

"""
Request-once permission gates.

Each gate asks the platform at most once and caches the answer. A denied
gate stays denied until ``retry()`` is called (after the user visits the
system settings page).
"""

import asyncio
import logging
from typing import Awaitable, Callable, Optional

from ..domain.errors import PermissionRequired

logger = logging.getLogger(__name__)


class PermissionGate:
    """Caches a single platform authorization answer."""

    def __init__(self, kind: str, request: Callable[[], Awaitable[bool]]) -> None:
        self.kind = kind
        self._request = request
        self._granted: Optional[bool] = None
        self._lock = asyncio.Lock()

    @property
    def status(self) -> Optional[bool]:
        """True/False once asked, None before the first request."""
        return self._granted

    async def is_granted(self) -> bool:
        async with self._lock:
            if self._granted is None:
                self._granted = bool(await self._request())
                logger.info(f"Permission '{self.kind}' granted={self._granted}")
            return self._granted

    async def ensure(self) -> None:
        """Raise PermissionRequired unless the permission is granted."""
        if not await self.is_granted():
            raise PermissionRequired(self.kind)

    def retry(self) -> None:
        """Forget the cached answer so the next check asks again."""
        self._granted = None


async def ensure_all(*gates: PermissionGate) -> None:
    """Check gates one after another, stopping at the first denial."""
    for gate in gates:
        await gate.ensure()

"""
InMemoryNotificationCenter: a NotificationCenter kept in a dict.

Used when no platform notification service is attached, and in tests.
"""

import logging
from typing import Dict, Iterable, List

from .base import NotificationRequest

logger = logging.getLogger(__name__)


class InMemoryNotificationCenter:
    """In-process notification backend keyed by request identifier."""

    def __init__(self, authorized: bool = True) -> None:
        self.authorized = authorized
        self.authorization_requests = 0
        self._pending: Dict[str, NotificationRequest] = {}

    async def request_authorization(self) -> bool:
        self.authorization_requests += 1
        return self.authorized

    async def schedule(self, request: NotificationRequest) -> None:
        if request.identifier in self._pending:
            logger.debug("Replacing pending notification '%s'", request.identifier)
        self._pending[request.identifier] = request

    async def cancel(self, identifiers: Iterable[str]) -> None:
        for identifier in identifiers:
            self._pending.pop(identifier, None)

    async def cancel_all(self) -> None:
        self._pending.clear()

    async def pending_identifiers(self) -> List[str]:
        return list(self._pending)

    def pending(self) -> List[NotificationRequest]:
        """Pending requests ordered by fire time."""
        return sorted(self._pending.values(), key=lambda r: (r.fire_at, r.identifier))

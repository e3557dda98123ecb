"""NotificationCenter port -- abstracts local notification delivery."""

from typing import Iterable, List, Protocol, runtime_checkable


@runtime_checkable
class NotificationCenter(Protocol):
    """Platform notification scheduler.

    Scheduling a request whose identifier is already pending replaces it.
    """

    async def request_authorization(self) -> bool: ...

    async def schedule(self, request: object) -> None: ...

    async def cancel(self, identifiers: Iterable[str]) -> None: ...

    async def cancel_all(self) -> None: ...

    async def pending_identifiers(self) -> List[str]: ...

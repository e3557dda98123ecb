"""WidgetSurface port -- asks the home-screen widget to re-read its data."""

from typing import Protocol, runtime_checkable


@runtime_checkable
class WidgetSurface(Protocol):
    def reload_all(self) -> None: ...

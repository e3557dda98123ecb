"""
Service container for the prayer journal core.

`setup_services()` registers a factory per entry in `Services` (repository,
attachment store, reminder scheduler, widget publisher, PrayerService, ...)
and the lifecycle reads them back from here. Every core service lives for
the whole app run, so factories are built once on first `get()`.
Tests swap a collaborator in with `register_instance()`.
"""

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, Union

logger = logging.getLogger(__name__)

# A class (called without arguments) or a callable receiving the container
Factory = Union[type, Callable[["ServiceContainer"], Any]]


@dataclass
class _Registration:
    factory: Optional[Factory]
    singleton: bool = True


class ServiceContainer:
    """Name-keyed registry of the core services and their factories."""

    def __init__(self):
        self._registrations: Dict[str, _Registration] = {}
        self._instances: Dict[str, Any] = {}

    def register(self, name: str, factory: Factory, singleton: bool = True) -> None:
        """Register how to build *name*; replaces any earlier instance.

        A non-singleton registration builds a new object on every get(),
        used only in tests.
        """
        self._registrations[name] = _Registration(factory, singleton)
        self._instances.pop(name, None)
        logger.debug(f"Registered service: {name} (singleton={singleton})")

    def register_instance(self, name: str, instance: Any) -> None:
        """Register an already built service (settings, fakes in tests)."""
        self._registrations[name] = _Registration(None)
        self._instances[name] = instance
        logger.debug(f"Registered instance: {name}")

    def get(self, name: str) -> Any:
        """
        Return the service registered as *name*, building it if needed.

        Raises:
            KeyError: If nothing is registered under *name*
        """
        registration = self._registrations.get(name)
        if registration is None:
            raise KeyError(f"Service '{name}' is not registered")

        if registration.singleton and name in self._instances:
            return self._instances[name]

        factory = registration.factory
        if isinstance(factory, type):
            instance = factory()
        else:
            instance = factory(self)

        if registration.singleton:
            self._instances[name] = instance
            logger.debug(f"Built service: {name}")
        return instance

    def has(self, name: str) -> bool:
        return name in self._registrations

    def clear(self) -> None:
        self._registrations.clear()
        self._instances.clear()
        logger.debug("Container cleared")


_container: Optional[ServiceContainer] = None


def get_container() -> ServiceContainer:
    global _container
    if _container is None:
        _container = ServiceContainer()
    return _container


def reset_container() -> None:
    """Drop every registered service; called between app runs and tests."""
    global _container
    if _container is not None:
        _container.clear()
    _container = ServiceContainer()

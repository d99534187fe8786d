from __future__ import annotations

import logging
from typing import Any, Callable, TypeVar

from sorrel.core.errors import ImplementationFactoryError, ImplementationNotFound

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=type)


class Registry:
    """Maps feature names to factories for their steps implementation."""

    def __init__(self) -> None:
        self._factories: dict[str, Callable[[], Any]] = {}

    def register(self, name: str, factory: Callable[[], Any]) -> None:
        if name in self._factories:
            logger.debug("Replacing steps implementation for feature %r", name)
        self._factories[name] = factory

    def resolve(self, name: str) -> Any:
        """Return a fresh implementation instance for `name`."""
        factory = self._factories.get(name)
        if factory is None:
            raise ImplementationNotFound(name, known=self._factories)
        try:
            return factory()
        except Exception as exc:
            raise ImplementationFactoryError(name, known=self._factories) from exc

    def names(self) -> list[str]:
        return sorted(self._factories)

    def clear(self) -> None:
        self._factories.clear()

    def __contains__(self, name: object) -> bool:
        return name in self._factories


REGISTRY = Registry()


def feature(name: str, *, registry: Registry | None = None) -> Callable[[T], T]:
    """Class decorator binding a steps class to the feature called `name`."""

    def decorate(cls: T) -> T:
        (registry or REGISTRY).register(name, cls)
        cls.feature_name = name
        return cls

    return decorate

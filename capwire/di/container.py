"""
capwire - Service Container

A lightweight key -> service resolver. The injector depends only on the
``ServiceProvider`` protocol below, so any object with a compatible ``get``
can stand in for this container.

Features:
- Instance, factory and class registrations
- Singleton and transient lifetimes
- Thread-safe singleton creation
"""

from __future__ import annotations

import threading
from dataclasses import dataclass
from enum import Enum
from typing import (
    Any,
    Callable,
    Dict,
    Hashable,
    List,
    Mapping,
    Optional,
    Protocol,
    runtime_checkable,
)

from capwire.core.errors import UnresolvedServiceError, describe_key
from capwire.observability.logging import get_logger

logger = get_logger(__name__)


@runtime_checkable
class ServiceProvider(Protocol):
    """
    What the injector needs from a container.

    ``get`` must raise for unknown keys and must be safe to call from several
    threads when objects are created concurrently.
    """

    def get(self, key: Hashable) -> Any: ...

    def has(self, key: Hashable) -> bool: ...


class ServiceLifetime(Enum):
    """Service lifetime options."""

    SINGLETON = "singleton"  # One instance per container
    TRANSIENT = "transient"  # New instance every time


@dataclass
class ServiceDescriptor:
    """Describes how a service should be created and managed."""

    key: Hashable
    factory: Optional[Callable[["Container"], Any]] = None
    instance: Any = None
    has_instance: bool = False
    lifetime: ServiceLifetime = ServiceLifetime.SINGLETON


class Container:
    """
    Dependency container.

    Usage:
        container = Container({"clock": SystemClock()})

        container.register_instance("logger", logger)
        container.register_factory("db", lambda c: Database(c.get("settings")))
        container.register_class("mailer", SmtpMailer, ServiceLifetime.TRANSIENT)

        db = container.get("db")
    """

    def __init__(self, services: Optional[Mapping[Hashable, Any]] = None) -> None:
        self._descriptors: Dict[Hashable, ServiceDescriptor] = {}
        self._singletons: Dict[Hashable, Any] = {}
        # Re-entrant: a singleton factory may resolve other singletons
        self._lock = threading.RLock()

        for key, service in (services or {}).items():
            self.register_instance(key, service)

    def register_instance(self, key: Hashable, instance: Any) -> "Container":
        """Register an existing object under ``key``."""
        with self._lock:
            self._descriptors[key] = ServiceDescriptor(
                key=key,
                instance=instance,
                has_instance=True,
            )
            self._singletons[key] = instance
        logger.debug("Registered service instance", service_key=describe_key(key))
        return self

    def register_factory(
        self,
        key: Hashable,
        factory: Callable[["Container"], Any],
        lifetime: ServiceLifetime = ServiceLifetime.SINGLETON,
    ) -> "Container":
        """Register a factory; it is called with this container."""
        with self._lock:
            self._descriptors[key] = ServiceDescriptor(
                key=key,
                factory=factory,
                lifetime=lifetime,
            )
            self._singletons.pop(key, None)
        logger.debug(
            "Registered service factory",
            service_key=describe_key(key),
            lifetime=lifetime.value,
        )
        return self

    def register_class(
        self,
        key: Hashable,
        cls: type,
        lifetime: ServiceLifetime = ServiceLifetime.SINGLETON,
    ) -> "Container":
        """Register a class constructed without arguments."""
        return self.register_factory(key, lambda _container: cls(), lifetime)

    def unregister(self, key: Hashable) -> None:
        """Forget ``key`` and any cached singleton for it."""
        with self._lock:
            if key not in self._descriptors:
                raise UnresolvedServiceError(service_key=key)
            del self._descriptors[key]
            self._singletons.pop(key, None)

    def _get_descriptor(self, key: Hashable) -> ServiceDescriptor:
        """Get service descriptor or raise error."""
        try:
            return self._descriptors[key]
        except KeyError:
            raise UnresolvedServiceError(service_key=key) from None
        except TypeError as e:
            raise UnresolvedServiceError(
                f"Service key {key!r} is not hashable",
                service_key=None,
                cause=e,
            ) from e

    def get(self, key: Hashable) -> Any:
        """Resolve a service instance."""
        descriptor = self._get_descriptor(key)

        if descriptor.has_instance:
            return descriptor.instance

        if descriptor.lifetime == ServiceLifetime.TRANSIENT:
            return descriptor.factory(self)

        with self._lock:
            if key not in self._singletons:
                self._singletons[key] = descriptor.factory(self)
            return self._singletons[key]

    def has(self, key: Hashable) -> bool:
        """Check if a service is registered."""
        try:
            return key in self._descriptors
        except TypeError:
            return False

    def __contains__(self, key: object) -> bool:
        return self.has(key)

    def keys(self) -> List[Hashable]:
        """Registered service keys in registration order."""
        return list(self._descriptors)

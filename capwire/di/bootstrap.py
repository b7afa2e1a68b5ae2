"""
capwire - Bootstrap

Composition root: builds the container, injector and factory, registers the
self-referential services and wires the factory through the injector.

    factory = bootstrap()
    service = factory.create_object(ReportService)

Registered by bootstrap. The first three always replace an existing
registration; LOGGER and CONFIG keep one that is already there.
    CONTAINER            the container itself
    DEPENDENCY_INJECTOR  the injector
    ABSTRACT_FACTORY     the factory
    LOGGER               a structlog logger, unless already registered
    CONFIG               the active Config, unless already registered
"""
from __future__ import annotations

import threading
from typing import Optional

from capwire.config import Config, get_config
from capwire.core.errors import CapwireConfigError
from capwire.di.capabilities import (
    ABSTRACT_FACTORY,
    CONFIG,
    CONTAINER,
    DEPENDENCY_INJECTOR,
    LOGGER,
    CapabilityTable,
)
from capwire.di.container import Container
from capwire.di.factory import AbstractFactory
from capwire.di.injector import DependencyInjector
from capwire.observability.logging import InjectionLogger, get_logger
from capwire.observability.tracing import create_span

# Global factory instance
_factory: Optional[AbstractFactory] = None
_factory_lock = threading.Lock()


def bootstrap(
    container: Optional[Container] = None,
    table: Optional[CapabilityTable] = None,
    config: Optional[Config] = None,
) -> AbstractFactory:
    """
    Build a wired AbstractFactory.

    Args:
        container: Container to register into; a new one if omitted
        table: Capability table for the injector; the default table if omitted
        config: Configuration; the process-wide config if omitted

    Raises:
        CapwireConfigError: the table lacks the capabilities the factory
            needs to be wired
    """
    config = config or get_config()
    container = container if container is not None else Container()

    with create_span("capwire.bootstrap"):
        injector = DependencyInjector(table, log_injections=config.di.log_injections)
        factory = AbstractFactory(trace_calls=config.di.trace_factory)

        container.register_instance(CONTAINER, container)
        container.register_instance(DEPENDENCY_INJECTOR, injector)
        container.register_instance(ABSTRACT_FACTORY, factory)
        if not container.has(LOGGER):
            container.register_factory(
                LOGGER,
                lambda _container: get_logger(config.logging.service_name),
            )
        if not container.has(CONFIG):
            container.register_instance(CONFIG, config)

        # The factory receives its own injector and container through the
        # same capabilities as every other object.
        injector.resolve_dependencies(factory, container)

    if not factory.is_wired:
        raise CapwireConfigError(
            "Capability table does not declare ContainerAware and "
            "DependencyInjectorAware, so the factory cannot be wired",
            suggestions=["Extend DEFAULT_CAPABILITIES instead of replacing it"],
        )

    InjectionLogger("capwire.di.bootstrap").factory_wired(len(injector.table))
    return factory


def get_factory() -> AbstractFactory:
    """Get or create the process-wide factory."""
    global _factory
    if _factory is None:
        with _factory_lock:
            if _factory is None:
                _factory = bootstrap()
    return _factory


def reset_factory() -> None:
    """Drop the process-wide factory; the next get_factory() rebuilds it."""
    global _factory
    with _factory_lock:
        _factory = None

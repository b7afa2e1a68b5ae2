"""
capwire - Dependency Injection Module

Post-construction wiring driven by declared capabilities:
- Capability table: which capabilities exist and how each is satisfied
- Dependency injector: detects an object's capabilities, injects services
- Abstract factory: construct, then inject, then hand over
- Container: key -> service resolver
- Bootstrap: composition root

Design Principles:
    1. Shallow constructors: constructors take only explicit arguments
    2. Structural capabilities: implementing the accessor pair is enough
    3. Composition Root: all wiring happens at application startup
    4. Fail fast: a missing registration surfaces at the first create

Usage:
    from capwire.di import bootstrap, LoggerAwareMixin

    class ReportService(LoggerAwareMixin):
        def __init__(self, report_id: str):
            self.report_id = report_id

    factory = bootstrap()
    service = factory.create_object(ReportService, ["daily"])
    service.get_logger().info("Report ready")
"""

from capwire.di.bootstrap import bootstrap, get_factory, reset_factory
from capwire.di.capabilities import (
    # Service keys
    ABSTRACT_FACTORY,
    CONFIG,
    CONTAINER,
    DEPENDENCY_INJECTOR,
    LOGGER,
    # Markers
    AbstractFactoryAware,
    ConfigAware,
    ContainerAware,
    DependencyInjectorAware,
    LoggerAware,
    # Accessor mixins
    AbstractFactoryAwareMixin,
    ConfigAwareMixin,
    ContainerAwareMixin,
    DependencyInjectorAwareMixin,
    LoggerAwareMixin,
    # Table
    DEFAULT_CAPABILITIES,
    CapabilityEntry,
    CapabilityTable,
)
from capwire.di.container import (
    Container,
    ServiceDescriptor,
    ServiceLifetime,
    ServiceProvider,
)
from capwire.di.factory import AbstractFactory, construct, resolve_type
from capwire.di.injector import DependencyInjector

__all__ = [
    # ========================================================================
    # CAPABILITIES
    # ========================================================================
    "CapabilityEntry",
    "CapabilityTable",
    "DEFAULT_CAPABILITIES",
    # Service keys
    "CONTAINER",
    "DEPENDENCY_INJECTOR",
    "ABSTRACT_FACTORY",
    "LOGGER",
    "CONFIG",
    # Markers
    "ContainerAware",
    "DependencyInjectorAware",
    "AbstractFactoryAware",
    "LoggerAware",
    "ConfigAware",
    # Accessor mixins
    "ContainerAwareMixin",
    "DependencyInjectorAwareMixin",
    "AbstractFactoryAwareMixin",
    "LoggerAwareMixin",
    "ConfigAwareMixin",

    # ========================================================================
    # WIRING
    # ========================================================================
    "DependencyInjector",
    "AbstractFactory",
    "construct",
    "resolve_type",

    # ========================================================================
    # CONTAINER
    # ========================================================================
    "ServiceProvider",
    "ServiceLifetime",
    "ServiceDescriptor",
    "Container",

    # ========================================================================
    # BOOTSTRAP
    # ========================================================================
    "bootstrap",
    "get_factory",
    "reset_factory",
]

"""
capwire - capability-driven dependency wiring.

Objects declare optional capabilities ("wants a logger", "wants the
container") by implementing small accessor protocols. An abstract factory
constructs them with plain constructor arguments, then a dependency injector
fills every declared capability from a service container.

    from capwire import bootstrap

    factory = bootstrap()
    service = factory.create_object("myapp.reports.ReportService", ["daily"])
"""

from capwire.core.errors import (
    CapabilityTableError,
    CapwireConfigError,
    CapwireError,
    ConstructionError,
    DependencyResolutionError,
    UnresolvedServiceError,
)
from capwire.di import (
    DEFAULT_CAPABILITIES,
    AbstractFactory,
    CapabilityEntry,
    CapabilityTable,
    Container,
    DependencyInjector,
    bootstrap,
    get_factory,
)

__version__ = "1.0.0"

__all__ = [
    "__version__",
    # Wiring
    "bootstrap",
    "get_factory",
    "AbstractFactory",
    "DependencyInjector",
    "Container",
    "CapabilityEntry",
    "CapabilityTable",
    "DEFAULT_CAPABILITIES",
    # Errors
    "CapwireError",
    "CapwireConfigError",
    "CapabilityTableError",
    "ConstructionError",
    "UnresolvedServiceError",
    "DependencyResolutionError",
]

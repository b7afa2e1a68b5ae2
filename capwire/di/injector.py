"""
capwire - Dependency Injector

Detects which capabilities an instance exposes and hands it the matching
services from a container.

The algorithm is a single synchronous pass over the capability table:

    for entry in table:
        if isinstance(instance, entry.marker):
            entry.attach(instance, container.get(entry.service_key))

Capabilities the instance does not expose are skipped silently. The first
lookup that fails aborts the pass with DependencyResolutionError; entries
after it are never attached, and the caller must discard the instance.

The injector keeps no state besides its (immutable) table, so one injector
can wire objects from several threads at once.
"""
from __future__ import annotations

from typing import Any, List, Optional

from capwire.core.errors import DependencyResolutionError, ErrorContext, describe_key
from capwire.di.capabilities import DEFAULT_CAPABILITIES, CapabilityEntry, CapabilityTable
from capwire.di.container import ServiceProvider
from capwire.observability.logging import InjectionLogger


class DependencyInjector:
    """Wires services into objects according to a capability table."""

    def __init__(
        self,
        table: Optional[CapabilityTable] = None,
        log_injections: bool = False,
    ):
        self._table = DEFAULT_CAPABILITIES if table is None else table
        self._log = InjectionLogger("capwire.di.injector", verbose=log_injections)

    @property
    def table(self) -> CapabilityTable:
        return self._table

    def satisfied_capabilities(self, instance: Any) -> List[CapabilityEntry]:
        """Entries ``instance`` would receive, without resolving anything."""
        return self._table.satisfied_by(instance)

    def resolve_dependencies(self, instance: Any, container: ServiceProvider) -> None:
        """
        Inject every capability ``instance`` satisfies.

        Args:
            instance: Any object
            container: Anything with a ``get(key)`` that raises on unknown keys

        Raises:
            DependencyResolutionError: ``container.get`` failed for a
                capability the instance satisfies. The container's error is
                chained as ``__cause__``.
        """
        instance_type = type(instance)

        for entry in self._table:
            if not entry.is_satisfied_by(instance):
                continue

            try:
                service = container.get(entry.service_key)
            except Exception as e:
                self._log.resolution_failed(
                    instance_type=describe_key(instance_type),
                    capability=entry.name,
                    service_key=describe_key(entry.service_key),
                    error=str(e),
                )
                raise DependencyResolutionError(
                    service_key=entry.service_key,
                    marker=entry.marker,
                    instance_type=instance_type,
                    cause=e,
                    context=ErrorContext.from_current_span(
                        operation="resolve_dependencies",
                        component="injector",
                    ),
                ).with_context(capability=entry.name) from e

            entry.attach(instance, service)
            self._log.capability_injected(
                instance_type=describe_key(instance_type),
                capability=entry.name,
                service_key=describe_key(entry.service_key),
            )

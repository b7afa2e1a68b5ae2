"""
capwire - Capability Table

Declares, in one place, every dependency capability an object may expose and
how the injector satisfies it.

A capability is described by three things:
    marker       a @runtime_checkable Protocol; ``isinstance(obj, marker)``
                 decides whether ``obj`` wants the capability
    service_key  the key resolved from the container
    setter       the method on ``obj`` that receives the resolved service

Objects opt in structurally: implementing ``set_logger``/``get_logger`` is
enough to be ``LoggerAware``. The ``*Mixin`` classes below provide those
accessor pairs for classes that prefer not to write them by hand.

Usage:
    from capwire.di.capabilities import (
        DEFAULT_CAPABILITIES, CapabilityEntry, LoggerAwareMixin,
    )

    @runtime_checkable
    class MailerAware(Protocol):
        def set_mailer(self, mailer: Mailer) -> None: ...

    table = DEFAULT_CAPABILITIES.extend(
        CapabilityEntry(MailerAware, "mailer", setter="set_mailer"),
    )
"""
from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import (
    TYPE_CHECKING,
    Any,
    Callable,
    Dict,
    Hashable,
    Iterable,
    Iterator,
    List,
    Optional,
    Protocol,
    Tuple,
    Union,
    overload,
    runtime_checkable,
)

from capwire.core.errors import CapabilityTableError, describe_key

if TYPE_CHECKING:
    from capwire.config import Config
    from capwire.di.container import ServiceProvider
    from capwire.di.factory import AbstractFactory
    from capwire.di.injector import DependencyInjector


# =============================================================================
# SERVICE KEYS
# =============================================================================

CONTAINER = "container"
DEPENDENCY_INJECTOR = "dependency_injector"
ABSTRACT_FACTORY = "abstract_factory"
LOGGER = "logger"
CONFIG = "config"


# =============================================================================
# CAPABILITY MARKERS
# =============================================================================


@runtime_checkable
class ContainerAware(Protocol):
    """Wants the service container itself."""

    def set_container(self, container: "ServiceProvider") -> None: ...

    def get_container(self) -> Optional["ServiceProvider"]: ...


@runtime_checkable
class DependencyInjectorAware(Protocol):
    """Wants the dependency injector."""

    def set_dependency_injector(self, injector: "DependencyInjector") -> None: ...

    def get_dependency_injector(self) -> Optional["DependencyInjector"]: ...


@runtime_checkable
class AbstractFactoryAware(Protocol):
    """Wants the abstract factory, typically to create further objects."""

    def set_abstract_factory(self, factory: "AbstractFactory") -> None: ...

    def get_abstract_factory(self) -> Optional["AbstractFactory"]: ...


@runtime_checkable
class LoggerAware(Protocol):
    """Wants a logger."""

    def set_logger(self, logger: Any) -> None: ...

    def get_logger(self) -> Any: ...


@runtime_checkable
class ConfigAware(Protocol):
    """Wants the application configuration."""

    def set_config(self, config: "Config") -> None: ...

    def get_config(self) -> Optional["Config"]: ...


# =============================================================================
# ACCESSOR MIXINS
# =============================================================================


class ContainerAwareMixin:
    """Accessor pair satisfying ContainerAware."""

    _container: Optional["ServiceProvider"] = None

    def set_container(self, container: "ServiceProvider") -> None:
        self._container = container

    def get_container(self) -> Optional["ServiceProvider"]:
        return self._container


class DependencyInjectorAwareMixin:
    """Accessor pair satisfying DependencyInjectorAware."""

    _dependency_injector: Optional["DependencyInjector"] = None

    def set_dependency_injector(self, injector: "DependencyInjector") -> None:
        self._dependency_injector = injector

    def get_dependency_injector(self) -> Optional["DependencyInjector"]:
        return self._dependency_injector


class AbstractFactoryAwareMixin:
    """Accessor pair satisfying AbstractFactoryAware."""

    _abstract_factory: Optional["AbstractFactory"] = None

    def set_abstract_factory(self, factory: "AbstractFactory") -> None:
        self._abstract_factory = factory

    def get_abstract_factory(self) -> Optional["AbstractFactory"]:
        return self._abstract_factory


class LoggerAwareMixin:
    """Accessor pair satisfying LoggerAware."""

    _logger: Any = None

    def set_logger(self, logger: Any) -> None:
        self._logger = logger

    def get_logger(self) -> Any:
        return self._logger


class ConfigAwareMixin:
    """Accessor pair satisfying ConfigAware."""

    _config: Optional["Config"] = None

    def set_config(self, config: "Config") -> None:
        self._config = config

    def get_config(self) -> Optional["Config"]:
        return self._config


# =============================================================================
# TABLE
# =============================================================================


Attacher = Callable[[Any, Any], None]


@dataclass(frozen=True)
class CapabilityEntry:
    """One row of a capability table."""

    marker: type
    service_key: Hashable
    setter: Optional[str] = None
    getter: Optional[str] = None
    # Overrides the default "call the setter" behaviour
    attacher: Optional[Attacher] = field(default=None, compare=False)

    def __post_init__(self) -> None:
        if self.setter is None and self.attacher is None:
            raise CapabilityTableError(
                f"Capability {describe_key(self.marker)} needs a setter name or an attacher",
                marker=self.marker,
            )

    @property
    def name(self) -> str:
        return describe_key(self.marker)

    def is_satisfied_by(self, instance: Any) -> bool:
        """Does ``instance`` expose this capability?"""
        return isinstance(instance, self.marker)

    def attach(self, instance: Any, service: Any) -> None:
        """Hand ``service`` to ``instance``."""
        if self.attacher is not None:
            self.attacher(instance, service)
        else:
            getattr(instance, self.setter)(service)

    def read(self, instance: Any) -> Any:
        """Return what the instance's getter currently holds."""
        if self.getter is None:
            raise AttributeError(f"Capability {self.name} declares no getter")
        return getattr(instance, self.getter)()


def _check_marker(marker: Any) -> None:
    if not isinstance(marker, type):
        raise CapabilityTableError(
            f"Capability marker must be a class, got {marker!r}",
            marker=marker,
        )
    try:
        isinstance(None, marker)
    except TypeError as e:
        raise CapabilityTableError(
            f"Capability marker {describe_key(marker)} cannot be used with isinstance(); "
            "decorate the Protocol with @runtime_checkable",
            marker=marker,
            cause=e,
        ) from e


class CapabilityTable(Sequence):
    """
    Immutable, ordered collection of capability entries.

    Markers are unique; a duplicate is rejected when the table is built, not
    when an instance is wired. Order follows insertion and is stable, but no
    entry may rely on another having been attached first.
    """

    __slots__ = ("_entries", "_index")

    def __init__(self, entries: Iterable[CapabilityEntry] = ()):
        entries = tuple(entries)
        index: Dict[type, CapabilityEntry] = {}

        for entry in entries:
            if not isinstance(entry, CapabilityEntry):
                raise CapabilityTableError(
                    f"Capability tables hold CapabilityEntry rows, got {entry!r}"
                )
            _check_marker(entry.marker)
            if entry.marker in index:
                raise CapabilityTableError(
                    f"Capability {entry.name} is declared more than once",
                    marker=entry.marker,
                )
            index[entry.marker] = entry

        self._entries: Tuple[CapabilityEntry, ...] = entries
        self._index = index

    @overload
    def __getitem__(self, item: int) -> CapabilityEntry: ...

    @overload
    def __getitem__(self, item: slice) -> "CapabilityTable": ...

    def __getitem__(self, item: Union[int, slice]) -> Union[CapabilityEntry, "CapabilityTable"]:
        if isinstance(item, slice):
            return CapabilityTable(self._entries[item])
        return self._entries[item]

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[CapabilityEntry]:
        return iter(self._entries)

    def __contains__(self, item: object) -> bool:
        if isinstance(item, CapabilityEntry):
            return item in self._entries
        try:
            return item in self._index
        except TypeError:
            return False

    def __repr__(self) -> str:
        names = ", ".join(entry.name for entry in self._entries)
        return f"CapabilityTable([{names}])"

    @property
    def markers(self) -> Tuple[type, ...]:
        return tuple(entry.marker for entry in self._entries)

    @property
    def service_keys(self) -> Tuple[Hashable, ...]:
        return tuple(entry.service_key for entry in self._entries)

    def get(self, marker: type) -> Optional[CapabilityEntry]:
        """Look up the entry declared for ``marker``."""
        return self._index.get(marker)

    def extend(self, *entries: CapabilityEntry) -> "CapabilityTable":
        """Return a new table with ``entries`` appended."""
        return CapabilityTable(self._entries + entries)

    def satisfied_by(self, instance: Any) -> List[CapabilityEntry]:
        """Entries whose marker ``instance`` satisfies, in table order."""
        return [entry for entry in self._entries if entry.is_satisfied_by(instance)]


DEFAULT_CAPABILITIES = CapabilityTable([
    CapabilityEntry(ContainerAware, CONTAINER, setter="set_container", getter="get_container"),
    CapabilityEntry(
        DependencyInjectorAware,
        DEPENDENCY_INJECTOR,
        setter="set_dependency_injector",
        getter="get_dependency_injector",
    ),
    CapabilityEntry(
        AbstractFactoryAware,
        ABSTRACT_FACTORY,
        setter="set_abstract_factory",
        getter="get_abstract_factory",
    ),
    CapabilityEntry(LoggerAware, LOGGER, setter="set_logger", getter="get_logger"),
    CapabilityEntry(ConfigAware, CONFIG, setter="set_config", getter="get_config"),
])

"""
capwire - Abstract Factory

Single entry point for "give me a ready-to-use instance of T":

    instance = factory.create_object(ReportService, [report_id])

Constructors take only their explicit arguments. After construction the
factory runs the dependency injector with the container it was wired with,
so the caller never touches the injector directly.

The factory is itself ContainerAware and DependencyInjectorAware; bootstrap
wires it by running the injector on it like on any other object.
"""
from __future__ import annotations

import importlib
import inspect
import time
from typing import Any, Optional, Sequence, Tuple, Type, TypeVar, Union, overload

from capwire.core.errors import (
    CapwireConfigError,
    ConstructionError,
    ErrorContext,
    describe_key,
)
from capwire.di.capabilities import ContainerAwareMixin, DependencyInjectorAwareMixin
from capwire.di.container import ServiceProvider
from capwire.di.injector import DependencyInjector
from capwire.observability.logging import InjectionLogger
from capwire.observability.tracing import create_span, get_tracer

T = TypeVar("T")

tracer = get_tracer(__name__)


def resolve_type(object_type: Union[type, str]) -> type:
    """
    Turn a type identifier into a class.

    Accepts a class, ``"package.module.ClassName"`` or
    ``"package.module:ClassName"``.
    """
    if isinstance(object_type, str):
        module_name, sep, attr_path = object_type.partition(":")
        if not sep:
            module_name, _, attr_path = object_type.rpartition(".")
        if not module_name or not attr_path:
            raise ConstructionError(
                f"'{object_type}' is not a dotted path to a class",
                object_type=object_type,
                context=ErrorContext.from_current_span(operation="resolve_type", component="factory"),
            )

        try:
            target: Any = importlib.import_module(module_name)
            for attr in attr_path.split("."):
                target = getattr(target, attr)
        except (ImportError, AttributeError, TypeError, ValueError) as e:
            # relative or malformed module names fail with TypeError or ValueError
            raise ConstructionError(
                f"Unknown type '{object_type}'",
                object_type=object_type,
                cause=e,
                context=ErrorContext.from_current_span(operation="resolve_type", component="factory"),
            ) from e
        object_type = target

    if not isinstance(object_type, type):
        raise ConstructionError(
            f"{object_type!r} is not a class",
            object_type=object_type,
            context=ErrorContext.from_current_span(operation="resolve_type", component="factory"),
        )
    return object_type


def _is_typing_placeholder(init: Any) -> bool:
    # typing installs a (*args, **kwargs) stand-in __init__ on Protocol subclasses
    return getattr(init, "__module__", None) == "typing"


def _constructor_signature(object_type: type) -> inspect.Signature:
    """Signature the arguments must bind to, skipping typing's placeholder __init__."""
    init = object_type.__init__
    if object_type.__new__ is not object.__new__ or not (
        _is_typing_placeholder(init) or init is object.__init__
    ):
        return inspect.signature(object_type)

    for klass in object_type.__mro__:
        init = klass.__dict__.get("__init__")
        if init is None or init is object.__init__ or _is_typing_placeholder(init):
            continue
        parameters = list(inspect.signature(init).parameters.values())[1:]
        return inspect.Signature(parameters)
    # object.__init__ accepts no arguments
    return inspect.Signature()


def construct(object_type: Type[T], arguments: Sequence[Any] = ()) -> T:
    """
    Instantiate ``object_type`` with positional ``arguments``.

    Arguments are checked against the constructor signature first, so a
    mismatch raises ConstructionError while exceptions raised inside the
    constructor body propagate unchanged.
    """
    arguments = tuple(arguments)

    if getattr(object_type, "_is_protocol", False):
        raise ConstructionError(
            f"{describe_key(object_type)} is a capability marker and cannot be instantiated",
            object_type=object_type,
            arguments=arguments,
            context=ErrorContext.from_current_span(operation="construct", component="factory"),
        )

    if inspect.isabstract(object_type):
        raise ConstructionError(
            f"Cannot instantiate abstract class {describe_key(object_type)}",
            object_type=object_type,
            arguments=arguments,
            context=ErrorContext.from_current_span(operation="construct", component="factory"),
        )

    try:
        signature: Optional[inspect.Signature] = _constructor_signature(object_type)
    except (TypeError, ValueError):
        # Some builtins expose no signature; let the call itself decide
        signature = None

    if signature is not None:
        try:
            signature.bind(*arguments)
        except TypeError as e:
            raise ConstructionError(
                f"Arguments do not match {describe_key(object_type)}{signature}: {e}",
                object_type=object_type,
                arguments=arguments,
                cause=e,
                context=ErrorContext.from_current_span(operation="construct", component="factory"),
            ) from e
        return object_type(*arguments)

    try:
        return object_type(*arguments)
    except TypeError as e:
        raise ConstructionError(
            f"Cannot construct {describe_key(object_type)}: {e}",
            object_type=object_type,
            arguments=arguments,
            cause=e,
            context=ErrorContext.from_current_span(operation="construct", component="factory"),
        ) from e


class AbstractFactory(ContainerAwareMixin, DependencyInjectorAwareMixin):
    """
    Creates objects and wires their capabilities.

    Usage:
        factory = AbstractFactory(DependencyInjector(), container)
        service = factory.create_object(ReportService, [report_id])
        service.get_logger()  # already injected
    """

    def __init__(
        self,
        injector: Optional[DependencyInjector] = None,
        container: Optional[ServiceProvider] = None,
        trace_calls: bool = True,
    ):
        if injector is not None:
            self.set_dependency_injector(injector)
        if container is not None:
            self.set_container(container)
        self._trace_calls = trace_calls
        self._log = InjectionLogger("capwire.di.factory")

    @property
    def is_wired(self) -> bool:
        return self._dependency_injector is not None and self._container is not None

    def _wiring(self) -> Tuple[DependencyInjector, ServiceProvider]:
        if not self.is_wired:
            raise CapwireConfigError(
                "AbstractFactory has no injector or container; "
                "build it with bootstrap() or pass both to the constructor",
                suggestions=["Use capwire.di.bootstrap()"],
            )
        return self._dependency_injector, self._container

    @overload
    def create_object(self, object_type: Type[T], arguments: Sequence[Any] = ()) -> T: ...

    @overload
    def create_object(self, object_type: str, arguments: Sequence[Any] = ()) -> Any: ...

    def create_object(self, object_type: Union[type, str], arguments: Sequence[Any] = ()) -> Any:
        """
        Create an instance of ``object_type`` with every capability populated.

        Raises:
            ConstructionError: unknown type or arguments that do not fit
                the constructor
            DependencyResolutionError: a capability the instance declares
                could not be resolved from the container
        """
        injector, container = self._wiring()

        if not self._trace_calls:
            instance, _ = self._create(injector, container, object_type, arguments)
            return instance

        with create_span(
            "capwire.create_object",
            attributes={"capwire.object_type": describe_key(object_type)},
            tracer=tracer,
        ) as span:
            instance, capability_count = self._create(injector, container, object_type, arguments)
            span.set_attribute("capwire.capability_count", capability_count)
            return instance

    def _create(
        self,
        injector: DependencyInjector,
        container: ServiceProvider,
        object_type: Union[type, str],
        arguments: Sequence[Any],
    ) -> Tuple[Any, int]:
        """Build and wire one instance; returns it with its capability count."""
        start = time.perf_counter()

        cls = resolve_type(object_type)
        instance = construct(cls, arguments)
        injector.resolve_dependencies(instance, container)
        capability_count = len(injector.satisfied_capabilities(instance))

        self._log.object_created(
            object_type=describe_key(cls),
            capability_count=capability_count,
            duration_ms=(time.perf_counter() - start) * 1000,
        )
        return instance, capability_count

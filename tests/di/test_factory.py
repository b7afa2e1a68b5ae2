"""
Tests for capwire/di/factory.py - Abstract Factory.

Covers:
- resolve_type for classes and dotted paths
- construct argument checking
- create_object = construct + resolve_dependencies
- Error forwarding
- Span recording
"""
import time
from abc import ABC, abstractmethod
from collections import OrderedDict
from concurrent.futures import ThreadPoolExecutor
from unittest.mock import patch

import pytest
from opentelemetry.trace import StatusCode

from capwire.core.errors import (
    CapwireConfigError,
    ConstructionError,
    DependencyResolutionError,
)
from capwire.di.capabilities import (
    AbstractFactoryAwareMixin,
    ContainerAware,
    DependencyInjectorAware,
    LoggerAware,
    LoggerAwareMixin,
)
from capwire.di.container import Container
from capwire.di.factory import AbstractFactory, construct, resolve_type
from capwire.di.injector import DependencyInjector


class Greeter(LoggerAwareMixin):
    def __init__(self, greeting: str, punctuation: str = "!"):
        self.greeting = greeting
        self.punctuation = punctuation


class Shape(ABC):
    @abstractmethod
    def area(self) -> float: ...


class Exploding:
    def __init__(self):
        raise RuntimeError("constructor failed")


class ExplicitLoggerUser(LoggerAware):
    """Declares the capability by subclassing the marker and defines no __init__."""

    def set_logger(self, logger) -> None:
        self.logger = logger

    def get_logger(self):
        return getattr(self, "logger", None)


class Builder(AbstractFactoryAwareMixin):
    """Creates further objects through the factory it receives."""

    def build_greeter(self, greeting: str) -> Greeter:
        return self.get_abstract_factory().create_object(Greeter, [greeting])


# =============================================================================
# resolve_type / construct
# =============================================================================

class TestResolveType:
    """Type identifiers accepted by the factory."""

    def test_class_passes_through(self):
        assert resolve_type(Greeter) is Greeter

    def test_dotted_path(self):
        assert resolve_type("collections.OrderedDict") is OrderedDict

    def test_colon_path(self):
        assert resolve_type("collections:OrderedDict") is OrderedDict

    def test_nested_attribute_path(self):
        assert resolve_type("capwire.di.factory:AbstractFactory") is AbstractFactory

    def test_unknown_module(self):
        with pytest.raises(ConstructionError) as exc_info:
            resolve_type("no_such_module_anywhere.Thing")
        assert isinstance(exc_info.value.__cause__, ImportError)

    def test_unknown_attribute(self):
        with pytest.raises(ConstructionError, match="Unknown type"):
            resolve_type("collections.NoSuchThing")

    def test_bare_name_rejected(self):
        with pytest.raises(ConstructionError):
            resolve_type("Greeter")

    def test_non_class_rejected(self):
        with pytest.raises(ConstructionError):
            resolve_type("os.path.join")

    def test_relative_path_rejected(self):
        with pytest.raises(ConstructionError, match="Unknown type") as exc_info:
            resolve_type(".foo:Bar")

        assert isinstance(exc_info.value.__cause__, TypeError)

    def test_error_carries_factory_context(self):
        with pytest.raises(ConstructionError) as exc_info:
            resolve_type("collections.NoSuchThing")

        context = exc_info.value.context
        assert context.component == "factory"
        assert context.operation == "resolve_type"


class TestConstruct:
    """Instantiation with argument checking."""

    def test_positional_arguments(self):
        greeter = construct(Greeter, ["hello", "?"])

        assert greeter.greeting == "hello"
        assert greeter.punctuation == "?"

    def test_defaults_apply(self):
        assert construct(Greeter, ["hi"]).punctuation == "!"

    def test_too_few_arguments(self):
        with pytest.raises(ConstructionError) as exc_info:
            construct(Greeter, [])

        assert exc_info.value.object_type is Greeter
        assert exc_info.value.arguments == ()

    def test_too_many_arguments(self):
        with pytest.raises(ConstructionError):
            construct(Greeter, ["a", "b", "c"])

    def test_abstract_class(self):
        with pytest.raises(ConstructionError, match="abstract"):
            construct(Shape)

    def test_constructor_body_errors_propagate(self):
        with pytest.raises(RuntimeError, match="constructor failed"):
            construct(Exploding)

    def test_class_without_init(self):
        class Empty:
            pass

        assert isinstance(construct(Empty), Empty)

    def test_builtin_type(self):
        assert construct(OrderedDict, [[("a", 1)]]) == OrderedDict(a=1)

    def test_marker_subclass_without_init(self):
        created = construct(ExplicitLoggerUser)

        assert isinstance(created, ExplicitLoggerUser)
        assert isinstance(created, LoggerAware)

    def test_marker_subclass_rejects_arguments(self):
        with pytest.raises(ConstructionError) as exc_info:
            construct(ExplicitLoggerUser, [1, 2])

        assert exc_info.value.arguments == (1, 2)
        assert exc_info.value.context.operation == "construct"

    def test_marker_itself_rejected(self):
        with pytest.raises(ConstructionError, match="capability marker"):
            construct(LoggerAware)


# =============================================================================
# AbstractFactory
# =============================================================================

class TestCreateObject:
    """create_object wires what it constructs."""

    def test_returns_instance_of_type_with_capabilities(self, wired_factory, sample_logger):
        greeter = wired_factory.create_object(Greeter, ["hello"])

        assert isinstance(greeter, Greeter)
        assert greeter.greeting == "hello"
        assert greeter.get_logger() is sample_logger

    def test_dotted_path_type(self, wired_factory):
        created = wired_factory.create_object("collections.OrderedDict")

        assert created == OrderedDict()

    def test_default_arguments_are_empty(self, wired_factory):
        class Empty(LoggerAwareMixin):
            pass

        assert isinstance(wired_factory.create_object(Empty), Empty)

    def test_factory_satisfies_its_own_capabilities(self):
        factory = AbstractFactory()

        assert isinstance(factory, ContainerAware)
        assert isinstance(factory, DependencyInjectorAware)

    def test_explicit_wiring(self, sample_logger):
        container = Container({"logger": sample_logger})
        factory = AbstractFactory(DependencyInjector(), container)

        assert factory.is_wired
        assert factory.create_object(Greeter, ["hi"]).get_logger() is sample_logger

    def test_unwired_factory(self):
        with pytest.raises(CapwireConfigError):
            AbstractFactory().create_object(Greeter, ["hi"])

    def test_objects_can_use_the_factory(self, wired_factory, sample_logger):
        builder = wired_factory.create_object(Builder)
        greeter = builder.build_greeter("hey")

        assert builder.get_abstract_factory() is wired_factory
        assert greeter.get_logger() is sample_logger

    def test_no_reference_kept_to_created_objects(self, wired_factory):
        before = dict(vars(wired_factory))
        wired_factory.create_object(Greeter, ["hello"])

        assert vars(wired_factory) == before


class TestErrorForwarding:
    """The factory forwards errors unchanged."""

    def test_construction_error(self, wired_factory):
        with pytest.raises(ConstructionError):
            wired_factory.create_object(Greeter, [])

    def test_unknown_type(self, wired_factory):
        with pytest.raises(ConstructionError):
            wired_factory.create_object("no_such_module_anywhere.Greeter")

    def test_dependency_resolution_error(self, test_config):
        from capwire.di.bootstrap import bootstrap

        container = Container()
        # A logger key that cannot be built
        container.register_factory("logger", lambda c: c.get("log_sink"))
        factory = bootstrap(container=container, config=test_config)

        with pytest.raises(DependencyResolutionError) as exc_info:
            factory.create_object(Greeter, ["hello"])

        assert exc_info.value.service_key == "logger"

    def test_constructor_exception_unchanged(self, wired_factory):
        with pytest.raises(RuntimeError, match="constructor failed"):
            wired_factory.create_object(Exploding)

    def test_marker_subclass_arguments_through_factory(self, wired_factory):
        with pytest.raises(ConstructionError):
            wired_factory.create_object(ExplicitLoggerUser, [1, 2])

    def test_marker_through_factory(self, wired_factory):
        with pytest.raises(ConstructionError):
            wired_factory.create_object(LoggerAware, [])

    def test_relative_path_through_factory(self, wired_factory):
        with pytest.raises(ConstructionError):
            wired_factory.create_object(".foo:Bar", [])


class TestFactoryTracing:
    """create_object runs inside a span."""

    def test_span_recorded(self, wired_factory, span_exporter):
        tracer, exporter = span_exporter

        with patch("capwire.di.factory.tracer", tracer):
            wired_factory.create_object(Greeter, ["hello"])

        spans = exporter.get_finished_spans()
        assert [span.name for span in spans] == ["capwire.create_object"]
        attributes = spans[0].attributes
        assert attributes["capwire.object_type"] == "Greeter"
        assert attributes["capwire.capability_count"] == 1

    def test_capabilities_counted_once_per_call(self, wired_factory, span_exporter):
        tracer, _ = span_exporter
        injector = wired_factory.get_dependency_injector()

        with patch("capwire.di.factory.tracer", tracer), patch.object(
            injector, "satisfied_capabilities", wraps=injector.satisfied_capabilities
        ) as counted:
            wired_factory.create_object(Greeter, ["hello"])

        assert counted.call_count == 1

    def test_failure_marks_span(self, test_config, span_exporter):
        from capwire.di.bootstrap import bootstrap

        tracer, exporter = span_exporter
        factory = bootstrap(container=Container(), config=test_config)
        factory.get_container().unregister("logger")

        with patch("capwire.di.factory.tracer", tracer):
            with pytest.raises(DependencyResolutionError):
                factory.create_object(Greeter, ["hello"])

        span = exporter.get_finished_spans()[0]
        assert span.status.status_code == StatusCode.ERROR
        assert any(event.name == "exception" for event in span.events)

    def test_constructor_failure_marks_span(self, wired_factory, span_exporter):
        tracer, exporter = span_exporter

        with patch("capwire.di.factory.tracer", tracer):
            with pytest.raises(RuntimeError):
                wired_factory.create_object(Exploding)

        span = exporter.get_finished_spans()[0]
        assert span.status.status_code == StatusCode.ERROR

    def test_tracing_can_be_disabled(self, sample_logger, span_exporter):
        tracer, exporter = span_exporter
        factory = AbstractFactory(
            DependencyInjector(),
            Container({"logger": sample_logger}),
            trace_calls=False,
        )

        with patch("capwire.di.factory.tracer", tracer):
            factory.create_object(Greeter, ["hello"])

        assert exporter.get_finished_spans() == ()


class TestConcurrentCreation:
    """One factory shared between threads."""

    def test_singleton_built_once_and_every_instance_wired(self, test_config):
        from capwire.di.bootstrap import bootstrap

        calls = []

        def slow_logger(_container):
            calls.append(1)
            time.sleep(0.01)
            return object()

        container = Container().register_factory("logger", slow_logger)
        factory = bootstrap(container=container, config=test_config)

        def create(i):
            return factory.create_object(Greeter, [f"hello {i}"])

        with ThreadPoolExecutor(max_workers=8) as pool:
            greeters = list(pool.map(create, range(64)))

        logger = container.get("logger")
        assert calls == [1]
        assert [greeter.greeting for greeter in greeters] == [f"hello {i}" for i in range(64)]
        assert all(greeter.get_logger() is logger for greeter in greeters)

    def test_nested_creation_from_threads(self, wired_factory, sample_logger):
        with ThreadPoolExecutor(max_workers=4) as pool:
            builders = list(pool.map(lambda _: wired_factory.create_object(Builder), range(16)))
            greeters = list(pool.map(lambda builder: builder.build_greeter("hey"), builders))

        assert all(builder.get_abstract_factory() is wired_factory for builder in builders)
        assert all(greeter.get_logger() is sample_logger for greeter in greeters)

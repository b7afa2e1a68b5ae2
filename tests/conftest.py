"""
capwire - Test Configuration

Pytest fixtures and configuration for all tests.
"""
import pytest
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import SimpleSpanProcessor
from opentelemetry.sdk.trace.export.in_memory_span_exporter import InMemorySpanExporter

from capwire.config import Config, DIConfig, Environment
from capwire.di import Container, DependencyInjector, bootstrap, reset_factory


@pytest.fixture(autouse=True)
def _reset_global_factory():
    """Every test starts without a process-wide factory."""
    yield
    reset_factory()


@pytest.fixture
def test_config() -> Config:
    """Configuration with injection logging on."""
    return Config(
        env=Environment.TESTING,
        di=DIConfig(log_injections=True, trace_factory=True),
    )


@pytest.fixture
def sample_logger() -> object:
    """Stand-in logger service; identity is all the tests compare."""
    return object()


@pytest.fixture
def container(sample_logger) -> Container:
    """Container with a logger registered."""
    return Container({"logger": sample_logger})


@pytest.fixture
def injector() -> DependencyInjector:
    """Injector over the default capability table."""
    return DependencyInjector()


@pytest.fixture
def wired_factory(container, test_config):
    """Factory built by bootstrap over the logger container."""
    return bootstrap(container=container, config=test_config)


@pytest.fixture
def span_exporter():
    """Tracer recording into memory, with its exporter."""
    exporter = InMemorySpanExporter()
    provider = TracerProvider()
    provider.add_span_processor(SimpleSpanProcessor(exporter))
    yield provider.get_tracer("capwire.tests"), exporter
    provider.shutdown()

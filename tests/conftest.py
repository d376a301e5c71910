"""
DecoExt - Test Configuration

Pytest fixtures shared by all tests.
"""
from unittest.mock import Mock

import pytest

from config import InitFailurePolicy, RuntimeConfig
from di.container import Container
from events.source import LocalEventSource


@pytest.fixture
def runtime_config() -> RuntimeConfig:
    """Default runtime behaviour, independent of the environment."""
    return RuntimeConfig(
        init_failure_policy=InitFailurePolicy.RETRY,
        strict_dependencies=False,
    )


@pytest.fixture
def container(runtime_config) -> Container:
    """A fresh container per test so services never leak between tests."""
    return Container(runtime_config)


@pytest.fixture
def sticky_container() -> Container:
    """Container whose failed init chains stay failed."""
    return Container(
        RuntimeConfig(
            init_failure_policy=InitFailurePolicy.STICKY,
            strict_dependencies=False,
        )
    )


@pytest.fixture
def strict_container() -> Container:
    """Container refusing unregistered dependencies."""
    return Container(
        RuntimeConfig(
            init_failure_policy=InitFailurePolicy.RETRY,
            strict_dependencies=True,
        )
    )


@pytest.fixture
def source() -> LocalEventSource:
    """In-process event source."""
    return LocalEventSource("test")


@pytest.fixture
def mock_source() -> Mock:
    """Event source spy for subscription assertions."""
    return Mock(spec=["subscribe"])

"""Shared pytest fixtures for fabrik tests."""

import pytest

from fabrik.builder import StepBuilder
from fabrik.prototype import ClonePolicy, PrototypeRegistry
from tests.domain import ConnectionSettings, ConnectionSettingsBuilder


@pytest.fixture()
def registry() -> PrototypeRegistry:
    """Prototype registry rejecting un-cloneable templates."""
    return PrototypeRegistry()


@pytest.fixture()
def shallow_registry() -> PrototypeRegistry:
    """Prototype registry falling back to shallow copies."""
    return PrototypeRegistry(clone_policy=ClonePolicy.SHALLOW)


@pytest.fixture()
def settings_builder() -> StepBuilder[ConnectionSettings]:
    """Empty builder for ``ConnectionSettings``."""
    return ConnectionSettingsBuilder()

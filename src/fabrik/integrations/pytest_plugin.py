"""Pytest fixtures for code built on fabrik.

Load the plugin explicitly from a test module or the root ``conftest.py``:

.. code-block:: python

    pytest_plugins = ["fabrik.integrations.pytest_plugin"]
"""

from __future__ import annotations

import os
from collections.abc import Iterator

import pytest

from fabrik.prototype import PrototypeRegistry
from fabrik.settings import FabrikSettings
from fabrik.singleton import SingletonHandle

_ENV_PREFIX = "FABRIK_"


@pytest.fixture()
def fabrik_settings(monkeypatch: pytest.MonkeyPatch) -> FabrikSettings:
    """Return default settings, unaffected by ``FABRIK_*`` variables of the test process.

    Override the fixture to test with different settings.

    Returns:
        A ``FabrikSettings`` instance with default values.

    """
    for variable in list(os.environ):
        if variable.upper().startswith(_ENV_PREFIX):
            monkeypatch.delenv(variable)
    return FabrikSettings()


@pytest.fixture()
def fabrik_prototypes(fabrik_settings: FabrikSettings) -> PrototypeRegistry:
    """Return an empty prototype registry configured from ``fabrik_settings``."""
    return PrototypeRegistry.from_settings(fabrik_settings)


@pytest.fixture()
def fresh_singletons() -> Iterator[None]:
    """Reset every live ``SingletonHandle`` before and after the test.

    Instances obtained from handles before the reset are stale afterwards.

    Yields:
        Control back to pytest around test execution.

    """
    SingletonHandle.reset_all()
    yield
    SingletonHandle.reset_all()

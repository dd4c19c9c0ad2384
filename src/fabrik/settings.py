from __future__ import annotations

from typing import Any, Literal

from pydantic_settings import BaseSettings, SettingsConfigDict

from fabrik.lock_mode import LockMode
from fabrik.prototype import ClonePolicy


class FabrikSettings(BaseSettings):
    """Defaults for components created with ``from_settings``.

    Values are read from ``FABRIK_``-prefixed environment variables, for example
    ``FABRIK_LOCK_MODE=thread`` or ``FABRIK_CLONE_POLICY=shallow``. Nothing in
    fabrik reads settings implicitly: pass an instance to
    ``PrototypeRegistry.from_settings`` or ``SingletonHandle.from_settings``.
    """

    model_config = SettingsConfigDict(env_prefix="FABRIK_", frozen=True)

    lock_mode: LockMode | Literal["auto"] = "auto"
    """Lock mode for singleton handles."""

    clone_policy: ClonePolicy = ClonePolicy.REJECT
    """Policy for prototype templates that cannot be deep-copied."""


def load_settings(**overrides: Any) -> FabrikSettings:
    """Read settings from the environment, with keyword ``overrides`` taking precedence."""
    return FabrikSettings(**overrides)

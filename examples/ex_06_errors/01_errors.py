"""Errors: every failure reaches the caller as a ``FabrikError`` subclass."""

from __future__ import annotations

import threading

from fabrik import (
    FabrikError,
    FactoryRegistry,
    PrototypeRegistry,
    UncloneableTemplateError,
    UnknownVariantError,
)


class LockedResource:
    def __init__(self) -> None:
        self.lock = threading.Lock()


def main() -> None:
    registry: FactoryRegistry[object] = FactoryRegistry("things")
    registry.add_callable("known", object)

    try:
        registry.create("unknown")
    except UnknownVariantError as error:
        print(f"available={list(error.available)}")  # => available=['known']

    prototypes = PrototypeRegistry()
    try:
        prototypes.register("resource", LockedResource())
    except UncloneableTemplateError as error:
        print(f"uncloneable={error.name}")  # => uncloneable=resource
        print(f"is_fabrik_error={isinstance(error, FabrikError)}")  # => is_fabrik_error=True


if __name__ == "__main__":
    main()

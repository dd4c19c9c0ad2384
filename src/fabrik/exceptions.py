from __future__ import annotations

from collections.abc import Iterable


class FabrikError(Exception):
    """Represent a base class for all fabrik-specific failures.

    Catch this type when you want to handle any fabrik error path without
    matching each concrete exception class individually.
    """


class CreationError(FabrikError):
    """Signal that a variant failed to produce a product.

    Raise it from a ``ProductFactory.make`` hook when a prerequisite of the
    variant is unmet. fabrik never catches it: it reaches the caller of
    ``create`` unchanged.

    Typical fixes include providing the missing prerequisite or selecting a
    different variant.
    """


class FamilyCreationError(CreationError):
    """Signal that one member of a product family could not be created.

    Raised by ``FamilyFactory`` member creators and ``create_family``. The
    failing member and the factory variant are available as attributes, and the
    original failure is chained as ``__cause__``. A family that fails is
    discarded, never returned partially.

    Typical fixes include satisfying the member's dependency or making the
    member creator return a product tagged with the factory's variant.
    """

    def __init__(self, member: str, variant: str, reason: str | None = None) -> None:
        self.member = member
        self.variant = variant
        self.reason = reason
        msg = f"Failed to create family member '{member}' for variant '{variant}'"
        if reason:
            msg = f"{msg}: {reason}"
        super().__init__(msg)


class MissingFieldError(FabrikError):
    """Signal ``StepBuilder.build`` with a mandatory field left unset.

    The missing field name is available as ``field``.

    Typical fix is calling the field setter before ``build``.
    """

    def __init__(self, field: str, product_type: type | None = None) -> None:
        self.field = field
        self.product_type = product_type
        target = f" of {product_type.__qualname__}" if product_type is not None else ""
        super().__init__(f"Mandatory field '{field}'{target} is not set")


class UnknownFieldError(FabrikError, AttributeError):
    """Signal a builder assignment to a field the product does not declare."""

    def __init__(self, field: str, product_type: type) -> None:
        self.field = field
        self.product_type = product_type
        super().__init__(f"{product_type.__qualname__} has no field '{field}'")


class NotFoundError(FabrikError, LookupError):
    """Signal a prototype lookup by a name that is not registered.

    Raised by ``PrototypeRegistry.clone`` and ``PrototypeRegistry.unregister``.

    Typical fix is calling ``register(name, template)`` first.
    """

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Prototype '{name}' is not registered")


class UnknownVariantError(FabrikError, LookupError):
    """Signal variant selection by a token no factory is registered for.

    Raised by ``FactoryRegistry`` and ``FamilyRegistry`` lookups. The requested
    variant and the registered alternatives are attached to the error.
    """

    def __init__(self, variant: str, available: Iterable[str] = ()) -> None:
        self.variant = variant
        self.available = tuple(available)
        choices = ", ".join(self.available) or "<none>"
        super().__init__(f"Unknown variant '{variant}'. Available variants: {choices}")


class InvalidVariantError(FabrikError, ValueError):
    """Signal a malformed variant token (empty or of an unsupported type)."""


class InvalidRegistrationError(FabrikError):
    """Signal invalid factory, family, or prototype registration.

    Typical triggers are registering two factories for the same variant,
    registering an abstract family factory, or a factory class without a
    variant.

    Typical fixes include passing ``replace=True`` for deliberate overrides and
    implementing every member creator before registering a family variant.
    """


class UncloneableTemplateError(FabrikError):
    """Signal a prototype template that cannot be deep-copied.

    Raised by ``PrototypeRegistry.register`` under ``ClonePolicy.REJECT`` when the
    template holds resources such as open files, locks, or sockets. The copy
    failure is chained as ``__cause__``.

    Typical fixes include implementing ``__deepcopy__`` on the template or
    creating the registry with ``ClonePolicy.SHALLOW``.
    """

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Template '{name}' cannot be deep-copied")


class AsyncFactoryInSyncContextError(FabrikError):
    """Signal sync access to a singleton built by an async factory.

    Raised by ``SingletonHandle.get`` when the factory is a coroutine function.

    Typical fix is switching to ``await handle.aget()``.
    """

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(
            f"Singleton '{name}' has an async factory; use 'await handle.aget()' instead of get()",
        )

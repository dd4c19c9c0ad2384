"""Deferred creation of a single product type.

Each variant implements one creation hook behind the ``ProductFactory``
interface. Callers either hold a concrete factory or select one by variant
token through a ``FactoryRegistry`` and never name the variant's internals.
"""

from __future__ import annotations

import inspect
import logging
from abc import ABC, abstractmethod
from collections.abc import Callable
from typing import Any, ClassVar, Generic, TypeVar

from fabrik.exceptions import InvalidRegistrationError
from fabrik.variants import VariantTable, VariantToken, bind_variant, variant_key

T = TypeVar("T")
PF = TypeVar("PF", bound="ProductFactory[Any]")

logger = logging.getLogger(__name__)


class ProductFactory(ABC, Generic[T]):
    """Create products of one type for one variant.

    Bind the variant with a class keyword and implement ``make``:

    Examples:
        .. code-block:: python

            class MySQLConnectionFactory(ProductFactory[Connection], variant="mysql"):
                def make(self) -> Connection:
                    return MySQLConnection()

    """

    variant: ClassVar[str | None] = None

    def __init_subclass__(cls, variant: VariantToken | None = None, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        if variant is not None:
            cls.variant = variant_key(variant)

    def create(self) -> T:
        """Create a new product.

        Errors raised by ``make`` (typically ``CreationError``) propagate unchanged.

        Returns:
            A newly allocated product.

        """
        return self.make()

    @abstractmethod
    def make(self) -> T:
        """Allocate the product for this factory's variant."""

    def __repr__(self) -> str:
        return f"{type(self).__qualname__}(variant={self.variant!r})"


class CallableFactory(ProductFactory[T]):
    """Adapt a zero-argument callable into a ``ProductFactory``.

    Use it to build flat variant dispatch tables without declaring a subclass per
    variant.
    """

    def __init__(self, variant: VariantToken, func: Callable[[], T]) -> None:
        if not callable(func):
            msg = f"Factory for variant {variant!r} must be callable, got {func!r}."
            raise InvalidRegistrationError(msg)
        self.variant = variant_key(variant)  # type: ignore[misc]
        self._func = func

    def make(self) -> T:
        """Call the wrapped callable."""
        return self._func()


class FactoryRegistry(Generic[T]):
    """Dispatch product creation by variant token.

    Registrations are serialized; concurrent ``create`` calls need no
    coordination.
    """

    def __init__(self, name: str = "products") -> None:
        self.name = name
        self._table: VariantTable[ProductFactory[T]] = VariantTable(name)

    def add(self, factory: ProductFactory[T], *, replace: bool = False) -> None:
        """Register ``factory`` under its variant.

        Args:
            factory: Factory instance with a variant bound.
            replace: Allow overriding an existing registration for the variant.

        Raises:
            InvalidRegistrationError: If the factory has no variant, or the
                variant is already registered and ``replace`` is false.

        """
        if factory.variant is None:
            msg = f"{factory!r} has no variant; declare it with 'variant=...'."
            raise InvalidRegistrationError(msg)
        self._table.add(factory.variant, factory, replace=replace)
        logger.debug("Registered %r in factory registry '%s'", factory, self.name)

    def add_callable(
        self,
        variant: VariantToken,
        func: Callable[[], T],
        *,
        replace: bool = False,
    ) -> CallableFactory[T]:
        """Register a zero-argument callable as the creator for ``variant``."""
        factory = CallableFactory(variant, func)
        self.add(factory, replace=replace)
        return factory

    def register(
        self,
        variant: VariantToken | None = None,
        *,
        replace: bool = False,
    ) -> Callable[[type[PF]], type[PF]]:
        """Return a class decorator that registers an instance of the decorated factory.

        Args:
            variant: Variant for the factory class. Optional when the class
                already declares one with the ``variant=`` class keyword.
            replace: Allow overriding an existing registration for the variant.

        Returns:
            The decorator. It returns the class unchanged.

        """

        def decorator(factory_cls: type[PF]) -> type[PF]:
            if inspect.isabstract(factory_cls):
                msg = f"Factory '{factory_cls.__qualname__}' cannot be an abstract class."
                raise InvalidRegistrationError(msg)
            if variant is not None:
                factory_cls.variant = bind_variant(factory_cls, variant)
            self.add(factory_cls(), replace=replace)
            return factory_cls

        return decorator

    def get(self, variant: VariantToken) -> ProductFactory[T]:
        """Return the factory registered for ``variant``.

        Raises:
            UnknownVariantError: If no factory is registered for the variant.

        """
        return self._table.get(variant)

    def create(self, variant: VariantToken) -> T:
        """Create a product with the factory registered for ``variant``."""
        return self.get(variant).create()

    def variants(self) -> tuple[str, ...]:
        """Return the registered variant keys in sorted order."""
        return self._table.keys()

    def __contains__(self, variant: object) -> bool:
        return variant in self._table

    def __len__(self) -> int:
        return len(self._table)

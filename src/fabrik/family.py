"""Creation of matched sets of related products.

A family base declares one abstract creator per member; each concrete subclass
implements every creator for one variant:

.. code-block:: python

    class DatabaseFamily(FamilyFactory):
        @member("connection")
        @abstractmethod
        def create_connection(self) -> Connection: ...

        @member("executor")
        @abstractmethod
        def create_query_executor(self) -> QueryExecutor: ...


    class MySQLFamily(DatabaseFamily, variant="mysql"):
        def create_connection(self) -> Connection:
            return MySQLConnection()

        def create_query_executor(self) -> QueryExecutor:
            return MySQLQueryExecutor()

Every creator of a concrete subclass is guarded: a failure surfaces as
``FamilyCreationError`` naming the member, and a product tagged with another
variant is rejected, so a family never mixes variants.

Adding a variant is one new subclass. Adding a member is one new abstract
creator on the base *and* an implementation on every existing variant; until
then those variants stay abstract and cannot be instantiated. See
``docs/extending.rst``.
"""

from __future__ import annotations

import functools
import inspect
import logging
from abc import ABC
from collections.abc import Callable, Iterator, Mapping
from types import MappingProxyType
from typing import Any, ClassVar, Generic, TypeVar

from fabrik.exceptions import FamilyCreationError, InvalidRegistrationError
from fabrik.variants import (
    VariantTable,
    VariantToken,
    bind_variant,
    product_variant,
    variant_key,
)

F = TypeVar("F", bound=Callable[..., Any])
FF = TypeVar("FF", bound="FamilyFactory")

logger = logging.getLogger(__name__)

_MEMBER_ATTR = "__fabrik_member__"
_GUARDED_ATTR = "__fabrik_guarded__"


def member(name: str) -> Callable[[F], F]:
    """Mark a family factory method as the creator of member ``name``.

    Args:
        name: Member name used in the resulting ``Family``.

    Returns:
        A decorator returning the method unchanged.

    """

    def decorator(func: F) -> F:
        setattr(func, _MEMBER_ATTR, name)
        return func

    return decorator


class Family(Mapping[str, Any]):
    """An immutable group of products created for one variant.

    Members are available by name (``family["connection"]``) or as attributes
    (``family.connection``), in the order the family declares them.
Families can be deep-copied and pickled, so a created family can serve as a
``PrototypeRegistry`` template.
    """

    __slots__ = ("_members", "_variant")

    def __init__(self, variant: str, members: Mapping[str, Any]) -> None:
        self._variant = variant
        self._members = MappingProxyType(dict(members))

    @property
    def variant(self) -> str:
        """Return the variant every member was created for."""
        return self._variant

    def as_dict(self) -> dict[str, Any]:
        """Return the members as a new dict."""
        return dict(self._members)

    def __getitem__(self, name: str) -> Any:
        return self._members[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._members)

    def __len__(self) -> int:
        return len(self._members)

    def __getattr__(self, name: str) -> Any:
        if name.startswith("_"):
            raise AttributeError(name)
        try:
            return self._members[name]
        except KeyError:
            msg = f"Family '{self._variant}' has no member '{name}'"
            raise AttributeError(msg) from None

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Family):
            return NotImplemented
        return self._variant == other._variant and dict(self._members) == dict(other._members)

    __hash__ = None  # type: ignore[assignment]

    def __reduce__(self) -> tuple[type[Family], tuple[str, dict[str, Any]]]:
        return (Family, (self._variant, dict(self._members)))

    def __repr__(self) -> str:
        return f"Family(variant={self._variant!r}, members={list(self._members)!r})"


class FamilyFactory(ABC):
    """Create every member of a product family for one variant.

    Subclasses declaring ``variant=...`` are bound to that variant for their
    whole lifetime: every member created through an instance reports it.
    """

    variant: ClassVar[str | None] = None
    _member_methods: ClassVar[dict[str, str]] = {}

    def __init_subclass__(cls, variant: VariantToken | None = None, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        if variant is not None:
            cls.variant = variant_key(variant)

        member_methods = dict(cls._member_methods)
        for attr_name, attr in vars(cls).items():
            member_name = getattr(attr, _MEMBER_ATTR, None)
            if member_name is None or attr_name in member_methods.values():
                continue
            if member_name in member_methods:
                msg = (
                    f"'{cls.__qualname__}.{attr_name}' redeclares member '{member_name}' "
                    f"already created by '{member_methods[member_name]}'."
                )
                raise InvalidRegistrationError(msg)
            member_methods[member_name] = attr_name
        cls._member_methods = member_methods

        for member_name, method_name in member_methods.items():
            # Creators may come from a mixin that is not a FamilyFactory.
            implementation = inspect.getattr_static(cls, method_name, None)
            if (
                not inspect.isfunction(implementation)
                or getattr(implementation, "__isabstractmethod__", False)
                or getattr(implementation, _GUARDED_ATTR, False)
            ):
                continue
            setattr(cls, method_name, _guard_member(member_name, implementation))

    def __new__(cls, *_args: Any, **_kwargs: Any) -> FamilyFactory:  # noqa: PYI034
        if cls.variant is None:
            msg = (
                f"Family factory '{cls.__qualname__}' has no variant; "
                "declare it with 'variant=...'."
            )
            raise InvalidRegistrationError(msg)
        return super().__new__(cls)

    @classmethod
    def members(cls) -> tuple[str, ...]:
        """Return the member names of this family in declaration order."""
        return tuple(cls._member_methods)

    def create_member(self, name: str) -> Any:
        """Create the single member ``name``.

        Raises:
            FamilyCreationError: If ``name`` is not a member of this family or its
                creator fails.

        """
        method_name = self._member_methods.get(name)
        if method_name is None:
            raise FamilyCreationError(name, self._bound_variant, "not a member of this family")
        return getattr(self, method_name)()

    def create_family(self) -> Family:
        """Create every member and return them as one ``Family``.

        Members are created in declaration order. The first failure aborts the
        call and the members created so far are discarded.

        Raises:
            FamilyCreationError: If any member creator fails.

        """
        created = {
            member_name: getattr(self, method_name)()
            for member_name, method_name in self._member_methods.items()
        }
        family = Family(self._bound_variant, created)
        logger.debug("Created %r with %s", family, type(self).__qualname__)
        return family

    @property
    def _bound_variant(self) -> str:
        return self.variant or "<unbound>"

    def __repr__(self) -> str:
        return f"{type(self).__qualname__}(variant={self.variant!r})"


def _guard_member(member_name: str, creator: F) -> F:
    @functools.wraps(creator)
    def guarded(self: FamilyFactory, *args: Any, **kwargs: Any) -> Any:
        variant = self._bound_variant
        try:
            product = creator(self, *args, **kwargs)
            tag = product_variant(product)
        except FamilyCreationError as exc:
            if exc.member == member_name and exc.variant == variant:
                raise
            raise FamilyCreationError(member_name, variant, str(exc)) from exc
        except Exception as exc:
            raise FamilyCreationError(member_name, variant, str(exc) or type(exc).__name__) from exc
        if tag is not None and tag != variant:
            raise FamilyCreationError(member_name, variant, f"product reports variant '{tag}'")
        return product

    setattr(guarded, _GUARDED_ATTR, True)
    return guarded  # type: ignore[return-value]


class FamilyRegistry(Generic[FF]):
    """Select a concrete family factory by variant token."""

    def __init__(self, base: type[FF] | None = None, name: str = "families") -> None:
        self.base = base
        self.name = name
        self._table: VariantTable[type[FF]] = VariantTable(name)

    def add(self, factory_cls: type[FF], *, replace: bool = False) -> None:
        """Register a concrete family factory class under its variant.

        Raises:
            InvalidRegistrationError: If the class is abstract (some member
                creator is missing), has no variant, is not a subclass of the
                registry base, or the variant is taken and ``replace`` is false.

        """
        if self.base is not None and not issubclass(factory_cls, self.base):
            msg = f"'{factory_cls.__qualname__}' is not a {self.base.__qualname__}."
            raise InvalidRegistrationError(msg)
        if inspect.isabstract(factory_cls):
            missing = ", ".join(sorted(factory_cls.__abstractmethods__))
            msg = f"Family factory '{factory_cls.__qualname__}' does not implement: {missing}."
            raise InvalidRegistrationError(msg)
        if factory_cls.variant is None:
            msg = f"Family factory '{factory_cls.__qualname__}' has no variant."
            raise InvalidRegistrationError(msg)
        self._table.add(factory_cls.variant, factory_cls, replace=replace)
        logger.debug("Registered family factory %s in '%s'", factory_cls.__qualname__, self.name)

    def register(
        self,
        variant: VariantToken | None = None,
        *,
        replace: bool = False,
    ) -> Callable[[type[FF]], type[FF]]:
        """Return a class decorator that registers the decorated family factory."""

        def decorator(factory_cls: type[FF]) -> type[FF]:
            if variant is not None:
                factory_cls.variant = bind_variant(factory_cls, variant)
            self.add(factory_cls, replace=replace)
            return factory_cls

        return decorator

    def get(self, variant: VariantToken) -> type[FF]:
        """Return the factory class registered for ``variant``."""
        return self._table.get(variant)

    def select(self, variant: VariantToken, *args: Any, **kwargs: Any) -> FF:
        """Instantiate the factory registered for ``variant``.

        Extra arguments are passed to the factory constructor.
        """
        return self.get(variant)(*args, **kwargs)

    def create_family(self, variant: VariantToken) -> Family:
        """Create a whole family with the factory registered for ``variant``."""
        return self.select(variant).create_family()

    def variants(self) -> tuple[str, ...]:
        """Return the registered variant keys in sorted order."""
        return self._table.keys()

    def __contains__(self, variant: object) -> bool:
        return variant in self._table

    def __len__(self) -> int:
        return len(self._table)

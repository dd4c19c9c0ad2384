"""Staged construction of one product through chained setters.

A builder subclass names its ``product_type``; one setter per product field is
generated for it:

.. code-block:: python

    @dataclass(frozen=True)
    class ServerConfig:
        host: str
        port: int = 80
        tags: list[str] = field(default_factory=list)


    class ServerConfigBuilder(StepBuilder[ServerConfig]):
        product_type = ServerConfig


    config = ServerConfigBuilder().host("example.org").port(8080).build()

Builders are single-writer objects: share products, not builders.
"""

from __future__ import annotations

import copy
import dataclasses
import inspect
from collections.abc import Callable, Mapping
from types import MappingProxyType
from typing import Any, ClassVar, Generic, TypeVar

from pydantic import BaseModel
from typing_extensions import Self

from fabrik.exceptions import InvalidRegistrationError, MissingFieldError, UnknownFieldError

P = TypeVar("P")


class _Unset:
    """Marker type for build spec fields that were never set."""

    __slots__ = ()

    def __repr__(self) -> str:
        return "UNSET"

    def __bool__(self) -> bool:
        return False

    def __copy__(self) -> _Unset:
        return self

    def __deepcopy__(self, _memo: dict[int, Any]) -> _Unset:
        return self


UNSET: Any = _Unset()
"""Marker held by a build spec for fields that were never set."""


def product_fields(product_type: type[Any]) -> dict[str, bool]:
    """Return ``{field name: is mandatory}`` for the constructor of ``product_type``.

    Dataclasses and pydantic models are read from their field definitions; any
    other callable is read from its signature.
    """
    if dataclasses.is_dataclass(product_type):
        return {
            field.name: (
                field.default is dataclasses.MISSING
                and field.default_factory is dataclasses.MISSING
            )
            for field in dataclasses.fields(product_type)
            if field.init
        }
    if inspect.isclass(product_type) and issubclass(product_type, BaseModel):
        return {name: info.is_required() for name, info in product_type.model_fields.items()}

    fields: dict[str, bool] = {}
    for parameter in inspect.signature(product_type).parameters.values():
        if parameter.kind in (inspect.Parameter.VAR_POSITIONAL, inspect.Parameter.VAR_KEYWORD):
            continue
        if parameter.kind is inspect.Parameter.POSITIONAL_ONLY:
            msg = f"Parameter '{parameter.name}' of {product_type.__qualname__} is positional-only."
            raise InvalidRegistrationError(msg)
        fields[parameter.name] = parameter.default is inspect.Parameter.empty
    return fields


def _constructor_keywords(product_type: type[Any]) -> dict[str, str]:
    """Return ``{field name: constructor keyword}`` for fields passed under another name.

    Only pydantic models differ: a field with a string alias is validated under
    that alias.
    """
    if not (inspect.isclass(product_type) and issubclass(product_type, BaseModel)):
        return {}
    keywords: dict[str, str] = {}
    for name, info in product_type.model_fields.items():
        alias = info.validation_alias if isinstance(info.validation_alias, str) else info.alias
        if alias and alias != name:
            keywords[name] = alias
    return keywords


def _make_setter(owner: type[Any], name: str) -> Callable[[Any, Any], Any]:
    def setter(self: StepBuilder[Any], value: Any) -> StepBuilder[Any]:
        return self.set(name, value)

    setter.__name__ = name
    setter.__qualname__ = f"{owner.__qualname__}.{name}"
    setter.__doc__ = f"Set ``{name}`` and return this builder."
    return setter


class StepBuilder(Generic[P]):
    """Accumulate product fields across chained calls and emit finalized products.

    Setters may be called in any order and any number of times; the last write
    for a field wins. Unset optional fields fall back to the product's own
    defaults. Fields without a default, plus those listed in
    ``mandatory_fields``, must be set before ``build``.

    Override ``validate`` to add variant-specific checks.
    """

    product_type: ClassVar[type[Any]]
    mandatory_fields: ClassVar[tuple[str, ...]] = ()
    _fields: ClassVar[dict[str, bool]] = {}
    _keywords: ClassVar[dict[str, str]] = {}

    def __init_subclass__(cls, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        product_type = getattr(cls, "product_type", None)
        if product_type is None:
            return

        fields = product_fields(product_type)
        for name in cls.mandatory_fields:
            if name not in fields:
                msg = f"Mandatory field '{name}' is not a field of {product_type.__qualname__}."
                raise InvalidRegistrationError(msg)
            fields[name] = True
        cls._fields = fields
        cls._keywords = _constructor_keywords(product_type)

        for name in fields:
            if hasattr(cls, name):
                continue
            setattr(cls, name, _make_setter(cls, name))

    def __init__(self, **values: Any) -> None:
        if not hasattr(self, "product_type"):
            msg = f"{type(self).__qualname__} does not declare a product_type."
            raise InvalidRegistrationError(msg)
        self._spec: dict[str, Any] = {}
        self.reset()
        for name, value in values.items():
            self.set(name, value)

    def set(self, name: str, value: Any) -> Self:
        """Assign ``value`` to field ``name`` and return this builder.

        Raises:
            UnknownFieldError: If the product declares no such field.

        """
        if name not in self._fields:
            raise UnknownFieldError(name, self.product_type)
        self._spec[name] = value
        return self

    def unset(self, name: str) -> Self:
        """Return field ``name`` to the unset state."""
        if name not in self._fields:
            raise UnknownFieldError(name, self.product_type)
        self._spec[name] = UNSET
        return self

    def reset(self) -> Self:
        """Return every field to the unset state."""
        self._spec = dict.fromkeys(self._fields, UNSET)
        return self

    def is_set(self, name: str) -> bool:
        """Return whether field ``name`` currently holds a value."""
        return self._spec.get(name, UNSET) is not UNSET

    def spec(self) -> Mapping[str, Any]:
        """Return a read-only snapshot of the accumulated fields."""
        return MappingProxyType(dict(self._spec))

    def validate(self, values: dict[str, Any]) -> None:
        """Check the values about to be passed to the product constructor.

        The default implementation accepts everything. Raise to reject a build.
        """

    def build(self) -> P:
        """Materialize the accumulated fields into a new product.

        Each call returns an independent product: mutable values are deep-copied,
        so neither later setter calls nor other products share them.

        Returns:
            The finalized product.

        Raises:
            MissingFieldError: If a mandatory field is unset.

        """
        for name, mandatory in self._fields.items():
            if mandatory and self._spec[name] is UNSET:
                raise MissingFieldError(name, self.product_type)
        values = {
            name: copy.deepcopy(value) for name, value in self._spec.items() if value is not UNSET
        }
        self.validate(values)
        return self.product_type(
            **{self._keywords.get(name, name): value for name, value in values.items()}
        )

    def __repr__(self) -> str:
        assigned = ", ".join(
            f"{name}={value!r}" for name, value in self._spec.items() if value is not UNSET
        )
        return f"{type(self).__qualname__}({assigned})"

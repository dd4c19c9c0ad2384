from __future__ import annotations

import threading
from enum import Enum
from typing import Generic, Protocol, TypeAlias, TypeVar, runtime_checkable

from fabrik.exceptions import (
    InvalidRegistrationError,
    InvalidVariantError,
    UnknownVariantError,
)

V = TypeVar("V")

VariantToken: TypeAlias = str | Enum
"""A variant selector supplied by the caller: a name or an enum member with a string value."""


@runtime_checkable
class VariantTagged(Protocol):
    """A product that reports the variant it was created for.

    Only string tags and string-valued enum members count as variant tags.
    Family members whose ``variant`` holds anything else, such as a version
    number, are treated as untagged and are not checked against the family.
    An empty string tag is malformed and fails the member.
    """

    @property
    def variant(self) -> str:
        """Return the variant this product was created for."""
        ...



def variant_key(token: VariantToken) -> str:
    """Normalize a variant token to its canonical lookup key.

    Enum members are replaced by their value, then the name is stripped and
    case-folded, so ``"MySQL"``, ``" mysql "`` and an enum member whose value is
    ``"mysql"`` all select the same variant.

    Raises:
        InvalidVariantError: If the token is empty or not a string/enum value.

    """
    raw = token.value if isinstance(token, Enum) else token
    if not isinstance(raw, str):
        msg = f"Variant token must be a string or a string-valued Enum, got {token!r}."
        raise InvalidVariantError(msg)
    key = raw.strip().casefold()
    if not key:
        msg = "Variant token must not be empty."
        raise InvalidVariantError(msg)
    return key


def product_variant(product: object) -> str | None:
    """Return the normalized variant tag of ``product``, or ``None`` when untagged.

    Raises:
        InvalidVariantError: If the tag is a string that normalizes to nothing.

    """
    tag = getattr(product, "variant", None)
    if isinstance(tag, Enum):
        tag = tag.value
    if not isinstance(tag, str):
        return None
    return variant_key(tag)


class VariantTable(Generic[V]):
    """Map normalized variant keys to registered entries.

    Writes are serialized with a lock and publish a fresh dict, so readers never
    need the lock.
    """

    def __init__(self, name: str) -> None:
        self.name = name
        self._entries: dict[str, V] = {}
        self._lock = threading.Lock()

    def add(self, variant: VariantToken, entry: V, *, replace: bool = False) -> str:
        """Store ``entry`` under ``variant`` and return the normalized key."""
        key = variant_key(variant)
        with self._lock:
            if not replace and key in self._entries:
                msg = (
                    f"Variant '{key}' is already registered in '{self.name}'. "
                    "Pass replace=True to override it."
                )
                raise InvalidRegistrationError(msg)
            self._entries = {**self._entries, key: entry}
        return key

    def get(self, variant: VariantToken) -> V:
        """Return the entry for ``variant`` or raise ``UnknownVariantError``."""
        key = variant_key(variant)
        entries = self._entries
        try:
            return entries[key]
        except KeyError:
            raise UnknownVariantError(key, sorted(entries)) from None

    def keys(self) -> tuple[str, ...]:
        """Return the registered keys in sorted order."""
        return tuple(sorted(self._entries))

    def __contains__(self, variant: object) -> bool:
        if not isinstance(variant, str | Enum):
            return False
        try:
            return variant_key(variant) in self._entries
        except InvalidVariantError:
            return False

    def __len__(self) -> int:
        return len(self._entries)


def bind_variant(cls: type, variant: VariantToken) -> str:
    """Return the key ``cls`` should be registered under for ``variant``.

    Raises:
        InvalidRegistrationError: If ``cls`` already declares a different variant.

    """
    key = variant_key(variant)
    declared = getattr(cls, "variant", None)
    if declared is not None and declared != key:
        msg = (
            f"'{cls.__qualname__}' declares variant '{declared}' "
            f"but was registered as '{key}'."
        )
        raise InvalidRegistrationError(msg)
    return key

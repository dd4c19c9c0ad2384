"""Copy-based construction from named templates."""

from __future__ import annotations

import copy
import dataclasses
import logging
import pickle
import threading
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel

from fabrik.exceptions import NotFoundError, UncloneableTemplateError

if TYPE_CHECKING:
    from fabrik.settings import FabrikSettings

logger = logging.getLogger(__name__)

_COPY_ERRORS = (TypeError, copy.Error, pickle.PicklingError)


class ClonePolicy(str, Enum):
    """Decide what ``PrototypeRegistry.register`` does with templates that cannot be deep-copied."""

    REJECT = "reject"
    """Raise ``UncloneableTemplateError`` at registration time."""

    SHALLOW = "shallow"
    """Log a warning and produce shallow copies of that template."""


@dataclass(frozen=True, slots=True)
class PrototypeEntry:
    """A registered template and the way it is copied."""

    name: str
    template: Any
    deep: bool = True

    def copy(self) -> Any:
        """Return a new copy of the template."""
        if self.deep:
            return copy.deepcopy(self.template)
        return copy.copy(self.template)


class PrototypeRegistry:
    """Store named templates and hand out independent copies of them.

    ``register`` keeps a deep snapshot of the template, so later changes to the
    caller's object do not leak into future clones. ``clone`` returns a deep
    copy that shares no mutable state with the template or with earlier clones.

    ``register`` and ``unregister`` are serialized; ``clone`` reads a published
    snapshot of the table and runs concurrently with anything.
    """

    def __init__(self, clone_policy: ClonePolicy | str = ClonePolicy.REJECT) -> None:
        self.clone_policy = ClonePolicy(clone_policy)
        self._entries: dict[str, PrototypeEntry] = {}
        self._lock = threading.Lock()

    @classmethod
    def from_settings(cls, settings: FabrikSettings) -> PrototypeRegistry:
        """Create a registry configured from ``settings``."""
        return cls(clone_policy=settings.clone_policy)

    def register(self, name: str, template: Any) -> None:
        """Store ``template`` under ``name``, replacing any previous template.

        Clones issued before a replacement are unaffected.

        Raises:
            UncloneableTemplateError: If the template cannot be deep-copied and
                the registry policy is ``ClonePolicy.REJECT``.

        """
        try:
            entry = PrototypeEntry(name, copy.deepcopy(template))
        except _COPY_ERRORS as exc:
            if self.clone_policy is ClonePolicy.REJECT:
                raise UncloneableTemplateError(name) from exc
            entry = self._shallow_entry(name, template)
            logger.warning(
                "Template '%s' cannot be deep-copied (%s); its clones will be shallow copies",
                name,
                exc,
            )

        with self._lock:
            self._entries = {**self._entries, name: entry}
        logger.debug("Registered prototype '%s' (deep=%s)", name, entry.deep)

    def clone(self, name: str, **overrides: Any) -> Any:
        """Return a new copy of the template registered under ``name``.

        Args:
            name: Registered template name.
            **overrides: Attribute values to replace on the copy. Values are
                deep-copied as well.

        Returns:
            The copy.

        Raises:
            NotFoundError: If no template is registered under ``name``.

        """
        entry = self._entries.get(name)
        if entry is None:
            raise NotFoundError(name)
        product = entry.copy()
        if overrides:
            product = _apply_overrides(product, copy.deepcopy(overrides))
        return product

    def unregister(self, name: str) -> None:
        """Remove the template registered under ``name``.

        Raises:
            NotFoundError: If no template is registered under ``name``.

        """
        with self._lock:
            if name not in self._entries:
                raise NotFoundError(name)
            self._entries = {key: entry for key, entry in self._entries.items() if key != name}
        logger.debug("Unregistered prototype '%s'", name)

    @staticmethod
    def _shallow_entry(name: str, template: Any) -> PrototypeEntry:
        try:
            return PrototypeEntry(name, copy.copy(template), deep=False)
        except _COPY_ERRORS as exc:
            raise UncloneableTemplateError(name) from exc

    def names(self) -> tuple[str, ...]:
        """Return the registered template names in sorted order."""
        return tuple(sorted(self._entries))

    def __contains__(self, name: object) -> bool:
        return name in self._entries

    def __len__(self) -> int:
        return len(self._entries)


def _apply_overrides(product: Any, overrides: dict[str, Any]) -> Any:
    if dataclasses.is_dataclass(product) and not isinstance(product, type):
        return dataclasses.replace(product, **overrides)
    if isinstance(product, BaseModel):
        return product.model_copy(update=overrides)
    if isinstance(product, dict):
        product.update(overrides)
        return product
    for attribute, value in overrides.items():
        setattr(product, attribute, value)
    return product

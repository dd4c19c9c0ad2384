from fabrik.builder import UNSET, StepBuilder
from fabrik.exceptions import (
    AsyncFactoryInSyncContextError,
    CreationError,
    FabrikError,
    FamilyCreationError,
    InvalidRegistrationError,
    InvalidVariantError,
    MissingFieldError,
    NotFoundError,
    UncloneableTemplateError,
    UnknownFieldError,
    UnknownVariantError,
)
from fabrik.factory import CallableFactory, FactoryRegistry, ProductFactory
from fabrik.family import Family, FamilyFactory, FamilyRegistry, member
from fabrik.lock_mode import LockMode
from fabrik.prototype import ClonePolicy, PrototypeRegistry
from fabrik.settings import FabrikSettings, load_settings
from fabrik.singleton import SingletonHandle, SingletonState, singleton
from fabrik.variants import VariantTagged, variant_key

__all__ = [
    "UNSET",
    "AsyncFactoryInSyncContextError",
    "CallableFactory",
    "ClonePolicy",
    "CreationError",
    "FabrikError",
    "FabrikSettings",
    "FactoryRegistry",
    "Family",
    "FamilyCreationError",
    "FamilyFactory",
    "FamilyRegistry",
    "InvalidRegistrationError",
    "InvalidVariantError",
    "LockMode",
    "MissingFieldError",
    "NotFoundError",
    "ProductFactory",
    "PrototypeRegistry",
    "SingletonHandle",
    "SingletonState",
    "StepBuilder",
    "UncloneableTemplateError",
    "UnknownFieldError",
    "UnknownVariantError",
    "VariantTagged",
    "load_settings",
    "member",
    "singleton",
    "variant_key",
]

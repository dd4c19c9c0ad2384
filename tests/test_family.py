"""Tests for FamilyFactory, Family and FamilyRegistry."""

from __future__ import annotations

import pickle
from abc import abstractmethod

import pytest

from fabrik.exceptions import (
    CreationError,
    FamilyCreationError,
    InvalidRegistrationError,
    UnknownVariantError,
)
from fabrik.family import Family, FamilyFactory, FamilyRegistry, member
from fabrik.prototype import PrototypeRegistry
from tests.domain import (
    Connection,
    DatabaseFamily,
    MongoFamily,
    MySQLFamily,
    QueryExecutor,
)


@pytest.fixture()
def families() -> FamilyRegistry[DatabaseFamily]:
    registry = FamilyRegistry(DatabaseFamily)
    registry.add(MySQLFamily)
    registry.add(MongoFamily)
    return registry


class _MixedFamily(DatabaseFamily, variant="mixed"):
    def create_connection(self) -> Connection:
        return Connection(variant="mixed")

    def create_query_executor(self) -> QueryExecutor:
        return QueryExecutor(variant="mysql")


class _FailingExecutorFamily(DatabaseFamily, variant="failing"):
    created_connections = 0

    def create_connection(self) -> Connection:
        type(self).created_connections += 1
        return Connection(variant="failing")

    def create_query_executor(self) -> QueryExecutor:
        msg = "executor pool exhausted"
        raise CreationError(msg)


class _MongoMixin:
    def create_connection(self) -> Connection:
        return Connection(variant="mongodb")

    def create_query_executor(self) -> QueryExecutor:
        return QueryExecutor(variant="mongodb")


class _MixinFamily(_MongoMixin, DatabaseFamily, variant="mysql"):
    pass


class _PoolFamily(FamilyFactory, variant="pool"):
    @member("pool")
    def create_pool(self) -> object:
        msg = "pool size must be positive"
        raise CreationError(msg)


class _PooledFamily(DatabaseFamily, variant="pooled"):
    def create_connection(self) -> Connection:
        _PoolFamily().create_member("pool")
        return Connection(variant="pooled")

    def create_query_executor(self) -> QueryExecutor:
        return QueryExecutor(variant="pooled")


class _Untagged:
    pass


class _UntaggedFamily(DatabaseFamily, variant="untagged"):
    def create_connection(self) -> Connection:
        return _Untagged()  # type: ignore[return-value]

    def create_query_executor(self) -> QueryExecutor:
        return _Untagged()  # type: ignore[return-value]


class TestFamilyConsistency:
    @pytest.mark.parametrize("factory_cls", [MySQLFamily, MongoFamily])
    def test_every_member_reports_factory_variant(
        self,
        factory_cls: type[DatabaseFamily],
    ) -> None:
        factory = factory_cls()

        family = factory.create_family()

        assert family.variant == factory.variant
        assert {product.variant for product in family.values()} == {factory.variant}

    def test_single_member_creation_keeps_variant(self) -> None:
        factory = MongoFamily()

        assert factory.create_connection().variant == "mongodb"
        assert factory.create_query_executor().variant == "mongodb"

    def test_cross_variant_member_is_rejected(self) -> None:
        with pytest.raises(FamilyCreationError) as exc_info:
            _MixedFamily().create_family()

        assert exc_info.value.member == "executor"
        assert exc_info.value.variant == "mixed"
        assert "product reports variant 'mysql'" in str(exc_info.value)

    def test_untagged_products_are_accepted(self) -> None:
        family = _UntaggedFamily().create_family()

        assert isinstance(family.connection, _Untagged)

    def test_creators_inherited_from_mixin_are_checked(self) -> None:
        with pytest.raises(FamilyCreationError) as exc_info:
            _MixinFamily().create_family()

        assert exc_info.value.member == "connection"
        assert exc_info.value.variant == "mysql"
        assert "product reports variant 'mongodb'" in str(exc_info.value)

    def test_non_string_variant_attribute_counts_as_untagged(self) -> None:
        class _Numbered:
            variant = 3

        class _NumberedFamily(DatabaseFamily, variant="numbered"):
            def create_connection(self) -> Connection:
                return _Numbered()  # type: ignore[return-value]

            def create_query_executor(self) -> QueryExecutor:
                return QueryExecutor(variant="numbered")

        assert _NumberedFamily().create_family().connection.variant == 3


class TestFamilyFailures:
    def test_failing_member_is_identified_and_chained(self) -> None:
        with pytest.raises(FamilyCreationError) as exc_info:
            _FailingExecutorFamily().create_family()

        error = exc_info.value
        assert error.member == "executor"
        assert error.variant == "failing"
        assert isinstance(error.__cause__, CreationError)
        assert "executor pool exhausted" in str(error)

    def test_nested_family_failure_names_outer_member(self) -> None:
        with pytest.raises(FamilyCreationError) as exc_info:
            _PooledFamily().create_family()

        error = exc_info.value
        assert error.member == "connection"
        assert error.variant == "pooled"
        assert isinstance(error.__cause__, FamilyCreationError)
        assert error.__cause__.member == "pool"
        assert "pool size must be positive" in str(error)

    def test_failure_of_same_member_is_not_rewrapped(self) -> None:
        class _Replica(MySQLFamily, variant="mysql"):
            def create_connection(self) -> Connection:
                msg = "replica unreachable"
                raise CreationError(msg)

        class _Delegating(_Replica, variant="mysql"):
            def create_connection(self) -> Connection:
                return super().create_connection()

        with pytest.raises(FamilyCreationError) as exc_info:
            _Delegating().create_connection()

        assert exc_info.value.member == "connection"
        assert type(exc_info.value.__cause__) is CreationError

    def test_family_creation_error_is_creation_error(self) -> None:
        with pytest.raises(CreationError):
            _FailingExecutorFamily().create_query_executor()

    def test_partial_family_is_discarded(self) -> None:
        factory = _FailingExecutorFamily()
        before = _FailingExecutorFamily.created_connections
        result: Family | None = None

        with pytest.raises(FamilyCreationError):
            result = factory.create_family()

        assert result is None
        assert _FailingExecutorFamily.created_connections == before + 1

    def test_unknown_member_name(self) -> None:
        with pytest.raises(FamilyCreationError, match="not a member") as exc_info:
            MySQLFamily().create_member("cache")

        assert exc_info.value.member == "cache"


class TestFamilyDeclaration:
    def test_members_follow_declaration_order(self) -> None:
        assert DatabaseFamily.members() == ("connection", "executor")
        assert MySQLFamily.members() == ("connection", "executor")

    def test_variant_missing_a_member_is_abstract(self) -> None:
        class _HalfFamily(DatabaseFamily, variant="half"):
            def create_connection(self) -> Connection:
                return Connection(variant="half")

        with pytest.raises(TypeError):
            _HalfFamily()  # type: ignore[abstract]

    def test_factory_without_variant_cannot_be_instantiated(self) -> None:
        class _Plain(FamilyFactory):
            @member("value")
            def create_value(self) -> int:
                return 1

        with pytest.raises(InvalidRegistrationError, match="has no variant"):
            _Plain()

    def test_duplicate_member_name_is_rejected(self) -> None:
        with pytest.raises(InvalidRegistrationError, match="redeclares member 'connection'"):

            class _Duplicate(DatabaseFamily):
                @member("connection")
                @abstractmethod
                def open_connection(self) -> Connection: ...

    def test_new_member_on_subfamily(self) -> None:
        class _CachedFamily(MySQLFamily, variant="cached-mysql"):
            @member("cache")
            def create_cache(self) -> dict[str, str]:
                return {}

        assert _CachedFamily.members() == ("connection", "executor", "cache")
        assert _CachedFamily().create_member("cache") == {}
        # Inherited creators are checked against the subclass variant.
        with pytest.raises(FamilyCreationError) as exc_info:
            _CachedFamily().create_family()
        assert exc_info.value.member == "connection"

    def test_create_member_by_name(self) -> None:
        assert MySQLFamily().create_member("executor") == QueryExecutor(variant="mysql")


class TestFamily:
    def test_mapping_and_attribute_access(self) -> None:
        family = MySQLFamily().create_family()

        assert family["connection"] is family.connection
        assert len(family) == 2
        assert family.as_dict().keys() == {"connection", "executor"}

    def test_missing_attribute(self) -> None:
        family = MySQLFamily().create_family()

        with pytest.raises(AttributeError, match="no member 'cache'"):
            _ = family.cache

    def test_equality_includes_variant(self) -> None:
        members = {"value": 1}

        assert Family("a", members) == Family("a", members)
        assert Family("a", members) != Family("b", members)

    def test_as_dict_is_a_copy(self) -> None:
        family = MySQLFamily().create_family()

        family.as_dict().clear()

        assert len(family) == 2

    def test_family_can_be_a_prototype_template(self) -> None:
        family = MySQLFamily().create_family()
        prototypes = PrototypeRegistry()

        prototypes.register("mysql-family", family)
        clone = prototypes.clone("mysql-family")

        assert clone == family
        assert clone.variant == "mysql"
        assert clone.connection is not family.connection

    def test_pickle_round_trip_keeps_variant(self) -> None:
        family = MongoFamily().create_family()

        restored = pickle.loads(pickle.dumps(family))

        assert restored == family
        assert restored.variant == "mongodb"


class TestFamilyRegistry:
    def test_create_family_by_variant(self, families: FamilyRegistry[DatabaseFamily]) -> None:
        family = families.create_family("MongoDB")

        assert family.variant == "mongodb"
        assert family.connection.dsn == "mongodb://localhost"

    def test_select_binds_instance(self, families: FamilyRegistry[DatabaseFamily]) -> None:
        factory = families.select("mysql")

        assert isinstance(factory, MySQLFamily)
        assert families.variants() == ("mongodb", "mysql")
        assert "mysql" in families
        assert len(families) == 2

    def test_unknown_variant(self, families: FamilyRegistry[DatabaseFamily]) -> None:
        with pytest.raises(UnknownVariantError):
            families.select("oracle")

    def test_rejects_abstract_variant(self, families: FamilyRegistry[DatabaseFamily]) -> None:
        class _HalfFamily(DatabaseFamily, variant="half"):
            def create_connection(self) -> Connection:
                return Connection(variant="half")

        with pytest.raises(InvalidRegistrationError, match="create_query_executor"):
            families.add(_HalfFamily)

    def test_rejects_foreign_factory(self, families: FamilyRegistry[DatabaseFamily]) -> None:
        class _Other(FamilyFactory, variant="other"):
            @member("value")
            def create_value(self) -> int:
                return 1

        with pytest.raises(InvalidRegistrationError, match="is not a DatabaseFamily"):
            families.add(_Other)  # type: ignore[arg-type]

    def test_register_decorator(self) -> None:
        registry = FamilyRegistry(DatabaseFamily)

        @registry.register("sqlite")
        class _SQLiteFamily(DatabaseFamily):
            def create_connection(self) -> Connection:
                return Connection(variant="sqlite")

            def create_query_executor(self) -> QueryExecutor:
                return QueryExecutor(variant="sqlite")

        assert registry.create_family("sqlite").executor.variant == "sqlite"

    def test_duplicate_variant(self, families: FamilyRegistry[DatabaseFamily]) -> None:
        with pytest.raises(InvalidRegistrationError, match="already registered"):
            families.add(MySQLFamily)

"""Product families: matched sets of products from one variant.

Selecting a family factory fixes the variant for every member it creates.
"""

from __future__ import annotations

from abc import abstractmethod
from dataclasses import dataclass

from fabrik import FamilyCreationError, FamilyFactory, FamilyRegistry, member


@dataclass
class Connection:
    variant: str


@dataclass
class QueryExecutor:
    variant: str


class DatabaseFamily(FamilyFactory):
    @member("connection")
    @abstractmethod
    def create_connection(self) -> Connection: ...

    @member("executor")
    @abstractmethod
    def create_query_executor(self) -> QueryExecutor: ...


databases = FamilyRegistry(DatabaseFamily)


@databases.register()
class MySQLFamily(DatabaseFamily, variant="mysql"):
    def create_connection(self) -> Connection:
        return Connection(variant="mysql")

    def create_query_executor(self) -> QueryExecutor:
        return QueryExecutor(variant="mysql")


@databases.register()
class MongoFamily(DatabaseFamily, variant="mongodb"):
    def create_connection(self) -> Connection:
        return Connection(variant="mongodb")

    def create_query_executor(self) -> QueryExecutor:
        # Wrong variant on purpose: the family refuses to mix variants.
        return QueryExecutor(variant="mysql")


def main() -> None:
    family = databases.create_family("MySQL")
    print(f"members={list(family)}")  # => members=['connection', 'executor']
    print(f"executor_variant={family.executor.variant}")  # => executor_variant=mysql

    try:
        databases.create_family("mongodb")
    except FamilyCreationError as error:
        print(f"failed_member={error.member}")  # => failed_member=executor


if __name__ == "__main__":
    main()

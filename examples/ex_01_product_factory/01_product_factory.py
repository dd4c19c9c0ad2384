"""Product factories: one creation hook per variant.

Callers pick a variant token and receive a product without naming the concrete
class that built it.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from fabrik import FactoryRegistry, ProductFactory


@dataclass
class Tile:
    variant: str
    weight: int


class Material(Enum):
    STONE = "stone"
    WOOD = "wood"


tiles: FactoryRegistry[Tile] = FactoryRegistry("tiles")


@tiles.register()
class StoneTileFactory(ProductFactory[Tile], variant=Material.STONE):
    def make(self) -> Tile:
        return Tile(variant="stone", weight=12)


tiles.add_callable("wood", lambda: Tile(variant="wood", weight=3))


def main() -> None:
    stone = tiles.create(Material.STONE)
    print(f"stone_weight={stone.weight}")  # => stone_weight=12

    wood = tiles.create("Wood")
    print(f"wood_weight={wood.weight}")  # => wood_weight=3

    print(f"fresh_each_time={tiles.create('stone') is not stone}")  # => fresh_each_time=True
    print(f"variants={list(tiles.variants())}")  # => variants=['stone', 'wood']


if __name__ == "__main__":
    main()

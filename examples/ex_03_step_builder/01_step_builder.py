"""Step builders: chained setters, then one finalized product per ``build``."""

from __future__ import annotations

from dataclasses import dataclass, field

from fabrik import MissingFieldError, StepBuilder


@dataclass(frozen=True)
class Computer:
    cpu: str
    ram_gb: int = 8
    drives: list[str] = field(default_factory=list)


class ComputerBuilder(StepBuilder[Computer]):
    product_type = Computer


def main() -> None:
    builder = ComputerBuilder().cpu("x86-64").drives(["ssd"]).ram_gb(32)

    first = builder.build()
    second = builder.build()
    print(f"ram_gb={first.ram_gb}")  # => ram_gb=32
    print(f"equal={first == second}")  # => equal=True
    print(f"independent={first.drives is not second.drives}")  # => independent=True

    try:
        ComputerBuilder().ram_gb(16).build()
    except MissingFieldError as error:
        print(f"missing={error.field}")  # => missing=cpu


if __name__ == "__main__":
    main()

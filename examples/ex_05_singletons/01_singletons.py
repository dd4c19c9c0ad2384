"""Singletons: one lazily created instance, even under concurrent first access."""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor

from fabrik import SingletonHandle, SingletonState


class ConnectionPool:
    created = 0

    def __init__(self) -> None:
        ConnectionPool.created += 1


def main() -> None:
    pool = SingletonHandle(ConnectionPool, name="pool")
    print(f"state={pool.state.value}")  # => state=uninitialized

    with ThreadPoolExecutor(max_workers=8) as executor:
        instances = list(executor.map(lambda _: pool.get(), range(8)))

    same_instance = all(item is instances[0] for item in instances)
    print(f"same_instance={same_instance}")  # => same_instance=True
    print(f"constructed={ConnectionPool.created}")  # => constructed=1
    print(f"state={pool.state.value}")  # => state=ready


if __name__ == "__main__":
    main()

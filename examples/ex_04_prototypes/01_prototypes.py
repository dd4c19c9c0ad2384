"""Prototypes: register a template once, clone independent deep copies."""

from __future__ import annotations

from dataclasses import dataclass, field

from fabrik import NotFoundError, PrototypeRegistry


@dataclass
class Sprite:
    name: str
    frames: list[str] = field(default_factory=list)


def main() -> None:
    prototypes = PrototypeRegistry()
    prototypes.register("hero", Sprite(name="hero", frames=["idle"]))

    clone = prototypes.clone("hero")
    clone.frames.append("run")
    print(f"template_frames={prototypes.clone('hero').frames}")  # => template_frames=['idle']

    villain = prototypes.clone("hero", name="villain")
    print(f"override={villain.name}")  # => override=villain

    try:
        prototypes.clone("does-not-exist")
    except NotFoundError as error:
        print(f"not_found={error.name}")  # => not_found=does-not-exist


if __name__ == "__main__":
    main()

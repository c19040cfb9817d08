from __future__ import annotations

from dataclasses import dataclass, field
from typing import Union


@dataclass(frozen=True)
class Url:
    url: str


@dataclass(frozen=True)
class LocalAsset:
    """Path relative to the resolver's asset directory, e.g. ``UI/ATTACK.png``."""

    path: str


ImageRef = Union[Url, LocalAsset]


class CardError(Exception):
    pass


class InvalidCharacterError(CardError, ValueError):
    pass


class CardEncodeError(CardError):
    pass


@dataclass(frozen=True)
class Profile:
    nickname: str
    uid: int
    level: int
    world_level: int


@dataclass(frozen=True)
class StatEntry:
    prop: str
    value: float
    name: str
    value_text: str


@dataclass(frozen=True)
class RolledStat:
    """Weapon or artifact stat. ``multiplied`` is the value after the roll multiplier."""

    prop: str
    value: float
    multiplied: float | None = None

    @property
    def multiplied_value(self) -> float:
        if self.multiplied is None:
            return self.value
        return self.multiplied


@dataclass(frozen=True)
class Constellation:
    icon: ImageRef | None
    unlocked: bool = False


@dataclass(frozen=True)
class SkillLevel:
    base: int
    extra: int = 0

    @property
    def boosted(self) -> bool:
        return self.extra != 0


@dataclass(frozen=True)
class Skill:
    icon: ImageRef | None
    level: SkillLevel


@dataclass(frozen=True)
class Weapon:
    icon: ImageRef | None
    rarity: int
    name: str
    refinement: int
    level: int
    max_level: int
    stats: tuple[RolledStat, ...] = ()


@dataclass(frozen=True)
class Artifact:
    slot: str
    icon: ImageRef | None
    rarity: int
    level: int
    set_name: str
    main_stat: RolledStat
    substats: tuple[RolledStat, ...] = ()

    @property
    def display_level(self) -> int:
        return self.level - 1


@dataclass(frozen=True)
class Character:
    name: str
    element: str
    level: int
    max_level: int
    friendship: int = 1
    splash: ImageRef | None = None
    constellations: tuple[Constellation, ...] = ()
    skills: tuple[Skill, ...] = ()
    stats: tuple[StatEntry, ...] = ()
    weapon: Weapon | None = None
    artifacts: tuple[Artifact, ...] = field(default_factory=tuple)

    def stat(self, prop: str) -> StatEntry | None:
        for entry in self.stats:
            if entry.prop == prop:
                return entry
        return None

    def artifact_in(self, slot: str) -> Artifact | None:
        for artifact in self.artifacts:
            if artifact.slot == slot:
                return artifact
        return None

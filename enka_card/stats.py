from dataclasses import dataclass

from .draw_utils import format_int, format_stat_value
from .models import Artifact, RolledStat, StatEntry

BASE_STATS = [
    "FIGHT_PROP_MAX_HP",
    "FIGHT_PROP_CUR_ATTACK",
    "FIGHT_PROP_CUR_DEFENSE",
    "FIGHT_PROP_ELEMENT_MASTERY",
    "FIGHT_PROP_CRITICAL",
    "FIGHT_PROP_CRITICAL_HURT",
    "FIGHT_PROP_CHARGE_EFFICIENCY",
]

SPLIT_BASE_PROPS = {
    "FIGHT_PROP_MAX_HP": "FIGHT_PROP_BASE_HP",
    "FIGHT_PROP_CUR_ATTACK": "FIGHT_PROP_BASE_ATTACK",
    "FIGHT_PROP_CUR_DEFENSE": "FIGHT_PROP_BASE_DEFENSE",
}

SLOT_ORDER = ["EQUIP_BRACER", "EQUIP_NECKLACE", "EQUIP_SHOES", "EQUIP_RING", "EQUIP_DRESS"]

MAX_STAT_ROWS = 8


@dataclass(frozen=True)
class StatSplit:
    total: float
    base: float
    bonus: float

    @property
    def texts(self) -> tuple:
        return format_int(self.total), format_int(self.base), f"+{format_int(self.bonus)}"


@dataclass(frozen=True)
class SetBonus:
    name: str
    pieces: int


def _find(stats, prop: str) -> StatEntry | None:
    for s in stats:
        if s.prop == prop:
            return s
    return None


def best_damage_bonus(stats, element_prop: str) -> StatEntry | None:
    """The character's own elemental bonus when set, else the largest one present."""
    bonuses = [s for s in stats if "ADD_HURT" in s.prop and s.value > 0]
    if not bonuses:
        return None
    own = _find(bonuses, element_prop)
    if own is not None:
        return own
    return sorted(bonuses, key=lambda s: s.value, reverse=True)[0]


def select_display_stats(stats, element_prop: str) -> list:
    rows = []
    for prop in BASE_STATS:
        entry = _find(stats, prop)
        if entry is not None:
            rows.append(entry)
    bonus = best_damage_bonus(stats, element_prop)
    if bonus is not None:
        rows.append(bonus)
    return rows[:MAX_STAT_ROWS]


def split_base_bonus(entry: StatEntry, stats) -> StatSplit | None:
    """Total/base/bonus for HP, ATK and DEF rows; ``None`` for every other stat.

    An absent base stat counts as ``0`` so the whole total shows as bonus.
    """
    base_prop = SPLIT_BASE_PROPS.get(entry.prop)
    if base_prop is None:
        return None
    base_entry = _find(stats, base_prop)
    base = base_entry.value if base_entry is not None else 0
    return StatSplit(total=entry.value, base=base, bonus=entry.value - base)


def sort_substats(substats, order) -> list:
    rank = {prop: i for i, prop in enumerate(order)}
    return sorted(substats, key=lambda s: rank.get(s.prop, len(rank)))


def format_rolled(stat: RolledStat) -> str:
    return format_stat_value(stat.multiplied_value, stat.prop)


def format_weapon_base(stat: RolledStat | None) -> str:
    if stat is None:
        return "0"
    return format_int(stat.value)


def slot_order(artifacts) -> list:
    """Equipped artifacts sorted by slot; unknown slots are dropped."""
    by_slot = {}
    for artifact in artifacts:
        by_slot.setdefault(artifact.slot, artifact)
    return [by_slot[slot] for slot in SLOT_ORDER if slot in by_slot]


def count_sets(artifacts) -> dict:
    counts = {}
    for artifact in slot_order(artifacts):
        counts[artifact.set_name] = counts.get(artifact.set_name, 0) + 1
    return counts


def active_set_bonuses(counts: dict) -> list:
    """Sets with at least two pieces, reported as a 2-piece or 4-piece bonus."""
    return [
        SetBonus(name=name, pieces=4 if count >= 4 else 2)
        for name, count in counts.items()
        if count >= 2
    ]


def tally_set_bonuses(artifacts: list[Artifact]) -> list:
    return active_set_bonuses(count_sets(artifacts))


__all__ = [
    "BASE_STATS",
    "SLOT_ORDER",
    "SetBonus",
    "StatSplit",
    "active_set_bonuses",
    "best_damage_bonus",
    "count_sets",
    "format_rolled",
    "format_weapon_base",
    "select_display_stats",
    "sort_substats",
    "split_base_bonus",
    "tally_set_bonuses",
]

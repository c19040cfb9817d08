"""Builds ``Profile``/``Character`` snapshots from a plain JSON showcase document.

Image references are objects with either a ``url`` or an ``asset`` key::

    {"profile": {"nickname": "Lumine", "uid": 812345678, "level": 60, "world_level": 8},
     "character": {"name": "Hu Tao", "element": "Fire", "level": 90, "max_level": 90,
                   "splash": {"url": "https://..."}, "stats": [...], "artifacts": [...]}}
"""
import json
import logging
from pathlib import Path

from .models import (
    Artifact,
    Character,
    Constellation,
    InvalidCharacterError,
    LocalAsset,
    Profile,
    RolledStat,
    Skill,
    SkillLevel,
    StatEntry,
    Url,
    Weapon,
)

logger = logging.getLogger(__name__)


def image_ref(data):
    if not data:
        return None
    if "url" in data:
        return Url(data["url"])
    if "asset" in data:
        return LocalAsset(data["asset"])
    raise InvalidCharacterError(f"image reference needs 'url' or 'asset': {data!r}")


def _rolled(data: dict) -> RolledStat:
    return RolledStat(prop=data["prop"], value=float(data["value"]), multiplied=data.get("multiplied"))


def profile_from_dict(data: dict) -> Profile:
    return Profile(
        nickname=data.get("nickname", ""),
        uid=int(data["uid"]),
        level=int(data.get("level", 1)),
        world_level=int(data.get("world_level", 0)),
    )


def weapon_from_dict(data: dict) -> Weapon:
    return Weapon(
        icon=image_ref(data.get("icon")),
        rarity=int(data.get("rarity", 1)),
        name=data["name"],
        refinement=int(data.get("refinement", 1)),
        level=int(data.get("level", 1)),
        max_level=int(data.get("max_level", 20)),
        stats=tuple(_rolled(s) for s in data.get("stats", [])),
    )


def artifact_from_dict(data: dict) -> Artifact:
    return Artifact(
        slot=data["slot"],
        icon=image_ref(data.get("icon")),
        rarity=int(data.get("rarity", 1)),
        level=int(data.get("level", 1)),
        set_name=data["set_name"],
        main_stat=_rolled(data["main_stat"]),
        substats=tuple(_rolled(s) for s in data.get("substats", [])),
    )


def character_from_dict(data: dict) -> Character:
    weapon = data.get("weapon")
    return Character(
        name=data["name"],
        element=data["element"],
        level=int(data["level"]),
        max_level=int(data["max_level"]),
        friendship=int(data.get("friendship", 1)),
        splash=image_ref(data.get("splash")),
        constellations=tuple(
            Constellation(icon=image_ref(c.get("icon")), unlocked=bool(c.get("unlocked")))
            for c in data.get("constellations", [])
        ),
        skills=tuple(
            Skill(
                icon=image_ref(s.get("icon")),
                level=SkillLevel(base=int(s.get("level", 1)), extra=int(s.get("extra", 0))),
            )
            for s in data.get("skills", [])
        ),
        stats=tuple(
            StatEntry(
                prop=s["prop"],
                value=float(s["value"]),
                name=s.get("name", s["prop"]),
                value_text=s.get("value_text", ""),
            )
            for s in data.get("stats", [])
        ),
        weapon=weapon_from_dict(weapon) if weapon else None,
        artifacts=tuple(artifact_from_dict(a) for a in data.get("artifacts", [])),
    )


def showcase_from_dict(data: dict) -> tuple:
    try:
        return profile_from_dict(data["profile"]), character_from_dict(data["character"])
    except InvalidCharacterError:
        raise
    except (KeyError, TypeError, ValueError) as e:
        raise InvalidCharacterError(f"malformed showcase data: {e!r}") from e


def load_showcase(path) -> tuple:
    path = Path(path)
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        logger.error(f"Invalid showcase JSON {path}: {e}")
        raise InvalidCharacterError(f"{path.name} is not valid JSON") from e
    return showcase_from_dict(data)

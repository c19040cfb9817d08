import pytest
from PIL import Image

from enka_card import (
    Artifact,
    CardConfig,
    Character,
    Constellation,
    LocalAsset,
    Profile,
    RolledStat,
    Skill,
    SkillLevel,
    StatEntry,
    Url,
    Weapon,
)
from enka_card.card_renderer import TEMPLATE

CANVAS = (1470, 610)


def make_template(size=CANVAS) -> Image.Image:
    img = Image.new("RGBA", size, (0, 0, 0, 0))
    strip = Image.new("RGBA", (size[0], size[1] // 2), (90, 90, 90, 200))
    img.paste(strip, (0, 0))
    return img


class FakeResolver:
    """Serves images from a dict; records every call."""

    def __init__(self, images=None, default=None):
        self.images = dict(images or {})
        self.default = default
        self.calls = []

    async def resolve(self, *candidates):
        self.calls.append(candidates)
        for ref in candidates:
            img = self.images.get(ref)
            if img is not None:
                return img
        if self.default is not None:
            return self.default(candidates)
        return None


class RaisingResolver:
    async def resolve(self, *candidates):
        raise RuntimeError("resolver exploded")


def _any_icon(candidates):
    ref = candidates[0]
    if isinstance(ref, LocalAsset) and "mask" in ref.path:
        return Image.new("RGBA", (64, 64), (0, 0, 0, 255))
    return Image.new("RGBA", (64, 48), (180, 120, 60, 255))


@pytest.fixture
def config():
    return CardConfig()


@pytest.fixture
def resolver():
    return FakeResolver({TEMPLATE: make_template()}, default=_any_icon)


@pytest.fixture
def empty_resolver():
    return FakeResolver()


def stat(prop, value, name=None, text=None):
    return StatEntry(prop=prop, value=value, name=name or prop, value_text=text or str(value))


def rolled(prop, value, multiplied=None):
    return RolledStat(prop=prop, value=value, multiplied=multiplied)


@pytest.fixture
def profile():
    return Profile(nickname="Lumine", uid=812345678, level=60, world_level=8)


@pytest.fixture
def weapon():
    return Weapon(
        icon=Url("https://enka.network/ui/UI_EquipIcon_Pole_Homa.png"),
        rarity=5,
        name="Staff of Homa",
        refinement=1,
        level=90,
        max_level=90,
        stats=(
            rolled("FIGHT_PROP_BASE_ATTACK", 608.0),
            rolled("FIGHT_PROP_CRITICAL_HURT", 0.662, 66.2),
        ),
    )


@pytest.fixture
def artifacts():
    def piece(slot, set_name, main, subs):
        return Artifact(
            slot=slot,
            icon=Url(f"https://enka.network/ui/{slot}.png"),
            rarity=5,
            level=21,
            set_name=set_name,
            main_stat=main,
            substats=tuple(subs),
        )

    subs = [
        rolled("FIGHT_PROP_HP", 269.0),
        rolled("FIGHT_PROP_CRITICAL", 0.105, 10.5),
        rolled("FIGHT_PROP_ELEMENT_MASTERY", 40.0),
        rolled("FIGHT_PROP_CRITICAL_HURT", 0.218, 21.8),
    ]
    return (
        piece("EQUIP_BRACER", "Crimson Witch of Flames", rolled("FIGHT_PROP_HP", 4780.0), subs),
        piece("EQUIP_NECKLACE", "Crimson Witch of Flames", rolled("FIGHT_PROP_ATTACK", 311.0), subs),
        piece("EQUIP_SHOES", "Shimenawa's Reminiscence", rolled("FIGHT_PROP_HP_PERCENT", 0.466, 46.6), subs),
        piece("EQUIP_RING", "Crimson Witch of Flames", rolled("FIGHT_PROP_FIRE_ADD_HURT", 0.466, 46.6), subs),
        piece("EQUIP_DRESS", "Crimson Witch of Flames", rolled("FIGHT_PROP_CRITICAL", 0.311, 31.1), subs),
    )


@pytest.fixture
def character(weapon, artifacts):
    return Character(
        name="Hu Tao",
        element="Fire",
        level=90,
        max_level=90,
        friendship=10,
        splash=Url("https://enka.network/ui/UI_Gacha_AvatarImg_Hutao.png"),
        constellations=tuple(
            Constellation(icon=Url(f"https://enka.network/ui/cons_{i}.png"), unlocked=i < 2)
            for i in range(6)
        ),
        skills=(
            Skill(icon=Url("https://enka.network/ui/skill_a.png"), level=SkillLevel(10)),
            Skill(icon=Url("https://enka.network/ui/skill_e.png"), level=SkillLevel(10, 3)),
            Skill(icon=Url("https://enka.network/ui/skill_q.png"), level=SkillLevel(9, 3)),
        ),
        stats=(
            stat("FIGHT_PROP_BASE_HP", 15552.0),
            stat("FIGHT_PROP_MAX_HP", 34870.0, "Max HP"),
            stat("FIGHT_PROP_BASE_ATTACK", 714.0),
            stat("FIGHT_PROP_CUR_ATTACK", 1305.0, "ATK"),
            stat("FIGHT_PROP_BASE_DEFENSE", 876.0),
            stat("FIGHT_PROP_CUR_DEFENSE", 1002.0, "DEF"),
            stat("FIGHT_PROP_ELEMENT_MASTERY", 203.0, "Elemental Mastery", "203"),
            stat("FIGHT_PROP_CRITICAL", 0.672, "CRIT Rate", "67.2%"),
            stat("FIGHT_PROP_CRITICAL_HURT", 2.124, "CRIT DMG", "212.4%"),
            stat("FIGHT_PROP_CHARGE_EFFICIENCY", 1.136, "Energy Recharge", "113.6%"),
            stat("FIGHT_PROP_FIRE_ADD_HURT", 0.616, "Pyro DMG Bonus", "61.6%"),
            stat("FIGHT_PROP_PHYSICAL_ADD_HURT", 0.0, "Physical DMG Bonus", "0%"),
        ),
        weapon=weapon,
        artifacts=artifacts,
    )

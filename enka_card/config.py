import json
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path

from PIL import ImageFont

logger = logging.getLogger(__name__)

FONT_PATHS = [
    "attributes/Fonts/JA-JP.TTF",
    "/usr/share/fonts/truetype/noto/NotoSansCJK-Regular.ttc",
    "/usr/share/fonts/opentype/noto/NotoSansCJK-Regular.ttc",
    "/usr/share/fonts/truetype/dejavu/DejaVuSans.ttf",
]

DEFAULT_CANVAS_SIZE = (1470, 610)

ELEMENT_COLORS = {
    "Fire": (186, 140, 131),
    "Water": (132, 161, 198),
    "Grass": (45, 142, 52),
    "Electric": (152, 118, 173),
    "Wind": (82, 176, 177),
    "Ice": (70, 168, 186),
    "Rock": (187, 159, 75),
    "Physical": (255, 255, 255),
}

RARITY_COLORS = {
    1: (200, 200, 200),
    2: (110, 190, 100),
    3: (80, 150, 220),
    4: (165, 110, 210),
    5: (245, 185, 65),
}

ELEMENT_PROP_MAP = {
    "Fire": "FIGHT_PROP_FIRE_ADD_HURT",
    "Water": "FIGHT_PROP_WATER_ADD_HURT",
    "Grass": "FIGHT_PROP_GRASS_ADD_HURT",
    "Electric": "FIGHT_PROP_ELEC_ADD_HURT",
    "Wind": "FIGHT_PROP_WIND_ADD_HURT",
    "Ice": "FIGHT_PROP_ICE_ADD_HURT",
    "Rock": "FIGHT_PROP_ROCK_ADD_HURT",
    "Physical": "FIGHT_PROP_PHYSICAL_ADD_HURT",
}

SUBSTAT_ORDER = [
    "FIGHT_PROP_CRITICAL",
    "FIGHT_PROP_CRITICAL_HURT",
    "FIGHT_PROP_ATTACK_PERCENT",
    "FIGHT_PROP_ATTACK",
    "FIGHT_PROP_DEFENSE_PERCENT",
    "FIGHT_PROP_DEFENSE",
    "FIGHT_PROP_HP_PERCENT",
    "FIGHT_PROP_HP",
    "FIGHT_PROP_ELEMENT_MASTERY",
    "FIGHT_PROP_CHARGE_EFFICIENCY",
]

STAT_ICON_MAP = {
    "FIGHT_PROP_MAX_HP": "HP",
    "FIGHT_PROP_CUR_ATTACK": "ATTACK",
    "FIGHT_PROP_CUR_DEFENSE": "DEFENSE",
    "FIGHT_PROP_BASE_ATTACK": "ATTACK",
    "FIGHT_PROP_HP": "HP",
    "FIGHT_PROP_ATTACK": "ATTACK",
    "FIGHT_PROP_DEFENSE": "DEFENSE",
    "FIGHT_PROP_HP_PERCENT": "HP_PERCENT",
    "FIGHT_PROP_ATTACK_PERCENT": "ATTACK_PERCENT",
    "FIGHT_PROP_DEFENSE_PERCENT": "DEFENSE_PERCENT",
    "FIGHT_PROP_CRITICAL": "CRITICAL",
    "FIGHT_PROP_CRITICAL_HURT": "CRITICAL_HURT",
    "FIGHT_PROP_CHARGE_EFFICIENCY": "CHARGE_EFFICIENCY",
    "FIGHT_PROP_ELEMENT_MASTERY": "ELEMENT_MASTERY",
    "FIGHT_PROP_HEAL_ADD": "HEAL_ADD",
    "FIGHT_PROP_FIRE_ADD_HURT": "PYRO",
    "FIGHT_PROP_WATER_ADD_HURT": "HYDRO",
    "FIGHT_PROP_GRASS_ADD_HURT": "DENDRO",
    "FIGHT_PROP_ELEC_ADD_HURT": "ELECTRO",
    "FIGHT_PROP_WIND_ADD_HURT": "ANEMO",
    "FIGHT_PROP_ICE_ADD_HURT": "CRYO",
    "FIGHT_PROP_ROCK_ADD_HURT": "GEO",
    "FIGHT_PROP_PHYSICAL_ADD_HURT": "PHYSICAL_ADD_HURT",
}

RARITY_BADGES = {
    1: "ONE_STAR",
    2: "TWO_STAR",
    3: "THREE_STAR",
    4: "FOUR_STAR",
    5: "FIVE_STAR",
}


def _rgb(value) -> tuple:
    if isinstance(value, str) or len(value) < 3:
        raise ValueError(f"expected an [r, g, b] colour, got {value!r}")
    return tuple(int(c) for c in value[:3])


@dataclass
class CardConfig:
    font_path: str | None = None
    canvas_size: tuple = DEFAULT_CANVAS_SIZE
    element_colors: dict = field(default_factory=lambda: dict(ELEMENT_COLORS))
    rarity_colors: dict = field(default_factory=lambda: dict(RARITY_COLORS))
    element_prop_map: dict = field(default_factory=lambda: dict(ELEMENT_PROP_MAP))
    substat_order: list = field(default_factory=lambda: list(SUBSTAT_ORDER))
    stat_icon_map: dict = field(default_factory=lambda: dict(STAT_ICON_MAP))
    rarity_badges: dict = field(default_factory=lambda: dict(RARITY_BADGES))
    default_element: str = "Physical"
    default_stat_icon: str = "ATTACK"
    default_rarity_color: tuple = (255, 255, 255)
    no_bonus_text: str = "No Activated Bonuses"
    default_nickname: str = "Traveler"
    _fonts: dict = field(default_factory=dict, init=False, repr=False, compare=False)

    @classmethod
    def discover(cls, search_paths=None, **kwargs) -> "CardConfig":
        for p in search_paths or FONT_PATHS:
            if os.path.exists(p):
                return cls(font_path=p, **kwargs)
        logger.warning("No card font found, falling back to Pillow's default font")
        return cls(font_path=None, **kwargs)

    @classmethod
    def from_file(cls, path, **kwargs) -> "CardConfig":
        """Build a config whose lookup tables are overlaid from a JSON file.

        Recognised keys: ``font_path``, ``canvas_size``, ``element_colors``,
        ``rarity_colors``, ``element_prop_map``, ``substat_order``,
        ``stat_icon_map``, ``rarity_badges``, ``no_bonus_text`` and
        ``default_nickname``. Anything unreadable keeps the defaults.
        """
        config = cls(**kwargs)
        path = Path(path)
        if not path.exists():
            logger.warning(f"Card config file not found: {path}")
            return config
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (json.JSONDecodeError, IOError) as e:
            logger.error(f"Failed to load card config {path}: {e}")
            return config
        if not isinstance(data, dict):
            logger.error(f"Card config {path} is not a JSON object")
            return config

        try:
            config._overlay(data)
        except (TypeError, ValueError, AttributeError) as e:
            logger.error(f"Invalid value in card config {path}: {e}")
            return cls(**kwargs)
        logger.info(f"Loaded card config: {path.name}")
        return config

    def _overlay(self, data: dict):
        if data.get("font_path"):
            self.font_path = str(data["font_path"])
        if data.get("canvas_size"):
            width, height = (int(v) for v in data["canvas_size"][:2])
            self.canvas_size = (width, height)
        if isinstance(data.get("element_colors"), dict):
            self.element_colors.update({k: _rgb(v) for k, v in data["element_colors"].items()})
        if isinstance(data.get("rarity_colors"), dict):
            self.rarity_colors.update({int(k): _rgb(v) for k, v in data["rarity_colors"].items()})
        if isinstance(data.get("rarity_badges"), dict):
            self.rarity_badges.update({int(k): v for k, v in data["rarity_badges"].items()})
        for key in ("element_prop_map", "stat_icon_map"):
            if isinstance(data.get(key), dict):
                getattr(self, key).update(data[key])
        if isinstance(data.get("substat_order"), list):
            self.substat_order = list(data["substat_order"])
        for key in ("no_bonus_text", "default_nickname"):
            if isinstance(data.get(key), str):
                setattr(self, key, data[key])

    def font(self, size: int) -> ImageFont.FreeTypeFont:
        cached = self._fonts.get(size)
        if cached is not None:
            return cached
        if self.font_path:
            try:
                font = ImageFont.truetype(self.font_path, size)
            except OSError as e:
                logger.warning(f"Font load failed ({self.font_path}): {e}")
                font = ImageFont.load_default(size)
        else:
            font = ImageFont.load_default(size)
        self._fonts[size] = font
        return font

    def element_color(self, element: str) -> tuple:
        color = self.element_colors.get(element)
        if color is None:
            color = self.element_colors.get(self.default_element, (255, 255, 255))
        return color

    def element_prop(self, element: str) -> str:
        prop = self.element_prop_map.get(element)
        if prop is None:
            prop = self.element_prop_map.get(self.default_element, "FIGHT_PROP_PHYSICAL_ADD_HURT")
        return prop

    def rarity_color(self, rarity: int) -> tuple:
        return self.rarity_colors.get(rarity, self.default_rarity_color)

    def rarity_badge(self, rarity: int) -> str | None:
        return self.rarity_badges.get(rarity)

    def stat_icon(self, prop: str) -> str:
        return self.stat_icon_map.get(prop, self.default_stat_icon)

import json
import logging

import pytest
from PIL import ImageFont

from enka_card import CardConfig
from enka_card.config import DEFAULT_CANVAS_SIZE, ELEMENT_COLORS


def test_defaults():
    config = CardConfig()
    assert config.canvas_size == DEFAULT_CANVAS_SIZE
    assert config.element_color("Fire") == ELEMENT_COLORS["Fire"]
    assert config.element_prop("Ice") == "FIGHT_PROP_ICE_ADD_HURT"
    assert config.rarity_badge(5) == "FIVE_STAR"


def test_tables_are_per_instance():
    a = CardConfig()
    a.element_colors["Fire"] = (0, 0, 0)
    assert CardConfig().element_color("Fire") == ELEMENT_COLORS["Fire"]


def test_lookup_fallbacks():
    config = CardConfig()
    assert config.element_color("Quantum") == ELEMENT_COLORS["Physical"]
    assert config.element_prop("Quantum") == "FIGHT_PROP_PHYSICAL_ADD_HURT"
    assert config.stat_icon("FIGHT_PROP_SOMETHING_NEW") == "ATTACK"
    assert config.rarity_color(9) == (255, 255, 255)
    assert config.rarity_badge(9) is None


def test_from_file_overlays_tables(tmp_path):
    path = tmp_path / "card.json"
    path.write_text(json.dumps({
        "canvas_size": [1000, 400],
        "element_colors": {"Fire": [1, 2, 3], "Quantum": [4, 5, 6]},
        "rarity_colors": {"5": [7, 8, 9]},
        "substat_order": ["FIGHT_PROP_HP"],
        "no_bonus_text": "Nothing active",
    }), encoding="utf-8")

    config = CardConfig.from_file(path)
    assert config.canvas_size == (1000, 400)
    assert config.element_color("Fire") == (1, 2, 3)
    assert config.element_color("Quantum") == (4, 5, 6)
    assert config.element_color("Water") == ELEMENT_COLORS["Water"]
    assert config.rarity_color(5) == (7, 8, 9)
    assert config.substat_order == ["FIGHT_PROP_HP"]
    assert config.no_bonus_text == "Nothing active"


def test_missing_file_keeps_defaults(tmp_path, caplog):
    with caplog.at_level(logging.WARNING, logger="enka_card.config"):
        config = CardConfig.from_file(tmp_path / "nope.json")
    assert config == CardConfig()
    assert "not found" in caplog.text


def test_invalid_file_keeps_defaults(tmp_path, caplog):
    path = tmp_path / "card.json"
    path.write_text("[1, 2", encoding="utf-8")
    with caplog.at_level(logging.ERROR, logger="enka_card.config"):
        config = CardConfig.from_file(path)
    assert config == CardConfig()
    assert "Failed to load" in caplog.text


def test_discover_without_fonts_uses_default(tmp_path, caplog):
    with caplog.at_level(logging.WARNING, logger="enka_card.config"):
        config = CardConfig.discover([str(tmp_path / "missing.ttf")])
    assert config.font_path is None
    assert "No card font found" in caplog.text


def test_fonts_are_cached_per_size():
    config = CardConfig()
    assert config.font(20) is config.font(20)
    assert config.font(20) is not config.font(22)
    assert isinstance(config.font(20), (ImageFont.FreeTypeFont, ImageFont.ImageFont))


def test_unreadable_font_falls_back(tmp_path):
    bad = tmp_path / "bad.ttf"
    bad.write_bytes(b"not a font")
    config = CardConfig(font_path=str(bad))
    assert config.font(18).getlength("Hu Tao") > 0


@pytest.mark.parametrize("payload", [
    {"rarity_colors": {"gold": [1, 2, 3]}},
    {"element_colors": {"Fire": 5}},
    {"element_colors": {"Fire": [1, 2]}},
    {"rarity_badges": {"five": "FIVE_STAR"}},
    {"canvas_size": 1470},
    {"element_colors": {"Water": [9, 9, 9]}, "rarity_colors": {"gold": [1, 2, 3]}},
])
def test_bad_table_values_keep_defaults(tmp_path, caplog, payload):
    path = tmp_path / "card.json"
    path.write_text(json.dumps(payload), encoding="utf-8")
    with caplog.at_level(logging.ERROR, logger="enka_card.config"):
        config = CardConfig.from_file(path)
    assert config == CardConfig()
    assert "Invalid value" in caplog.text

"""Content-driven geometry for the character card.

Every function here maps content length or item counts to pixel positions;
nothing draws.
"""
from PIL import ImageFont

CONSTELLATION_TOP = 160
CONSTELLATION_PITCH = 60

TALENT_TOP = 305
TALENT_PITCH = 90

WEAPON_NAME_X = 690
WEAPON_NAME_TOP = 35
WEAPON_NAME_MAX_WIDTH = 290
WEAPON_NAME_LINE_HEIGHT = 26
WEAPON_STAT_TOP = 65
WEAPON_INFO_GAP = 45

STAT_LIST_TOP = 180
STAT_LIST_SPAN = 365
STAT_LIST_MAX_ROWS = 8

ARTIFACT_TOP = 14
ARTIFACT_PITCH = 119
SUBSTAT_X = 1190
SUBSTAT_TOP = 26
SUBSTAT_COLUMN_WIDTH = 125
SUBSTAT_ROW_PITCH = 45

SET_BONUS_TOP_SINGLE = 565
SET_BONUS_TOP_MULTI = 554
SET_BONUS_PITCH = 25


def wrap_text(text: str, font: ImageFont.FreeTypeFont, max_width: float) -> list:
    """Greedy word wrap measured against ``font``.

    A word wider than ``max_width`` still gets a line of its own; words are
    never split. Always returns at least one line.
    """
    if font.getlength(text) <= max_width:
        return [text]
    words = text.split(" ")
    lines = []
    current = words[0]
    for word in words[1:]:
        test = f"{current} {word}"
        if font.getlength(test) < max_width:
            current = test
        else:
            lines.append(current)
            current = word
    lines.append(current)
    return lines


def weapon_name_line_y(index: int) -> int:
    return WEAPON_NAME_TOP + index * WEAPON_NAME_LINE_HEIGHT


def weapon_stat_y(name_line_count: int) -> int:
    """Top of the weapon stat boxes, pushed down by every extra name line."""
    return WEAPON_STAT_TOP + (max(name_line_count, 1) - 1) * WEAPON_NAME_LINE_HEIGHT


def weapon_info_y(name_line_count: int) -> int:
    return weapon_stat_y(name_line_count) + WEAPON_INFO_GAP


def constellation_y(index: int) -> int:
    return CONSTELLATION_TOP + CONSTELLATION_PITCH * index


def talent_y(index: int) -> int:
    return TALENT_TOP + TALENT_PITCH * index


def stat_row_pitch(row_count: int) -> float:
    return STAT_LIST_SPAN / max(row_count, 1)


def stat_row_y(index: int, row_count: int) -> float:
    return STAT_LIST_TOP + index * stat_row_pitch(row_count)


def artifact_row_y(slot_index: int) -> int:
    return ARTIFACT_TOP + ARTIFACT_PITCH * slot_index


def substat_position(slot_index: int, index: int) -> tuple:
    col = index % 2
    row = index // 2
    return (
        SUBSTAT_X + SUBSTAT_COLUMN_WIDTH * col,
        SUBSTAT_TOP + ARTIFACT_PITCH * slot_index + SUBSTAT_ROW_PITCH * row,
    )


def set_bonus_top(active_count: int) -> int:
    return SET_BONUS_TOP_MULTI if active_count > 1 else SET_BONUS_TOP_SINGLE


def set_bonus_rows(active_count: int) -> list:
    """Baseline y of each stacked set-bonus entry."""
    top = set_bonus_top(active_count)
    return [top + SET_BONUS_PITCH * i for i in range(active_count)]

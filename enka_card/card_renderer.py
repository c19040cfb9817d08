import asyncio
import io
import logging

from PIL import Image, ImageChops

from . import layout
from .config import CardConfig
from .draw_utils import (
    blit,
    draw_brightened_image,
    draw_icon_shade,
    draw_line,
    draw_polygon,
    draw_text,
    rounded_rect,
    text_width,
)
from .mask import apply_mask
from .models import CardEncodeError, Character, InvalidCharacterError, LocalAsset, Profile, Url
from .stats import (
    SLOT_ORDER,
    format_rolled,
    format_weapon_base,
    select_display_stats,
    sort_substats,
    split_base_bonus,
    tally_set_bonuses,
)

logger = logging.getLogger(__name__)

COLORS = {
    "text": (255, 255, 255, 255),
    "text_soft": (255, 255, 255, 199),
    "text_dim": (255, 255, 255, 153),
    "text_base": (255, 255, 255, 178),
    "gold": (245, 222, 179, 255),
    "green": (150, 255, 169, 255),
    "boosted": (79, 188, 212, 255),
    "badge": (50, 50, 50, 178),
    "panel": (225, 225, 225, 51),
    "info_bg": (0, 0, 0, 102),
    "ar_bg": (0, 0, 0, 128),
    "artifact_bg": (0, 0, 0, 61),
    "artifact_empty": (0, 0, 0, 26),
    "level_bg": (0, 0, 0, 178),
    "set_bg": (0, 0, 0, 51),
    "divider": (255, 255, 255, 26),
}

FONT_SIZE_NAME = 30
FONT_SIZE_LEVEL = 23
FONT_SIZE_WEAPON = 22
FONT_SIZE_STAT = 20
FONT_SIZE_UID = 18
FONT_SIZE_SET = 17
FONT_SIZE_NICKNAME = 16
FONT_SIZE_ARTIFACT_LEVEL = 14
FONT_SIZE_BONUS = 12
FONT_SIZE_MAIN_STAT = 27

SPLASH_SCALE = 0.74
SPLASH_OFFSET = (-470, -35)
SPLASH_MASK_X = -60

ICON_BRIGHTNESS = 2
LOCKED_OPACITY = 0.4
TALENT_OVERLAY_OPACITY = 0.8

ARTIFACT_X = 1009
ARTIFACT_ICON_SIZE = (106, 105)
ARTIFACT_ICON_ZOOM = 0.6

TEMPLATE = LocalAsset("Assets/default_enka_card.png")
CHARACTER_MASK = LocalAsset("Assets/enka_character_mask.png")
CHARACTER_SHADE = LocalAsset("Assets/enka_character_shade.png")
CONSTELLATION_OVERLAY = LocalAsset("Assets/enka_constellation_overlay.png")
TALENT_OVERLAY = LocalAsset("Assets/enka_talent_overlay.png")
ARTIFACT_MASK = LocalAsset("Assets/artifact_mask.png")
FLOWER_ICON = LocalAsset("Assets/flower_of_life_icon.png")
LOCK_ICON = LocalAsset("UI/LOCKED.png")
FRIENDSHIP_ICONS = (
    LocalAsset("UI/COMPANIONSHIP.png"),
    Url("https://enka.network/ui/UI_Icon_Companion.png"),
)


def ui_icon(name: str) -> LocalAsset:
    return LocalAsset(f"UI/{name}.png")


def _key(*refs) -> tuple:
    return tuple(r for r in refs if r is not None)


class CardRenderer:
    """Composes a character card from a profile, a character and resolved assets.

    Assets are resolved up front (concurrently, read-only), then drawn onto a
    single canvas in a fixed layer order and encoded as PNG.
    """

    def __init__(self, config: CardConfig, assets):
        self.config = config
        self.assets = assets

    def _font(self, size: int):
        return self.config.font(size)

    async def render(self, profile: Profile, character: Character) -> bytes:
        self._validate(profile, character)
        images = await self._resolve_all(self._asset_keys(character))
        canvas = self._compose(profile, character, images)
        return self._encode(canvas)

    def _validate(self, profile: Profile, character: Character):
        if profile is None:
            raise InvalidCharacterError("profile is required")
        if character is None:
            raise InvalidCharacterError("character is required")
        if not character.name:
            raise InvalidCharacterError("character has no name")
        if not character.element:
            raise InvalidCharacterError(f"character {character.name!r} has no element")

    def _asset_keys(self, character: Character) -> list:
        cfg = self.config
        keys = [
            _key(TEMPLATE),
            _key(CHARACTER_MASK),
            _key(CHARACTER_SHADE),
            _key(character.splash),
            _key(*FRIENDSHIP_ICONS),
            _key(CONSTELLATION_OVERLAY),
            _key(LOCK_ICON),
            _key(TALENT_OVERLAY),
            _key(ARTIFACT_MASK),
            _key(FLOWER_ICON),
        ]
        keys += [_key(c.icon) for c in character.constellations]
        keys += [_key(s.icon) for s in character.skills]

        weapon = character.weapon
        if weapon is not None:
            keys.append(_key(weapon.icon))
            keys.append(_key(ui_icon("ATTACK")))
            badge = cfg.rarity_badge(weapon.rarity)
            if badge:
                keys.append(_key(ui_icon(badge)))
            if len(weapon.stats) > 1:
                keys.append(_key(ui_icon(cfg.stat_icon(weapon.stats[1].prop))))

        for entry in character.stats:
            keys.append(_key(ui_icon(cfg.stat_icon(entry.prop))))

        for artifact in character.artifacts:
            keys.append(_key(artifact.icon))
            keys.append(_key(ui_icon(cfg.stat_icon(artifact.main_stat.prop))))
            badge = cfg.rarity_badge(artifact.rarity)
            if badge:
                keys.append(_key(ui_icon(badge)))
            for sub in artifact.substats:
                keys.append(_key(ui_icon(cfg.stat_icon(sub.prop))))

        return [k for k in dict.fromkeys(keys) if k]

    async def _resolve_all(self, keys: list) -> dict:
        results = await asyncio.gather(
            *(self.assets.resolve(*key) for key in keys), return_exceptions=True
        )
        images = {}
        for key, result in zip(keys, results):
            if isinstance(result, Image.Image):
                images[key] = result
            elif isinstance(result, BaseException):
                logger.debug(f"Asset resolver raised for {key}: {result!r}")
        logger.debug(f"Resolved {len(images)}/{len(keys)} card assets")
        return images

    def _compose(self, profile: Profile, character: Character, images: dict) -> Image.Image:
        def img(*refs):
            return images.get(_key(*refs))

        canvas = self._draw_background(character, img(TEMPLATE))
        self._draw_splash(canvas, img(character.splash), img(CHARACTER_MASK))
        shade = img(CHARACTER_SHADE)
        if shade is not None:
            blit(canvas, shade, 0, 0)
        self._draw_info(canvas, profile, character, img(*FRIENDSHIP_ICONS))
        self._draw_constellations(canvas, character, img)
        self._draw_talents(canvas, character, img)
        if character.weapon is not None:
            self._draw_weapon(canvas, character.weapon, img)
        self._draw_stats(canvas, character, img)
        self._draw_artifacts(canvas, character, img)
        self._draw_set_bonuses(canvas, character, img(FLOWER_ICON))
        return canvas

    def _draw_background(self, character: Character, template) -> Image.Image:
        tint = self.config.element_color(character.element)
        if template is None:
            logger.warning("Card background template unavailable, using a plain tint")
            return Image.new("RGBA", self.config.canvas_size, tuple(tint) + (255,))

        template = template.convert("RGBA")
        base = Image.new("RGB", template.size, tuple(tint))
        blended = ImageChops.overlay(base, template.convert("RGB"))
        return Image.composite(blended, base, template.getchannel("A")).convert("RGBA")

    def _draw_splash(self, canvas: Image.Image, art, mask):
        if art is None:
            return
        size = (max(1, round(art.width * SPLASH_SCALE)), max(1, round(art.height * SPLASH_SCALE)))
        layer = Image.new("RGBA", canvas.size, (0, 0, 0, 0))
        blit(layer, art.resize(size, Image.LANCZOS), *SPLASH_OFFSET)
        apply_mask(layer, mask, SPLASH_MASK_X, 0, canvas.width, canvas.height, invert=False)
        canvas.alpha_composite(layer)

    def _draw_info(self, canvas: Image.Image, profile: Profile, character: Character, friend_icon):
        font_name = self._font(FONT_SIZE_NAME)
        font_nick = self._font(FONT_SIZE_NICKNAME)
        font_level = self._font(FONT_SIZE_LEVEL)
        font_uid = self._font(FONT_SIZE_UID)

        name_w = draw_text(canvas, (38, 65), character.name, font_name, COLORS["text"])
        draw_polygon(
            canvas,
            [(38 + name_w + 15, 53), (38 + name_w + 21, 53), (38 + name_w + 18, 48)],
            COLORS["text_soft"],
        )
        nickname = profile.nickname or self.config.default_nickname
        draw_text(canvas, (38 + name_w + 35, 58), nickname, font_nick, COLORS["text_soft"])

        lv_text = f"Lv. {character.level}/"
        lv_w = draw_text(canvas, (38, 100), lv_text, font_level, COLORS["text"])
        draw_text(canvas, (38 + lv_w, 100), str(character.max_level), font_level, COLORS["text_dim"])

        if friend_icon is not None:
            draw_brightened_image(canvas, friend_icon, 34, 108, 45, 45)
        draw_text(canvas, (80, 138), str(character.friendship or 1), font_level, COLORS["text"])

        uid_y = 565
        draw_text(canvas, (38, uid_y), f"UID: {profile.uid}", font_uid, COLORS["text"])
        wl_text = f"WL{profile.world_level}"
        ar_text = f"AR{profile.level}"
        wl_w = draw_text(canvas, (38, uid_y + 25), wl_text, font_uid, COLORS["text"])
        ar_w = text_width(font_uid, ar_text)
        rounded_rect(canvas, 38 + wl_w + 8, uid_y + 7, ar_w + 10, 24, 3, fill=COLORS["ar_bg"])
        draw_text(canvas, (38 + wl_w + 13, uid_y + 25), ar_text, font_uid, COLORS["gold"])

    def _draw_constellations(self, canvas: Image.Image, character: Character, img):
        overlay = img(CONSTELLATION_OVERLAY)
        lock = img(LOCK_ICON)
        icon_size = 45
        for i, cons in enumerate(character.constellations):
            y = layout.constellation_y(i)
            if overlay is not None:
                draw_brightened_image(canvas, overlay, 25, y, 75, 75)
            icon = img(cons.icon)
            if icon is None:
                continue
            locked = not cons.unlocked
            draw_brightened_image(
                canvas, icon, 63 - icon_size / 2, y + 15, icon_size, icon_size,
                opacity=LOCKED_OPACITY if locked else 1.0,
            )
            if locked and lock is not None:
                draw_brightened_image(canvas, lock, 63 - 10, y + 24, 20, 25)

    def _draw_talents(self, canvas: Image.Image, character: Character, img):
        overlay = img(TALENT_OVERLAY)
        font = self._font(FONT_SIZE_STAT)
        for i, skill in enumerate(character.skills):
            y = layout.talent_y(i)
            if overlay is not None:
                draw_brightened_image(canvas, overlay, 430, y, 80, 80, opacity=TALENT_OVERLAY_OPACITY)
            draw_brightened_image(canvas, img(skill.icon), 445, y + 15, 50, 50)

            level_text = str(skill.level.base or 1)
            level_w = text_width(font, level_text)
            badge = COLORS["boosted"] if skill.level.boosted else COLORS["badge"]
            rounded_rect(canvas, 470 - level_w / 2 - 6, y + 62, level_w + 12, 30, 15, fill=badge)
            draw_text(canvas, (470, y + 77), level_text, font, COLORS["text"], anchor="mm")

    def _draw_weapon(self, canvas: Image.Image, weapon, img):
        cfg = self.config
        icon = img(weapon.icon)
        if icon is not None:
            icon_w = icon.width * (128 / icon.height)
            draw_brightened_image(canvas, icon, 555, 25, icon_w, 128)
            draw_icon_shade(canvas, 555, 25 + 128 - 25, icon_w, 25, cfg.rarity_color(weapon.rarity))

        badge_name = cfg.rarity_badge(weapon.rarity)
        badge = img(ui_icon(badge_name)) if badge_name else None
        if badge is not None:
            badge_w = badge.width * (25 / badge.height)
            draw_brightened_image(canvas, badge, 620 - badge_w / 2, 135, badge_w, 25)

        font = self._font(FONT_SIZE_WEAPON)
        lines = layout.wrap_text(weapon.name, font, layout.WEAPON_NAME_MAX_WIDTH)
        for i, line in enumerate(lines):
            draw_text(canvas, (layout.WEAPON_NAME_X, layout.weapon_name_line_y(i)), line, font, anchor="la")

        stat_y = layout.weapon_stat_y(len(lines))
        base_stat = weapon.stats[0] if weapon.stats else None
        rounded_rect(canvas, 690, stat_y, 108, 35, 5, fill=COLORS["panel"])
        draw_brightened_image(canvas, img(ui_icon("ATTACK")), 695, stat_y + 3, 30, 30, ICON_BRIGHTNESS)
        draw_text(canvas, (735, stat_y + 12), format_weapon_base(base_stat), font, anchor="la")

        if len(weapon.stats) > 1:
            sub = weapon.stats[1]
            rounded_rect(canvas, 810, stat_y, 125, 35, 5, fill=COLORS["panel"])
            sub_icon = img(ui_icon(cfg.stat_icon(sub.prop)))
            draw_brightened_image(canvas, sub_icon, 820, stat_y + 3, 30, 30, ICON_BRIGHTNESS)
            draw_text(canvas, (855, stat_y + 12), format_rolled(sub), font, anchor="la")

        info_y = layout.weapon_info_y(len(lines))
        rounded_rect(canvas, 690, info_y, 50, 30, 5, fill=COLORS["info_bg"])
        draw_text(canvas, (700, info_y + 10), f"R{weapon.refinement}", font, COLORS["gold"], anchor="la")

        rounded_rect(canvas, 750, info_y, 125, 30, 5, fill=COLORS["info_bg"])
        lv_w = draw_text(canvas, (760, info_y + 10), f"Lv. {weapon.level}/", font, anchor="la")
        draw_text(canvas, (760 + lv_w, info_y + 10), str(weapon.max_level), font, COLORS["text_dim"], anchor="la")

    def _draw_stats(self, canvas: Image.Image, character: Character, img):
        rows = select_display_stats(character.stats, self.config.element_prop(character.element))
        font = self._font(FONT_SIZE_STAT)
        font_small = self._font(FONT_SIZE_BONUS)

        for i, entry in enumerate(rows):
            y = layout.stat_row_y(i, len(rows))
            icon = img(ui_icon(self.config.stat_icon(entry.prop)))
            draw_brightened_image(canvas, icon, 555, y, 32, 32, ICON_BRIGHTNESS)
            draw_text(canvas, (603, y + 12), entry.name, font, anchor="la")

            split = split_base_bonus(entry, character.stats)
            if split is None:
                draw_text(canvas, (967, y + 12), entry.value_text, font, anchor="ra")
                continue
            total_text, base_text, bonus_text = split.texts
            draw_text(canvas, (967, y + 4), total_text, font, anchor="ra")
            bonus_w = draw_text(canvas, (967, y + 22), bonus_text, font_small, COLORS["green"], anchor="ra")
            draw_text(canvas, (967 - bonus_w - 5, y + 22), base_text, font_small, COLORS["text_base"], anchor="ra")

    def _draw_artifacts(self, canvas: Image.Image, character: Character, img):
        cfg = self.config
        mask = img(ARTIFACT_MASK)
        font_main = self._font(FONT_SIZE_MAIN_STAT)
        font_level = self._font(FONT_SIZE_ARTIFACT_LEVEL)
        font_sub = self._font(FONT_SIZE_STAT)

        for i, slot in enumerate(SLOT_ORDER):
            y = layout.artifact_row_y(i)
            artifact = character.artifact_in(slot)
            fill = COLORS["artifact_bg"] if artifact else COLORS["artifact_empty"]
            rounded_rect(canvas, ARTIFACT_X, y, 440, 105, 5, fill=fill)
            if artifact is None:
                continue

            icon = img(artifact.icon)
            if icon is not None:
                blit(canvas, self._artifact_thumb(icon, mask), ARTIFACT_X, y)

            draw_line(canvas, (1175, y + 10), (1175, y + 95), COLORS["divider"], 2)

            main = artifact.main_stat
            main_icon = img(ui_icon(cfg.stat_icon(main.prop)))
            draw_brightened_image(canvas, main_icon, 1125, y + 11, 32, 32, ICON_BRIGHTNESS)
            draw_text(canvas, (1150, y + 52), format_rolled(main), font_main, anchor="ra")

            level_text = f"+{artifact.display_level}"
            level_w = text_width(font_level, level_text)
            badge_x = 1150 - level_w - 6
            badge_name = cfg.rarity_badge(artifact.rarity)
            stars = img(ui_icon(badge_name)) if badge_name else None
            if stars is not None:
                star_w = stars.width * (18 / stars.height)
                draw_brightened_image(canvas, stars, badge_x - star_w - 5, y + 77, star_w, 18)
            rounded_rect(canvas, badge_x, y + 78, level_w + 8, 16, 5, fill=COLORS["level_bg"])
            draw_text(canvas, (1148, y + 82), level_text, font_level, anchor="ra")

            for idx, sub in enumerate(sort_substats(artifact.substats, cfg.substat_order)):
                sx, sy = layout.substat_position(i, idx)
                sub_icon = img(ui_icon(cfg.stat_icon(sub.prop)))
                draw_brightened_image(canvas, sub_icon, sx, sy + 5, 28, 28, ICON_BRIGHTNESS)
                draw_text(canvas, (sx + 30, sy + 17), f"+{format_rolled(sub)}", font_sub, anchor="lm")

    def _artifact_thumb(self, icon: Image.Image, mask) -> Image.Image:
        icon = icon.convert("RGBA")
        crop_w = icon.width * ARTIFACT_ICON_ZOOM
        crop_h = icon.height * ARTIFACT_ICON_ZOOM
        left = (icon.width - crop_w) / 2
        top = (icon.height - crop_h) / 2
        box = tuple(round(v) for v in (left, top, left + crop_w, top + crop_h))
        thumb = icon.crop(box).resize(ARTIFACT_ICON_SIZE, Image.LANCZOS)
        apply_mask(thumb, mask, -2, 0, *ARTIFACT_ICON_SIZE, invert=True)
        return thumb

    def _draw_set_bonuses(self, canvas: Image.Image, character: Character, flower):
        rounded_rect(canvas, 555, 547, 48, 48, 5, fill=COLORS["set_bg"])
        if flower is not None:
            draw_brightened_image(canvas, flower, 562, 555, 35, 35)

        font = self._font(FONT_SIZE_SET)
        bonuses = tally_set_bonuses(character.artifacts)
        if not bonuses:
            draw_text(canvas, (770, 572), self.config.no_bonus_text, font, COLORS["green"], anchor="ms")
            rounded_rect(canvas, 935, 560, 30, 21, 3, fill=COLORS["set_bg"])
            draw_text(canvas, (951, 576), "0", font, anchor="ms")
            return

        for bonus, y in zip(bonuses, layout.set_bonus_rows(len(bonuses))):
            draw_text(canvas, (770, y + 10), bonus.name, font, COLORS["green"], anchor="ms")
            rounded_rect(canvas, 935, y - 6, 30, 21, 3, fill=COLORS["set_bg"])
            draw_text(canvas, (951, y + 11), str(bonus.pieces), font, anchor="ms")

    def _encode(self, canvas: Image.Image) -> bytes:
        buf = io.BytesIO()
        try:
            canvas.save(buf, format="PNG")
        except (OSError, ValueError) as e:
            raise CardEncodeError(f"Failed to encode card: {e}") from e
        return buf.getvalue()


async def render(profile: Profile, character: Character, assets, config: CardConfig | None = None) -> bytes:
    """Render one character card and return it PNG-encoded."""
    return await CardRenderer(config or CardConfig(), assets).render(profile, character)

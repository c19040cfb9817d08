"""Stateless drawing primitives over a Pillow RGBA canvas.

Each call takes its full style (colour, font, anchor) as arguments and is
alpha-composited onto the canvas through its own small layer, so nothing
set up for one element can bleed into the next.
"""
import math

from PIL import Image, ImageDraw, ImageEnhance, ImageFont

WHITE = (255, 255, 255, 255)


def _ibox(box) -> tuple:
    return (
        int(math.floor(box[0])),
        int(math.floor(box[1])),
        int(math.ceil(box[2])),
        int(math.ceil(box[3])),
    )


def _alpha_of(color) -> int:
    return color[3] if len(color) > 3 else 255


def _scale_alpha(img: Image.Image, factor: float) -> Image.Image:
    img = img.copy()
    img.putalpha(img.getchannel("A").point(lambda v: int(v * factor)))
    return img


def blit(canvas: Image.Image, img: Image.Image, x, y):
    """Alpha-composite ``img`` onto ``canvas`` at ``(x, y)``, clipping at every edge."""
    x, y = int(round(x)), int(round(y))
    left, top = max(0, -x), max(0, -y)
    right = min(img.width, canvas.width - x)
    bottom = min(img.height, canvas.height - y)
    if right <= left or bottom <= top:
        return
    if img.mode != "RGBA":
        img = img.convert("RGBA")
    if (left, top, right, bottom) != (0, 0, img.width, img.height):
        img = img.crop((left, top, right, bottom))
    canvas.alpha_composite(img, (x + left, y + top))


def _paint(canvas: Image.Image, box, color, paint):
    x0, y0, x1, y1 = _ibox(box)
    w, h = x1 - x0, y1 - y0
    if w <= 0 or h <= 0:
        return
    mask = Image.new("L", (w, h), 0)
    paint(ImageDraw.Draw(mask), x0, y0)
    alpha = _alpha_of(color)
    if alpha < 255:
        mask = mask.point(lambda v: v * alpha // 255)
    layer = Image.new("RGBA", (w, h), tuple(color[:3]) + (0,))
    layer.putalpha(mask)
    blit(canvas, layer, x0, y0)


def rounded_rect(canvas: Image.Image, x, y, width, height, radius, fill=None, outline=None, line_width=1):
    if width <= 0 or height <= 0:
        return
    box = (x - line_width, y - line_width, x + width + line_width, y + height + line_width)

    def shape(draw, ox, oy, **style):
        draw.rounded_rectangle(
            (x - ox, y - oy, x + width - 1 - ox, y + height - 1 - oy), radius=radius, **style
        )

    if fill is not None:
        _paint(canvas, box, fill, lambda d, ox, oy: shape(d, ox, oy, fill=255))
    if outline is not None:
        _paint(canvas, box, outline, lambda d, ox, oy: shape(d, ox, oy, outline=255, width=line_width))


def draw_polygon(canvas: Image.Image, points, fill):
    xs = [p[0] for p in points]
    ys = [p[1] for p in points]
    box = (min(xs) - 1, min(ys) - 1, max(xs) + 2, max(ys) + 2)
    _paint(
        canvas, box, fill,
        lambda d, ox, oy: d.polygon([(px - ox, py - oy) for px, py in points], fill=255),
    )


def draw_line(canvas: Image.Image, start, end, fill, width=1):
    box = (
        min(start[0], end[0]) - width, min(start[1], end[1]) - width,
        max(start[0], end[0]) + width + 1, max(start[1], end[1]) + width + 1,
    )
    _paint(
        canvas, box, fill,
        lambda d, ox, oy: d.line(
            (start[0] - ox, start[1] - oy, end[0] - ox, end[1] - oy), fill=255, width=width
        ),
    )


def text_width(font: ImageFont.FreeTypeFont, text: str) -> float:
    return font.getlength(text)


def draw_text(canvas: Image.Image, xy, text: str, font: ImageFont.FreeTypeFont, fill=WHITE, anchor="ls") -> float:
    """Draw ``text`` anchored at ``xy`` and return its advance width."""
    if not text:
        return 0.0
    x, y = xy
    left, top, right, bottom = font.getbbox(text, anchor=anchor)
    box = (x + left - 1, y + top - 1, x + right + 1, y + bottom + 1)
    _paint(
        canvas, box, fill,
        lambda d, ox, oy: d.text((x - ox, y - oy), text, font=font, fill=255, anchor=anchor),
    )
    return font.getlength(text)


def draw_brightened_image(canvas: Image.Image, img, x, y, width, height, brightness=1.0, opacity=1.0):
    if img is None or img.width < 2:
        return
    size = (max(1, int(round(width))), max(1, int(round(height))))
    img = img.convert("RGBA").resize(size, Image.LANCZOS)
    if brightness != 1:
        img = ImageEnhance.Brightness(img).enhance(brightness)
    if opacity < 1:
        img = _scale_alpha(img, opacity)
    blit(canvas, img, x, y)


def draw_icon_shade(canvas: Image.Image, x, y, width, height, color=(0, 0, 0)):
    """Vertical gradient overlay, 90% opaque at the bottom fading out at the top."""
    w, h = int(round(width)), int(round(height))
    if w <= 0 or h <= 0:
        return
    column = []
    for row in range(h):
        t = (h - row - 0.5) / h
        if t <= 0.6:
            a = 0.9 + (0.3 - 0.9) * (t / 0.6)
        else:
            a = 0.3 * (1 - (t - 0.6) / 0.4)
        column.append(max(0, min(255, int(round(a * 255)))))
    alpha = Image.new("L", (1, h))
    alpha.putdata(column)
    layer = Image.new("RGBA", (w, h), tuple(color[:3]) + (0,))
    layer.putalpha(alpha.resize((w, h), Image.NEAREST))
    blit(canvas, layer, x, y)


def is_percent_prop(prop: str) -> bool:
    return (
        "PERCENT" in prop
        or "HURT" in prop
        or "EFFICIENCY" in prop
        or prop == "FIGHT_PROP_CRITICAL"
    )


def _is_integral(value) -> bool:
    return float(round(value, 6)).is_integer()


def format_stat_value(value, prop: str) -> str:
    percent = is_percent_prop(prop)
    if _is_integral(value):
        text = str(int(round(value)))
    else:
        text = f"{value:.1f}"
    return f"{text}%" if percent else text


def format_int(value) -> str:
    """Round half up and group thousands, e.g. ``15023.6`` -> ``15,024``."""
    return f"{int(math.floor(value + 0.5)):,}"

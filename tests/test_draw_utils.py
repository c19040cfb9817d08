import pytest
from PIL import Image, ImageFont

from enka_card.draw_utils import (
    blit,
    draw_brightened_image,
    draw_icon_shade,
    draw_line,
    draw_text,
    rounded_rect,
)


def _blank(size=(40, 40), color=(0, 0, 0, 0)):
    return Image.new("RGBA", size, color)


def test_blit_clips_negative_offsets():
    canvas = _blank((4, 4))
    blit(canvas, Image.new("RGBA", (2, 2), (255, 0, 0, 255)), -1, -1)
    assert canvas.getpixel((0, 0)) == (255, 0, 0, 255)
    assert canvas.getpixel((1, 1)) == (0, 0, 0, 0)


def test_blit_outside_canvas_is_noop():
    canvas = _blank((4, 4))
    blit(canvas, Image.new("RGBA", (2, 2), (255, 0, 0, 255)), 10, 10)
    blit(canvas, Image.new("RGBA", (2, 2), (255, 0, 0, 255)), -5, 0)
    assert canvas.getchannel("A").getextrema() == (0, 0)


def test_translucent_fill_blends_with_canvas():
    canvas = _blank(color=(255, 255, 255, 255))
    rounded_rect(canvas, 5, 5, 20, 20, 0, fill=(0, 0, 0, 128))
    r, g, b, a = canvas.getpixel((15, 15))
    assert a == 255
    assert abs(r - 127) <= 1
    assert canvas.getpixel((30, 30)) == (255, 255, 255, 255)


def test_overlapping_translucent_fills_compound():
    canvas = _blank(color=(255, 255, 255, 255))
    rounded_rect(canvas, 0, 0, 20, 20, 0, fill=(0, 0, 0, 128))
    rounded_rect(canvas, 10, 10, 20, 20, 0, fill=(0, 0, 0, 128))
    single = canvas.getpixel((5, 5))[0]
    double = canvas.getpixel((15, 15))[0]
    assert abs(double - 63) <= 2
    assert double < single


def test_outline_leaves_interior_untouched():
    canvas = _blank(color=(255, 255, 255, 255))
    rounded_rect(canvas, 5, 5, 30, 30, 0, outline=(0, 0, 0, 255), line_width=1)
    assert canvas.getpixel((5, 5))[:3] == (0, 0, 0)
    assert canvas.getpixel((20, 20)) == (255, 255, 255, 255)


def test_line_is_drawn_in_its_own_color():
    canvas = _blank()
    draw_line(canvas, (20, 2), (20, 30), (10, 20, 30, 255), 3)
    assert canvas.getpixel((20, 15)) == (10, 20, 30, 255)
    assert canvas.getpixel((5, 15)) == (0, 0, 0, 0)


def test_text_returns_advance_and_paints():
    font = ImageFont.load_default(20)
    canvas = _blank((200, 40))
    width = draw_text(canvas, (5, 30), "Hu Tao", font)
    assert width == pytest.approx(font.getlength("Hu Tao"))
    assert canvas.getchannel("A").getextrema()[1] > 0


def test_empty_text_draws_nothing():
    canvas = _blank((50, 30))
    assert draw_text(canvas, (5, 20), "", ImageFont.load_default(20)) == 0
    assert canvas.getchannel("A").getextrema() == (0, 0)


def test_text_style_does_not_leak_between_calls():
    font = ImageFont.load_default(20)
    canvas = _blank((200, 80))
    draw_text(canvas, (100, 30), "A", font, (255, 0, 0, 255), anchor="rs")
    draw_text(canvas, (5, 70), "B", font)
    bottom = canvas.crop((0, 40, 200, 80)).tobytes()
    pixels = (bottom[i:i + 4] for i in range(0, len(bottom), 4))
    colors = {tuple(px[:3]) for px in pixels if px[3] == 255}
    assert colors == {(255, 255, 255)}


def test_brightened_image_scales_color_and_opacity():
    canvas = _blank((10, 10))
    img = Image.new("RGBA", (8, 8), (100, 100, 100, 255))
    draw_brightened_image(canvas, img, 0, 0, 4, 4, brightness=2)
    assert canvas.getpixel((1, 1)) == (200, 200, 200, 255)

    faded = _blank((10, 10))
    draw_brightened_image(faded, img, 0, 0, 4, 4, opacity=0.5)
    assert faded.getpixel((1, 1))[:3] == (100, 100, 100)
    assert abs(faded.getpixel((1, 1))[3] - 127) <= 1


@pytest.mark.parametrize("img", [None, Image.new("RGBA", (1, 1), (255, 0, 0, 255))])
def test_missing_or_tiny_image_is_skipped(img):
    canvas = _blank((10, 10))
    draw_brightened_image(canvas, img, 0, 0, 10, 10)
    assert canvas.getchannel("A").getextrema() == (0, 0)


def test_icon_shade_fades_from_bottom_to_top():
    canvas = _blank((4, 100))
    draw_icon_shade(canvas, 0, 0, 4, 100, (0, 0, 0))
    alpha = [canvas.getpixel((1, y))[3] for y in range(100)]
    assert 225 <= alpha[99] <= 230
    assert alpha[0] <= 3
    assert 70 <= alpha[40] <= 85
    assert alpha == sorted(alpha)

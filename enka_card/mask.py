from PIL import Image, ImageChops, ImageOps


def luma_alpha(mask_image: Image.Image, width: int, height: int, invert: bool = False) -> Image.Image:
    """Scale ``mask_image`` to ``(width, height)`` and turn its luma into an alpha band.

    Luma is ``0.299 R + 0.587 G + 0.114 B`` (Pillow's ``L`` conversion). The
    alpha is the luma itself when ``invert`` is set, otherwise ``255 - luma``.
    """
    scaled = mask_image.convert("RGB").resize((width, height), Image.LANCZOS)
    luma = scaled.convert("L")
    return luma if invert else ImageOps.invert(luma)


def apply_mask(target: Image.Image, mask_image, x, y, width, height, invert: bool = False):
    """Keep ``target`` only where the luma mask placed at ``(x, y)`` is opaque.

    Mutates ``target`` (RGBA) in place. Pixels outside the mask rectangle are
    cleared, pixels inside have their alpha multiplied by the mask alpha. A
    target without an alpha band is treated as fully opaque. A mask that
    failed to load leaves the target untouched.
    """
    if mask_image is None or mask_image.width < 2:
        return
    width, height = int(round(width)), int(round(height))
    if width <= 0 or height <= 0:
        return

    alpha = luma_alpha(mask_image, width, height, invert)
    coverage = Image.new("L", target.size, 0)
    coverage.paste(alpha, (int(round(x)), int(round(y))))
    if "A" in target.getbands():
        current = target.getchannel("A")
    else:
        current = Image.new("L", target.size, 255)
    target.putalpha(ImageChops.multiply(current, coverage))

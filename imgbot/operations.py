"""Image operations for imgbot.

Each operation takes a PIL Image and returns a new PIL Image. Images are
expected in RGB or RGBA mode; every operation returns the same mode it was
given unless changing the alpha channel is its purpose, or a translucent
background forces one.
"""

from __future__ import annotations

from typing import Callable

import numpy as np
from PIL import Image, ImageFilter, ImageOps

Color = tuple[int, int, int, int]

DEFAULT_BACKGROUND: Color = (0, 0, 0, 255)


def _split_alpha(image: Image.Image) -> tuple[Image.Image, Image.Image | None]:
    """Separate color channels from alpha.

    Returns:
        (rgb, alpha) where alpha is None for images without transparency.
    """
    if image.mode == "RGBA":
        return image.convert("RGB"), image.getchannel("A")
    return image.convert("RGB"), None


def _merge_alpha(rgb: Image.Image, alpha: Image.Image | None) -> Image.Image:
    if alpha is None:
        return rgb
    result = rgb.convert("RGBA")
    result.putalpha(alpha)
    return result


def _with_background_alpha(image: Image.Image, color: Color | None) -> Image.Image:
    """Add an alpha channel when the background is not fully opaque."""
    if color is not None and color[3] < 255 and image.mode != "RGBA":
        return image.convert("RGBA")
    return image


def _fill_color(image: Image.Image, color: Color | None) -> tuple[int, ...]:
    """Background color matching the image mode."""
    fill = color or DEFAULT_BACKGROUND
    if image.mode == "RGB":
        return tuple(fill[:3])
    return tuple(fill)


def luminance(image: Image.Image) -> np.ndarray:
    """Per-pixel luminance as a 2D float32 array with values 0-255."""
    rgb = np.asarray(image.convert("RGB"), dtype=np.float32)
    return 0.299 * rgb[:, :, 0] + 0.587 * rgb[:, :, 1] + 0.114 * rgb[:, :, 2]


# =============================================================================
# Alpha channel
# =============================================================================


def op_remove_alpha(image: Image.Image) -> Image.Image:
    if image.mode == "RGBA":
        return image.convert("RGB")
    return image


def op_ensure_alpha(image: Image.Image) -> Image.Image:
    if image.mode != "RGBA":
        return image.convert("RGBA")
    return image


# =============================================================================
# Geometric operations
# =============================================================================


def crop_region(
    size: tuple[int, int], top: int, right: int, bottom: int, left: int
) -> tuple[int, int, int, int]:
    """Compute the region left after cutting insets off each edge.

    Args:
        size: Current (width, height)
        top, right, bottom, left: Pixels to remove from each edge

    Returns:
        (x, y, width, height) of the remaining region

    Raises:
        ValueError: If the insets leave nothing of the image
    """
    w, h = size
    width = w - left - right
    height = h - top - bottom
    if width <= 0 or height <= 0:
        raise ValueError(
            f"Crop of {top} {right} {bottom} {left} leaves nothing of a {w}x{h} image"
        )
    return (left, top, width, height)


def op_crop(
    image: Image.Image, top: int, right: int, bottom: int, left: int
) -> Image.Image:
    """Crop image by insets.

    Args:
        image: Input image
        top, right, bottom, left: Pixels to remove from each edge

    Returns:
        Cropped image
    """
    x, y, width, height = crop_region(image.size, top, right, bottom, left)
    return image.crop((x, y, x + width, y + height))


def op_flip(image: Image.Image, axis: str) -> Image.Image:
    """Mirror image.

    Args:
        image: Input image
        axis: "x" mirrors left/right, "y" mirrors top/bottom

    Returns:
        Flipped image
    """
    if axis == "x":
        return image.transpose(Image.Transpose.FLIP_LEFT_RIGHT)
    elif axis == "y":
        return image.transpose(Image.Transpose.FLIP_TOP_BOTTOM)
    else:
        raise ValueError(f"axis must be 'x' or 'y', got {axis!r}")


def op_resize(
    image: Image.Image, width: int | None = None, height: int | None = None
) -> Image.Image:
    """Resize to exact dimensions, ignoring aspect ratio.

    When only one dimension is given the other follows the aspect ratio.

    Args:
        image: Input image
        width: Target width in pixels
        height: Target height in pixels

    Returns:
        Resized image
    """
    w, h = image.size
    if width is None and height is None:
        return image
    if width is None:
        width = round(w * height / h)
    elif height is None:
        height = round(h * width / w)
    if width <= 0 or height <= 0:
        raise ValueError(f"Cannot resize to {width}x{height}")
    return image.resize((width, height), Image.Resampling.LANCZOS)


def op_rotate(
    image: Image.Image, degrees: float, background: Color | None = None
) -> Image.Image:
    """Rotate image clockwise.

    Args:
        image: Input image
        degrees: Rotation angle (clockwise)
        background: Fill for the uncovered corners

    Returns:
        Rotated image, canvas grown to fit
    """
    image = _with_background_alpha(image, background)
    # PIL rotates counter-clockwise
    return image.rotate(
        -degrees,
        expand=True,
        resample=Image.Resampling.BICUBIC,
        fillcolor=_fill_color(image, background),
    )


def op_extend(
    image: Image.Image,
    top: int,
    right: int,
    bottom: int,
    left: int,
    background: Color | None = None,
) -> Image.Image:
    """Add padding around image.

    Args:
        image: Input image
        top, right, bottom, left: Padding for each edge (CSS order)
        background: Padding color

    Returns:
        Padded image
    """
    image = _with_background_alpha(image, background)
    w, h = image.size
    new_w = w + left + right
    new_h = h + top + bottom

    result = Image.new(image.mode, (new_w, new_h), _fill_color(image, background))
    result.paste(image, (left, top))

    return result


# =============================================================================
# Filters
# =============================================================================


def op_sharpen(image: Image.Image) -> Image.Image:
    return image.filter(ImageFilter.SHARPEN)


def op_blur(image: Image.Image) -> Image.Image:
    # 3x3 box blur
    return image.filter(ImageFilter.BoxBlur(1))


def op_threshold(image: Image.Image, value: float) -> Image.Image:
    """Turn pixels white where luminance >= value, black elsewhere.

    Args:
        image: Input image
        value: Cut-off luminance, 0-255

    Returns:
        Black and white image, alpha kept
    """
    if not 0 <= value <= 255:
        raise ValueError(f"threshold must be between 0 and 255, got {value}")
    _, alpha = _split_alpha(image)
    mask = luminance(image) >= value
    bw = Image.fromarray(np.where(mask, 255, 0).astype(np.uint8))
    return _merge_alpha(bw.convert("RGB"), alpha)


def op_negate(image: Image.Image) -> Image.Image:
    """Invert color channels. Alpha is left untouched."""
    rgb, alpha = _split_alpha(image)
    return _merge_alpha(ImageOps.invert(rgb), alpha)


def op_greyscale(image: Image.Image) -> Image.Image:
    rgb, alpha = _split_alpha(image)
    return _merge_alpha(ImageOps.grayscale(rgb).convert("RGB"), alpha)


def op_tint(image: Image.Image, color: Color) -> Image.Image:
    """Recolor image through a tint.

    Luminance is mapped black -> tint -> white, so shadows and highlights
    stay put while midtones take the tint color.

    Args:
        image: Input image
        color: Tint as RGBA (alpha ignored)

    Returns:
        Tinted image, alpha kept
    """
    rgb, alpha = _split_alpha(image)
    tinted = ImageOps.colorize(
        ImageOps.grayscale(rgb), black="black", white="white", mid=tuple(color[:3])
    )
    return _merge_alpha(tinted, alpha)


# =============================================================================
# Operations Registry
# =============================================================================


OPERATIONS: dict[str, Callable[..., Image.Image]] = {
    # Alpha
    "remove_alpha": op_remove_alpha,
    "ensure_alpha": op_ensure_alpha,
    # Geometric
    "crop": op_crop,
    "flip": op_flip,
    "resize": op_resize,
    "rotate": op_rotate,
    "extend": op_extend,
    # Filters
    "sharpen": op_sharpen,
    "threshold": op_threshold,
    "negate": op_negate,
    "blur": op_blur,
    "tint": op_tint,
    "greyscale": op_greyscale,
}


def apply_operation(
    image: Image.Image, op_name: str, *args, **kwargs
) -> Image.Image:
    """Apply a named operation.

    Args:
        image: Input PIL Image
        op_name: Operation name (e.g., "crop", "flip")
        *args: Positional arguments for the operation
        **kwargs: Keyword arguments for the operation

    Returns:
        Processed PIL Image

    Raises:
        ValueError: If operation name is unknown
    """
    if op_name not in OPERATIONS:
        raise ValueError(f"Unknown operation: {op_name}")

    op_func = OPERATIONS[op_name]
    return op_func(image, *args, **kwargs)

"""Transform pipeline for imgbot.

Options are turned into an ordered list of operations, which is then run
over the decoded image and the result encoded in the requested format.
Operation order is fixed; the same options always produce the same list.
"""

from __future__ import annotations

import io
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from PIL import Image

from imgbot.operations import apply_operation

if TYPE_CHECKING:
    from imgbot.options import Options

# format option -> (Pillow format, file extension)
ENCODERS: dict[str, tuple[str, str]] = {
    "png": ("PNG", "png"),
    "jpg": ("JPEG", "jpg"),
    "jpeg": ("JPEG", "jpg"),
    "webp": ("WEBP", "webp"),
    "gif": ("GIF", "gif"),
}

# Encoders that accept a quality setting
QUALITY_FORMATS = {"JPEG", "WEBP"}


class PipelineError(Exception):
    """Raised when an image cannot be decoded, transformed or encoded."""


@dataclass
class PipelineState:
    """Ordered operations to run over one image.

    Attributes:
        ops: List of operations to apply, each as (name, args, kwargs)
    """

    ops: list[tuple[str, tuple, dict]] = field(default_factory=list)

    def add_op(self, name: str, *args, **kwargs) -> None:
        """Append operation to the list.

        Args:
            name: Operation name (e.g., "crop", "rotate")
            *args: Positional arguments for the operation
            **kwargs: Keyword arguments for the operation
        """
        self.ops.append((name, args, kwargs))

    def names(self) -> list[str]:
        return [name for name, _, _ in self.ops]

    def materialize(self, image: Image.Image) -> Image.Image:
        """Run every operation in order, each on the previous result."""
        for op_name, args, kwargs in self.ops:
            image = apply_operation(image, op_name, *args, **kwargs)
        return image


def build_pipeline(options: Options) -> PipelineState:
    """Record the operations requested by options, in application order.

    Order: alpha, crop, flip, sharpen, threshold, negate, blur,
    tint or greyscale, resize, rotate, extend.

    Args:
        options: Validated command options.

    Returns:
        PipelineState with the operations to run.
    """
    state = PipelineState()

    if options.remove_alpha:
        state.add_op("remove_alpha")
    elif options.ensure_alpha:
        state.add_op("ensure_alpha")

    if options.crop:
        state.add_op("crop", *options.crop)

    if options.flip:
        state.add_op("flip", options.flip)

    if options.sharpen:
        state.add_op("sharpen")

    if options.threshold is not None:
        state.add_op("threshold", options.threshold)

    if options.negative:
        state.add_op("negate")

    if options.blur:
        state.add_op("blur")

    # Tint and greyscale are exclusive; tint wins
    if options.tint:
        state.add_op("tint", options.tint)
    elif options.greyscale:
        state.add_op("greyscale")

    if options.width is not None or options.height is not None:
        state.add_op("resize", options.width, options.height)

    if options.rotation is not None:
        state.add_op("rotate", options.rotation, background=options.background)

    if options.extend:
        state.add_op("extend", *options.extend, background=options.background)

    return state


def load_image(data: bytes) -> Image.Image:
    """Decode image bytes.

    Args:
        data: Encoded image (any format Pillow reads).

    Returns:
        PIL Image in RGBA mode if the source has transparency, RGB otherwise.
    """
    image = Image.open(io.BytesIO(data))
    image.load()

    has_alpha = "A" in image.getbands() or "transparency" in image.info
    mode = "RGBA" if has_alpha else "RGB"
    if image.mode != mode:
        image = image.convert(mode)

    return image


def output_filename(fmt: str) -> str:
    """File name used for the reply attachment, e.g. img.jpg."""
    return f"img.{ENCODERS[fmt][1]}"


def encode_image(
    image: Image.Image, fmt: str = "png", quality: int | None = None
) -> bytes:
    """Encode image.

    Args:
        image: Image to encode
        fmt: Format option value (png, jpg, jpeg, webp, gif)
        quality: Encoder quality 0-100; only used by jpeg and webp

    Returns:
        Encoded bytes
    """
    if fmt not in ENCODERS:
        raise ValueError(f"Unsupported format: {fmt}")
    pil_format, _ = ENCODERS[fmt]

    params = {}
    if quality is not None and pil_format in QUALITY_FORMATS:
        params["quality"] = quality

    # JPEG has no alpha channel
    if pil_format == "JPEG" and image.mode != "RGB":
        image = image.convert("RGB")

    buffer = io.BytesIO()
    image.save(buffer, format=pil_format, **params)
    return buffer.getvalue()


def process_image(data: bytes, options: Options) -> tuple[str, bytes]:
    """Decode, transform and encode an image.

    Args:
        data: Source image bytes.
        options: Validated command options.

    Returns:
        (filename, encoded bytes)

    Raises:
        PipelineError: If any stage fails. No partial output is produced.
    """
    try:
        image = load_image(data)
        image = build_pipeline(options).materialize(image)
        output = encode_image(image, options.format, options.quality)
    except Exception as e:
        raise PipelineError(str(e) or type(e).__name__) from e
    return output_filename(options.format), output

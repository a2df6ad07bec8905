"""Option parser for imgbot commands.

A command is the text following the trigger word, tokenized shell-style:

    imgbot --flip x --crop '10 20' -F webp -Q 80 https://example.com/cat.png

The accepted options are declared once in OPTIONS; parsing, validation,
usage text and the effective-options echo are all driven from that table.
"""

from __future__ import annotations

import shlex
from dataclasses import dataclass, fields
from typing import Any, Callable

from imgbot import validators
from imgbot.validators import Box, OptionValueError

HELP_KEYWORDS = ("help", "--help", "?")


@dataclass(frozen=True)
class OptionSpec:
    """Declaration of a single option.

    Attributes:
        long: Long flag names without the leading "--" (first is canonical)
        short: Single-letter short flag without the leading "-"
        type: Validator for the raw value, or None for a boolean flag
        default: Value used when the option is absent
        metavar: Placeholder shown in usage text
        help: One-line description shown in usage text
        required: Report as missing when absent
        positional: Filled from the first bare token instead of a flag
    """

    long: tuple[str, ...] = ()
    short: str | None = None
    type: Callable[[str], Any] | None = None
    default: Any = None
    metavar: str | None = None
    help: str = ""
    required: bool = False
    positional: bool = False

    @property
    def is_flag(self) -> bool:
        return self.type is None and not self.positional

    @property
    def flags(self) -> list[str]:
        names = [f"-{self.short}"] if self.short else []
        return names + [f"--{name}" for name in self.long]


OPTIONS: dict[str, OptionSpec] = {
    "input": OptionSpec(
        type=str, metavar="url", positional=True,
        help="Image URL (defaults to the attached image)",
    ),
    "format": OptionSpec(
        long=("format",), short="F", type=validators.image_format, default="png",
        metavar="format", help="Output format: png, jpg, jpeg, webp, gif",
    ),
    "quality": OptionSpec(
        long=("quality",), short="Q", type=validators.percentage,
        metavar="percentage", help="Output quality (jpeg and webp only)",
    ),
    "remove_alpha": OptionSpec(long=("remove-alpha",), help="Drop the alpha channel"),
    "ensure_alpha": OptionSpec(long=("ensure-alpha",), help="Add an alpha channel"),
    "crop": OptionSpec(
        long=("crop",), short="c", type=validators.box,
        metavar="pixels", help="Cut pixels off each edge",
    ),
    "flip": OptionSpec(
        long=("flip",), short="f", type=validators.axis,
        metavar="axis", help="Mirror along x or y",
    ),
    "sharpen": OptionSpec(long=("sharpen",), help="Sharpen"),
    "threshold": OptionSpec(
        long=("threshold",), type=validators.number,
        metavar="luminosity", help="Black and white cut-off (0-255)",
    ),
    "negative": OptionSpec(long=("negative", "negate"), help="Invert colors"),
    "blur": OptionSpec(long=("blur",), help="Blur"),
    "tint": OptionSpec(
        long=("tint",), short="t", type=validators.color,
        metavar="colour", help="Tint with a color (overrides greyscale)",
    ),
    "greyscale": OptionSpec(long=("greyscale", "grayscale"), short="g", help="Greyscale"),
    "width": OptionSpec(
        long=("width",), short="w", type=validators.integer,
        metavar="pixels", help="Resize to width",
    ),
    "height": OptionSpec(
        long=("height",), short="h", type=validators.integer,
        metavar="pixels", help="Resize to height",
    ),
    "rotation": OptionSpec(
        long=("rotation", "rotate"), short="r", type=validators.number,
        metavar="degrees", help="Rotate clockwise",
    ),
    "extend": OptionSpec(
        long=("extend", "pad", "padding", "margin"), short="e", type=validators.box,
        metavar="pixels", help="Add pixels to each edge",
    ),
    "background": OptionSpec(
        long=("background",), short="b", type=validators.color,
        metavar="colour", help="Fill color for rotate and extend",
    ),
}


@dataclass(frozen=True)
class Options:
    """Validated options for one command."""

    input: str | None = None
    format: str = "png"
    quality: int | None = None
    remove_alpha: bool = False
    ensure_alpha: bool = False
    crop: Box | None = None
    flip: str | None = None
    sharpen: bool = False
    threshold: float | None = None
    negative: bool = False
    blur: bool = False
    tint: tuple[int, int, int, int] | None = None
    greyscale: bool = False
    width: int | None = None
    height: int | None = None
    rotation: float | None = None
    extend: Box | None = None
    background: tuple[int, int, int, int] | None = None

    def effective(self) -> dict[str, Any]:
        """Options that are set, skipping unset values and false flags."""
        result = {}
        for f in fields(self):
            value = getattr(self, f.name)
            if value is None or value is False:
                continue
            result[f.name] = value
        return result


class CommandError(ValueError):
    """Raised when a command has invalid, missing or unexpected arguments.

    All problems found in the command are collected before raising.
    """

    def __init__(
        self,
        invalid: dict[str, str] | None = None,
        missing: list[str] | None = None,
        unexpected: list[str] | None = None,
    ):
        self.invalid = dict(invalid or {})
        self.missing = list(missing or [])
        self.unexpected = list(unexpected or [])
        super().__init__("\n".join(self.lines()))

    def lines(self) -> list[str]:
        return (
            [f"Invalid {name}: {reason}" for name, reason in self.invalid.items()]
            + [f"Missing argument {arg}." for arg in self.missing]
            + [f"Unexpected argument '{arg}'." for arg in self.unexpected]
        )


def tokenize(text: str) -> list[str]:
    """Split command text like a shell would.

    Examples:
        >>> tokenize("--crop '3 4' -f x")
        ['--crop', '3 4', '-f', 'x']
    """
    try:
        return shlex.split(text)
    except ValueError:
        # Unbalanced quotes
        return text.split()


def is_help(tokens: list[str]) -> bool:
    return bool(tokens) and tokens[0] in HELP_KEYWORDS


def _looks_like_flag(token: str) -> bool:
    return token.startswith("-") and len(token) > 1


def _parse_bool(s: str) -> bool:
    if s.lower() == "true":
        return True
    if s.lower() == "false":
        return False
    raise OptionValueError(f"'{s}' is not a boolean.")


def _flag_lookup() -> dict[str, str]:
    lookup = {}
    for name, spec in OPTIONS.items():
        for flag in spec.flags:
            lookup[flag] = name
    return lookup


def parse_args(tokens: list[str]) -> Options:
    """Parse command tokens into Options.

    Args:
        tokens: Tokens following the trigger word.

    Returns:
        Validated, immutable Options.

    Raises:
        CommandError: If any argument is invalid, missing or unexpected.

    Examples:
        >>> parse_args(["--flip", "X", "-g"]).flip
        'x'
    """
    lookup = _flag_lookup()
    positionals = [name for name, spec in OPTIONS.items() if spec.positional]
    values: dict[str, Any] = {}
    invalid: dict[str, str] = {}
    missing: list[str] = []
    unexpected: list[str] = []
    options_done = False

    i = 0
    while i < len(tokens):
        token = tokens[i]
        i += 1

        if not options_done and token == "--":
            options_done = True
            continue

        if options_done or not _looks_like_flag(token):
            if positionals:
                name = positionals.pop(0)
                values[name] = OPTIONS[name].type(token)
            else:
                unexpected.append(token)
            continue

        flag, has_inline, inline = token.partition("=")
        name = lookup.get(flag)
        if name is None:
            unexpected.append(token)
            continue
        spec = OPTIONS[name]
        display = spec.long[0] if spec.long else name

        if spec.is_flag:
            raw = inline if has_inline else "true"
            convert = _parse_bool
        elif has_inline:
            raw = inline
            convert = spec.type
        elif i < len(tokens) and not _looks_like_flag(tokens[i]):
            raw = tokens[i]
            i += 1
            convert = spec.type
        else:
            missing.append(flag)
            continue

        # Last occurrence wins
        try:
            values[name] = convert(raw)
            invalid.pop(display, None)
        except OptionValueError as e:
            invalid[display] = str(e)

    for name, spec in OPTIONS.items():
        if spec.required and name not in values:
            missing.append(spec.flags[0] if spec.flags else name)

    if invalid or missing or unexpected:
        raise CommandError(invalid, missing, unexpected)

    defaults = {
        name: False if spec.is_flag else spec.default
        for name, spec in OPTIONS.items()
    }
    return Options(**{**defaults, **values})


def parse_command(text: str) -> Options:
    """Tokenize and parse command text."""
    return parse_args(tokenize(text))


def usage(prog: str = "imgbot") -> str:
    """Render usage text from the option table.

    Returns:
        Multi-line string: a synopsis line followed by one line per option.
    """
    params = []
    rows = []
    for spec in OPTIONS.values():
        if spec.positional:
            param = f"<{spec.metavar}>"
            params.append(param if spec.required else f"[{param}]")
            rows.append((param, spec.help))
            continue
        names = ", ".join(spec.flags)
        if spec.metavar:
            names += f" <{spec.metavar}>"
        help_text = spec.help
        if spec.default is not None:
            help_text += f" (default: {spec.default})"
        rows.append((names, help_text))
    params.append("[options]")

    width = max(len(names) for names, _ in rows)
    lines = [f"{prog} {' '.join(params)}"]
    for names, help_text in rows:
        lines.append(f"  {names.ljust(width)}  {help_text}")
    return "\n".join(lines)

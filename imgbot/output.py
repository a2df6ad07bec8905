"""Reply text for imgbot.

Everything the bot says back to a channel is built here, so the chat
adapter and the local CLI render identical messages.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from imgbot.options import usage

if TYPE_CHECKING:
    from imgbot.options import CommandError, Options

NEEDS_ONE_IMAGE = "Exactly one image must be attached."
GENERIC_FAILURE = "Invalid image or options."

HELP_NOTES = (
    "Use --option 'has spaces' for spaces\n"
    "Use --option=-2 for negative numbers"
)


def _code_block(text: str, lang: str = "") -> str:
    return f"```{lang}\n{text}\n```"


def format_help(prog: str = "imgbot") -> str:
    """Usage text followed by quoting hints."""
    return _code_block(usage(prog)) + "\n" + _code_block(HELP_NOTES)


def format_error(error: CommandError) -> str:
    """One line per problem: invalid values, then missing, then unexpected."""
    return _code_block("\n".join(error.lines()))


def format_value(value: object) -> str:
    if isinstance(value, tuple) and hasattr(value, "_fields"):
        # Box
        return " ".join(str(v) for v in value)
    if isinstance(value, tuple):
        return "rgba(" + ", ".join(str(v) for v in value) + ")"
    if value is True:
        return "true"
    return str(value)


def format_options(options: Options) -> str:
    """Echo of the options that took effect, one name=value per line."""
    lines = [f"{name}={format_value(value)}" for name, value in options.effective().items()]
    return _code_block("\n".join(lines), "ini")

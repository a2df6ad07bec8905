"""imgbot - Discord bot that applies image transforms from a one-line command.

    imgbot --crop '10 20' --flip x --tint orange -F jpg -Q 80

Replies with the transformed image as img.<ext>.
"""

from imgbot.cli import main

__version__ = "0.5.0"
__all__ = ["main"]

"""
PersistQL CLI - output helpers.

Styled output primitives built on Click:

    success(), error(), warning(), info(), dim(), bold()
    section()   - section divider with title
    kv()        - key-value pair, aligned

All output degrades gracefully on non-colour terminals (click.style handles
NO_COLOR / TERM=dumb).
"""

from __future__ import annotations

import shutil
from typing import Optional

import click

_L_H = "\u2500"   # ─
_CHECK = "\u2713"  # ✓
_CROSS = "\u2717"  # ✗


def _tw() -> int:
    """Terminal width, clamped to a sane range."""
    return max(40, min(shutil.get_terminal_size((80, 24)).columns, 120))


def success(message: str) -> None:
    """Print success message in green."""
    click.echo(click.style(message, fg="green"))


def error(message: str) -> None:
    """Print error message in red, on stderr."""
    click.echo(click.style(message, fg="red"), err=True)


def warning(message: str) -> None:
    """Print warning message in yellow."""
    click.echo(click.style(message, fg="yellow"))


def info(message: str) -> None:
    """Print info message in cyan."""
    click.echo(click.style(message, fg="cyan"))


def dim(message: str) -> None:
    click.echo(click.style(message, dim=True))


def bold(message: str) -> str:
    """Return bold-styled text (does not echo)."""
    return click.style(message, bold=True)


def section(title: str, *, width: Optional[int] = None, fg: str = "cyan") -> None:
    """
    Print a section header with a ruled line.

        ── Added ─────────────────────────────────
    """
    w = width or _tw()
    dashes = max(4, w - len(title) - 6)
    click.echo(click.style(f"{_L_H}{_L_H} {title} {_L_H * dashes}", fg=fg, bold=True))


def kv(key: str, value: str, *, key_width: int = 14, indent: int = 2) -> None:
    """
    Print an aligned key-value pair.

        Operations:   12
    """
    padding = " " * max(1, key_width - len(key) - 1)
    click.echo(f"{' ' * indent}{click.style(f'{key}:', fg='white')}{padding}{click.style(str(value), fg='cyan')}")

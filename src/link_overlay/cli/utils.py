"""CLI utility functions."""

from __future__ import annotations

import sys
from typing import NoReturn

import click


def fail(message: str) -> NoReturn:
    """Print an error and exit with status 1."""
    click.echo(f"Error: {message}", err=True)
    sys.exit(1)


def parse_explanation_id(value: str) -> int:
    """Parse a positive article ID from a command argument."""
    try:
        explanation_id = int(value)
    except ValueError:
        fail(f"Explanation ID must be an integer: {value}")
    if explanation_id <= 0:
        fail(f"Explanation ID must be positive: {value}")
    return explanation_id

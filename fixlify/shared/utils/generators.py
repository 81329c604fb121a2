"""Identifier generation."""

from cuid2 import cuid_wrapper

_next_cuid = cuid_wrapper()


def generate_cuid() -> str:
    """New CUID2, used for primary keys, execution ids and continuation ids."""
    return str(_next_cuid())

"""
Small helpers shared by the validator and the form filler.

This module provides helper functions for:
- Deciding whether a submitted value means "leave the field unset"
- Converting choice option values from their PDF name form
"""

from __future__ import annotations

from typing import Optional


def is_unset(value: Optional[str]) -> bool:
    """
    Check whether a submitted value should leave its field untouched.

    Null and the empty string are treated identically: neither is ever
    written to the form.

    Example:
        >>> is_unset("")
        True
        >>> is_unset(None)
        True
        >>> is_unset("0")
        False
    """
    return value is None or value == ""


def strip_pdf_name(name: str) -> str:
    """
    Drop the leading slash of a PDF name.

    Choice group options are stored as names in the document (``/M``) while
    callers submit the bare value (``M``). Bare values are returned unchanged,
    so both spellings resolve to the same option.

    Example:
        >>> strip_pdf_name("/M")
        "M"
        >>> strip_pdf_name("M")
        "M"
    """
    return name[1:] if name.startswith("/") else name

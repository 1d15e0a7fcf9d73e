"""Naming helpers for generated schema identifiers.

Entry point fields are the lowerCamelCase form of the root type name
(``BlogPost`` -> ``blogPost``); snake/camel conversion is used when mapping
record keys.
"""
from __future__ import annotations

import re

__all__ = ["lower_camel", "camel_to_snake", "snake_to_camel"]

_word_split = re.compile(r"[^0-9A-Za-z]+")
_leading_caps = re.compile(r"^([A-Z]+)(?=[A-Z][a-z]|[0-9]|$)")


def lower_camel(name: str) -> str:
    """Convert a type name to lowerCamelCase.

    Handles leading acronyms (``HTTPRequest`` -> ``httpRequest``) and
    separators (``blog_post`` -> ``blogPost``).
    """
    if not name:
        return name
    parts = [p for p in _word_split.split(name) if p]
    if not parts:
        return ''
    head = parts[0]
    match = _leading_caps.match(head)
    if match:
        head = match.group(1).lower() + head[match.end():]
    else:
        head = head[0].lower() + head[1:]
    return head + ''.join(p[0].upper() + p[1:] for p in parts[1:])


def camel_to_snake(name: str) -> str:
    """Convert camelCase or PascalCase identifier to snake_case.

    Idempotent for already snake_case input. Handles sequences of capitals.
    """
    if not name:
        return name
    s1 = re.sub(r"(.)([A-Z][a-z]+)", r"\1_\2", name)
    s2 = re.sub(r"([a-z0-9])([A-Z])", r"\1_\2", s1)
    return s2.lower()


def snake_to_camel(name: str, upper_first: bool = False) -> str:
    """Convert snake_case identifier to camelCase or PascalCase."""
    if not name:
        return name
    if '_' not in name:
        if upper_first:
            return name[0].upper() + name[1:]
        return name
    parts = [p for p in name.split('_') if p]
    if not parts:
        return ''
    first = parts[0].lower() if not upper_first else parts[0].capitalize()
    rest = ''.join(p.capitalize() for p in parts[1:])
    return first + rest

"""
Helpers for deriving human readable names from identifiers.
"""

import re

_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])|(?<=[A-Z])(?=[A-Z][a-z])")


def split_words(identifier: str) -> list[str]:
    """Split ``snake_case``, ``camelCase`` and ``CamelCase`` identifiers into words."""
    words = []
    for chunk in re.split(r"[_\s.]+", identifier):
        if chunk:
            words.extend(w for w in _CAMEL_BOUNDARY.split(chunk) if w)
    return words


def humanize(identifier: str, capitalize_words: bool = True) -> str:
    """
    Turn an identifier into a display name.

    ``order_total`` and ``orderTotal`` both become ``Order Total`` when
    ``capitalize_words`` is set, ``Order total`` otherwise.
    """
    words = split_words(identifier)
    if not words:
        return identifier
    if capitalize_words:
        return " ".join(w[:1].upper() + w[1:] for w in words)
    first, rest = words[0], words[1:]
    rest = [w if w.isupper() and len(w) > 1 else w.lower() for w in rest]
    return " ".join([first[:1].upper() + first[1:]] + rest)


def pluralize(display_name: str, suffix: str = "s") -> str:
    return f"{display_name}{suffix}"

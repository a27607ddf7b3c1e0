"""Parser for field tag strings such as ``json:"name,omitempty" db:"id"``."""

from __future__ import annotations

import json
from typing import Dict

from .errors import TagSyntaxError
from .models import FieldTag

_BACKTICK = "`"


def parse_tags(tag: str) -> Dict[str, FieldTag]:
    """Parse a tag string into a mapping of key to FieldTag.

    Tags are space separated ``key:"value"`` pairs. The value is split on
    commas: the first item is the tag value and the rest are its options.
    Surrounding whitespace and a wrapping pair of backticks are ignored. When a
    key appears more than once the last occurrence wins.
    """
    text = tag.strip()
    if len(text) >= 2 and text.startswith(_BACKTICK) and text.endswith(_BACKTICK):
        text = text[1:-1]

    parsed: Dict[str, FieldTag] = {}
    index = 0
    length = len(text)
    while index < length:
        while index < length and text[index] == " ":
            index += 1
        if index >= length:
            break

        start = index
        while index < length and _is_key_char(text[index]):
            index += 1
        key = text[start:index]
        if not key:
            raise TagSyntaxError(f"bad syntax for struct tag key in {tag!r}")
        if index + 1 >= length or text[index] != ":":
            raise TagSyntaxError(f"bad syntax for struct tag pair {key!r} in {tag!r}")
        if text[index + 1] != '"':
            raise TagSyntaxError(f"bad syntax for struct tag value of {key!r} in {tag!r}")
        index += 1

        value_start = index
        index += 1
        while index < length and text[index] != '"':
            if text[index] == "\\":
                index += 1
            index += 1
        if index >= length:
            raise TagSyntaxError(f"unterminated value for struct tag {key!r} in {tag!r}")
        quoted = text[value_start : index + 1]
        index += 1

        try:
            value = json.loads(quoted)
        except json.JSONDecodeError as exc:
            raise TagSyntaxError(f"invalid value for struct tag {key!r}: {exc}") from exc

        name, *options = value.split(",")
        parsed[key] = FieldTag(value=name, options=options)
    return parsed


def _is_key_char(char: str) -> bool:
    return char > " " and char not in {":", '"', "\x7f"}


__all__ = ["parse_tags"]

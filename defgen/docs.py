"""Documentation lookup and ``example:`` extraction for declarations."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple

from .errors import ExampleDecodeError
from .loader import Program

EXAMPLE_PREFIX = "example:"


@dataclass
class _TypeDocs:
    doc: str
    members: Dict[str, str] = field(default_factory=dict)


class DocIndex:
    """Read-only index of documentation keyed by module path and name."""

    def __init__(self, program: Program) -> None:
        self._types: Dict[Tuple[str, str], _TypeDocs] = {}
        for module in program.modules.values():
            for declaration in module.declarations.values():
                docs = _TypeDocs(doc=declaration.doc)
                for method in declaration.methods:
                    docs.members[method.name] = method.doc
                for member in declaration.fields:
                    docs.members[member.name] = member.doc
                self._types[(module.path, declaration.name)] = docs

    def comment_for_type(self, module_path: str, name: str) -> str:
        docs = self._types.get((module_path, name))
        if docs is None:
            return ""
        return clean_comment(docs.doc)

    def comment_for_method(self, module_path: str, service: str, method: str) -> str:
        return self._comment_for_member(module_path, service, method)

    def comment_for_field(self, module_path: str, type_name: str, field_name: str) -> str:
        return self._comment_for_member(module_path, type_name, field_name)

    def _comment_for_member(self, module_path: str, type_name: str, member: str) -> str:
        docs = self._types.get((module_path, type_name))
        if docs is None:
            return ""
        return clean_comment(docs.members.get(member, ""))


def clean_comment(text: str) -> str:
    return text.strip()


def extract_example(comment: str) -> Tuple[Optional[Any], str]:
    """Split an ``example:`` line out of a comment.

    Returns the decoded example (or None) and the remaining comment. Blank
    lines are dropped and scanning stops at the example line, so the example
    is expected to be the last line of the comment. A bare ``example:`` line
    yields no example but is still removed from the comment.
    """
    lines = []
    for raw_line in comment.splitlines():
        line = raw_line.strip()
        if line.startswith(EXAMPLE_PREFIX):
            literal = line[len(EXAMPLE_PREFIX) :].strip()
            if not literal:
                return None, "\n".join(lines)
            try:
                value = json.loads(literal)
            except json.JSONDecodeError as exc:
                raise ExampleDecodeError(f"invalid example {literal!r}: {exc}") from exc
            return value, "\n".join(lines)
        if not line:
            continue
        lines.append(line)
    return None, "\n".join(lines)


__all__ = ["DocIndex", "EXAMPLE_PREFIX", "clean_comment", "extract_example"]

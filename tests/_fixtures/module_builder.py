"""Helper utilities for writing definition modules in tests."""

from __future__ import annotations

import textwrap
from pathlib import Path
from typing import Iterable, Mapping

from defgen.loader import Loader, Program
from defgen.models import Definition
from defgen.parser import Parser


class ModuleBuilder:
    """Utility for writing definition sources into a throwaway tree and parsing them."""

    def __init__(self, tmp_path: Path) -> None:
        self.root = tmp_path / "src"
        self.root.mkdir()
        self._loader = Loader()

    def write(self, files: Mapping[str, str]) -> None:
        """Write `path -> contents` entries below the source root."""
        for relative, content in files.items():
            path = self.root / relative
            path.parent.mkdir(parents=True, exist_ok=True)
            normalised = textwrap.dedent(content).lstrip("\n")
            path.write_text(normalised, encoding="utf-8")

    def load(self, *patterns: str) -> Program:
        """Load patterns given relative to the source root."""
        return self._loader.load(*(self._pattern(pattern) for pattern in patterns))

    def parse(self, *patterns: str, exclude: Iterable[str] = ()) -> Definition:
        """Load patterns and return the parsed Definition."""
        return Parser(self.load(*patterns), exclude=exclude).parse()

    def path(self, relative: str = "") -> Path:
        return self.root / relative if relative else self.root

    def _pattern(self, pattern: str) -> str:
        if pattern.endswith("/..."):
            return f"{self.root / pattern[:-4]}/..."
        return str(self.root / pattern)


__all__ = ["ModuleBuilder"]

from __future__ import annotations

import json
from dataclasses import dataclass


@dataclass(frozen=True)
class Path:
    """Location of a value inside a glTF document, e.g. ``meshes[0].primitives[1].mode``."""

    text: str = ""

    @staticmethod
    def root() -> "Path":
        return Path()

    def field(self, name: str) -> "Path":
        if not self.text:
            return Path(name)
        return Path(f"{self.text}.{name}")

    def index(self, i: int) -> "Path":
        return Path(f"{self.text}[{i}]")

    def key(self, k: str) -> "Path":
        return Path(f"{self.text}[{json.dumps(k)}]")

    def __str__(self) -> str:
        return self.text or "<root>"

from __future__ import annotations
from dataclasses import dataclass
from datetime import date
from typing import Any, Dict, List, Protocol

from .types import NepaliDate

class ConversionEngine(Protocol):
    def info(self) -> Dict[str, Any]: ...
    def to_nepali(self, d: date) -> NepaliDate: ...
    def to_gregorian(self, n: NepaliDate) -> date: ...
    def is_valid(self, n: NepaliDate) -> bool: ...

@dataclass
class EngineRegistry:
    _engines: Dict[str, ConversionEngine]

    def get(self, name: str) -> ConversionEngine:
        if name not in self._engines:
            raise KeyError(f"Unknown engine '{name}'. Available: {sorted(self._engines)}")
        return self._engines[name]

    def list(self) -> List[str]:
        return sorted(self._engines.keys())

    def register(self, name: str, engine: ConversionEngine, *, overwrite: bool = False) -> None:
        if (not overwrite) and (name in self._engines):
            raise KeyError(f"Engine '{name}' already exists. Use overwrite=True to replace.")
        self._engines[name] = engine

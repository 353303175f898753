from __future__ import annotations
from dataclasses import dataclass
from typing import Literal

NEPALI_MONTH_NAMES = (
    "Baisakh", "Jestha", "Asar", "Shrawan", "Bhadra", "Ashwin",
    "Kartik", "Mangsir", "Poush", "Magh", "Falgun", "Chaitra",
)

@dataclass(frozen=True, order=True)
class NepaliDate:
    year: int
    month: int
    day: int

    def __str__(self) -> str:
        return f"{self.year:04d}-{self.month:02d}-{self.day:02d}"

    @property
    def month_name(self) -> str:
        return nepali_month_name(self.month)

    @classmethod
    def parse(cls, s: str) -> "NepaliDate":
        y, m, d = map(int, s.split("-"))
        return cls(y, m, d)

@dataclass(frozen=True)
class TithiInfo:
    number: int  # 1..30
    phase: Literal["waxing", "waning"]
    name: str

    @property
    def paksha(self) -> str:
        return "shukla" if self.phase == "waxing" else "krishna"

def nepali_month_name(month: int) -> str:
    if month < 1 or month > 12:
        return "Invalid"
    return NEPALI_MONTH_NAMES[month - 1]

from __future__ import annotations

import argparse
from datetime import date

import patro
from patro.core.time import day_of_year, parse_ymd
from patro.engines.recurrence import occurrences_by_year
from patro.engines.tithi import TITHI_NAMES, tithi_index


def print_counts(year: int) -> None:
    """How many civil days of ``year`` carry each tithi; 0 marks a tithi never hit."""
    idx = tithi_index(year)
    print(f"tithi counts for {year}")
    for n in range(1, 31):
        ds = idx[n]
        first = ds[0].isoformat() if ds else "-"
        print(f"  {n:2d} {TITHI_NAMES[n - 1]:<12} {len(ds):3d}  first {first}")
    missing = [n for n in range(1, 31) if not idx[n]]
    if missing:
        print(f"  never hit: {missing}")
    print()


def print_birthdays(birth: date, tithi: int, year_from: int, year_to: int) -> None:
    doy = day_of_year(birth)
    print(f"lunar birthdays for {birth} (tithi {tithi}, day-of-year {doy})")
    prev = None
    for y, d in zip(range(year_from, year_to + 1), occurrences_by_year(year_from, year_to, tithi, doy)):
        if d is None:
            print(f"  {y}  skipped")
            continue
        gap = f"  +{(d - prev).days}" if prev else ""
        print(f"  {y}  {d}  {patro.gregorian_to_nepali(d)} BS{gap}")
        prev = d
    print()


def main(argv: list[str] | None = None) -> int:
    p = argparse.ArgumentParser(description="Scan the tithi approximation over whole years.")
    p.add_argument("--year", type=int, default=None, help="Gregorian year for tithi counts (default: this year)")
    p.add_argument("--birth", default=None, help="Birth date YYYY-MM-DD: list lunar birthdays")
    p.add_argument("--tithi", type=int, default=None, help="Tithi override for --birth")
    p.add_argument("--years", type=int, default=10, help="How many years of birthdays (default 10)")
    args = p.parse_args(argv)

    year = args.year or date.today().year
    print_counts(year)

    if args.birth:
        birth = parse_ymd(args.birth)
        tithi = args.tithi or patro.calculate_tithi(birth).number
        print_birthdays(birth, tithi, year, year + args.years - 1)

    return 0


if __name__ == "__main__":
    raise SystemExit(main())

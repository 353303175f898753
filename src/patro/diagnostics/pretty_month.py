from __future__ import annotations

from datetime import date, timedelta
import calendar as pycal
import argparse

import patro
from patro.core.types import nepali_month_name


def dow_header() -> str:
    return "Mo     Tu     We     Th     Fr     Sa     Su"


def cell(top: str, bot: str, w: int = 6) -> tuple[str, str]:
    return (top[:w].ljust(w), bot[:w].ljust(w))


def print_grid(title: str, weeks: list[list[tuple[str, str]]]) -> None:
    print(title)
    print(dow_header())
    print("-" * len(dow_header()))
    for wk in weeks:
        print(" ".join(c[0] for c in wk))
        print(" ".join(c[1] for c in wk))
    print()


def moon_mark(d: date) -> str:
    # " o" full moon, " *" new moon
    n = patro.calculate_tithi(d).number
    return " o" if n == 15 else " *" if n == 30 else ""


def to_weeks(first: date, days: list[tuple[str, str]]) -> list[list[tuple[str, str]]]:
    weeks: list[list[tuple[str, str]]] = []
    wk: list[tuple[str, str]] = [cell("", "") for _ in range(first.weekday())]  # Monday=0
    for top, bot in days:
        wk.append(cell(top, bot))
        if len(wk) == 7:
            weeks.append(wk)
            wk = []
    if wk:
        while len(wk) < 7:
            wk.append(cell("", ""))
        weeks.append(wk)
    return weeks


def bs_month_calendar(engine: str, Y: int, M: int) -> None:
    b = patro.get_engine(engine).month_bounds(Y, M)
    d0 = b["first_date"]
    d1 = b["last_date"]

    days = []
    d = d0
    bs_day = 1
    while d <= d1:
        days.append((f"{bs_day:2d}{moon_mark(d)}", f"{d.month:02d}-{d.day:02d}"))
        d += timedelta(days=1)
        bs_day += 1

    title = f"{nepali_month_name(M)} {Y} BS  ({b['length']} days, {d0} .. {d1})"
    print_grid(title, to_weeks(d0, days))


def gregorian_month_calendar(engine: str, gy: int, gm: int) -> None:
    first = date(gy, gm, 1)
    last = date(gy, gm, pycal.monthrange(gy, gm)[1])

    days = []
    d = first
    while d <= last:
        n = patro.gregorian_to_nepali(d, engine=engine)
        days.append((f"{d.day:2d}{moon_mark(d)}", f"{n.month:02d}-{n.day:02d}"))
        d += timedelta(days=1)

    title = f"Gregorian month  {gy}-{gm:02d}  (BS month-day below)"
    print_grid(title, to_weeks(first, days))


def main(argv: list[str] | None = None) -> int:
    p = argparse.ArgumentParser(
        description="Print a BS-month calendar and/or a Gregorian-month calendar with paired labels."
    )
    p.add_argument("--engine", default="bs")
    p.add_argument("--bs", nargs=2, type=int, metavar=("Y", "M"),
                   help="BS month to print: Y M (e.g. 2082 6)")
    p.add_argument("--greg", nargs=2, type=int, metavar=("GY", "GM"),
                   help="Gregorian month to print: GY GM (e.g. 2025 10)")
    args = p.parse_args(argv)

    if not args.bs and not args.greg:
        today = date.today()
        n = patro.gregorian_to_nepali(today, engine=args.engine)
        bs_month_calendar(args.engine, Y=n.year, M=n.month)
        gregorian_month_calendar(args.engine, gy=today.year, gm=today.month)
        return 0

    if args.bs:
        Y, M = args.bs
        bs_month_calendar(args.engine, Y=Y, M=M)

    if args.greg:
        gy, gm = args.greg
        gregorian_month_calendar(args.engine, gy=gy, gm=gm)

    return 0


if __name__ == "__main__":
    raise SystemExit(main())

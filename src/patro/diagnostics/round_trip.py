from __future__ import annotations

import argparse
import random
from datetime import date, timedelta

import patro
from patro.core.errors import ConversionError
from patro.core.time import parse_ymd
from patro.core.types import NepaliDate


def random_date(start: date, end: date) -> date:
    span = (end - start).days
    return start + timedelta(days=random.randint(0, span))


def roundtrip_random(engine: str, N: int, start: date, end: date, seed: int, *, max_failures: int) -> int:
    """AD -> BS -> AD on N random days."""
    random.seed(seed)
    eng = patro.get_engine(engine)
    failures = 0
    for _ in range(N):
        d0 = random_date(start, end)
        n = eng.to_nepali(d0)
        back = eng.to_gregorian(n)
        if back != d0:
            failures += 1
            print("\nFAIL (ad->bs->ad)")
            print("d0:", d0, " bs:", n, " back:", back)
            if failures >= max_failures:
                return failures
    return failures


def roundtrip_table(engine: str, *, max_failures: int) -> int:
    """BS -> AD -> BS on every day of the table, checking the days are consecutive."""
    eng = patro.get_engine(engine)
    t = eng.table
    failures = 0
    prev = None
    for y in range(t.start_year, t.end_year + 1):
        for m in range(1, 13):
            for dd in range(1, eng.month_length(y, m) + 1):
                n = NepaliDate(y, m, dd)
                try:
                    g = eng.nepali_to_jdn(n)
                    back = eng.jdn_to_nepali(g)
                except ConversionError as e:
                    back, g = e, None
                if back != n or (prev is not None and g != prev + 1):
                    failures += 1
                    print("\nFAIL (bs->ad->bs)")
                    print("bs:", n, " jdn:", g, " back:", back)
                    if failures >= max_failures:
                        return failures
                prev = g
    return failures


def main(argv: list[str] | None = None) -> int:
    p = argparse.ArgumentParser(description="Round-trip checks for the BS conversion table.")
    p.add_argument("--engine", default="bs")
    p.add_argument("--n", type=int, default=2000, help="Random AD samples (default 2000)")
    p.add_argument("--start", default=None, help="YYYY-MM-DD (default: first table day)")
    p.add_argument("--end", default=None, help="YYYY-MM-DD (default: last table day)")
    p.add_argument("--seed", type=int, default=42)
    p.add_argument("--max-failures", type=int, default=10)
    p.add_argument("--full", action="store_true", help="Also walk every BS day of the table")
    args = p.parse_args(argv)

    lo, hi = patro.get_engine(args.engine).supported_range()
    start = parse_ymd(args.start) if args.start else lo
    end = parse_ymd(args.end) if args.end else hi

    failures = roundtrip_random(args.engine, args.n, start, end, args.seed, max_failures=args.max_failures)
    print(f"{args.engine}: {args.n} random AD samples {start}..{end}, failures={failures}")
    if args.full:
        f2 = roundtrip_table(args.engine, max_failures=args.max_failures)
        print(f"{args.engine}: full table walk, failures={f2}")
        failures += f2
    return 1 if failures else 0


if __name__ == "__main__":
    raise SystemExit(main())

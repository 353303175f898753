from __future__ import annotations

import argparse
import importlib
import inspect
import json
import logging
import re
import sys
from pathlib import Path
from typing import List


_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def _parse_ymd(s: str):
    from patro.core.time import parse_ymd
    return parse_ymd(s)


def _run_module_main(modpath: str, argv: list[str]) -> int:
    """
    Import module and run its main().

    Supports:
      - main(argv: list[str] | None = None) -> int|None
      - main() -> int|None
    """
    mod = importlib.import_module(modpath)
    if not hasattr(mod, "main"):
        raise SystemExit(f"Module {modpath} has no main()")
    fn = getattr(mod, "main")

    sig = inspect.signature(fn)
    if len(sig.parameters) == 0:
        rv = fn()
    else:
        rv = fn(argv)
    return int(rv or 0)


def _setup_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.WARNING),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


def cmd_bs(argv: list[str]) -> int:
    import patro

    p = argparse.ArgumentParser(prog="patro bs", description="Gregorian -> Bikram Sambat")
    p.add_argument("date", help="Gregorian YYYY-MM-DD")
    p.add_argument("--engine", default="bs")
    args = p.parse_args(argv)

    d = _parse_ymd(args.date)
    n = patro.gregorian_to_nepali(d, engine=args.engine)
    t = patro.calculate_tithi(d)
    print(f"{d.isoformat()} AD = {n} BS ({n.month_name} {n.day}, {n.year})")
    print(f"tithi {t.number} {t.name} ({t.phase})")
    return 0


def cmd_ad(argv: list[str]) -> int:
    import patro
    from patro.core.types import NepaliDate

    p = argparse.ArgumentParser(prog="patro ad", description="Bikram Sambat -> Gregorian")
    p.add_argument("date", help="BS YYYY-MM-DD")
    p.add_argument("--engine", default="bs")
    args = p.parse_args(argv)

    n = NepaliDate.parse(args.date)
    eng = patro.get_engine(args.engine)
    if not eng.is_valid(n):
        print(f"{n} is not a valid BS date for engine '{args.engine}'", file=sys.stderr)
        return 2
    print(f"{n} BS = {eng.to_gregorian(n).isoformat()} AD")
    return 0


def cmd_tithi(argv: list[str]) -> int:
    import patro

    p = argparse.ArgumentParser(prog="patro tithi", description="Approximate tithi (lunar day) of a Gregorian date")
    p.add_argument("date", help="YYYY-MM-DD")
    args = p.parse_args(argv)

    t = patro.calculate_tithi(_parse_ymd(args.date))
    print(f"{t.number} {t.name} {t.phase} ({t.paksha} paksha)")
    return 0


def cmd_birthdays(argv: list[str]) -> int:
    import patro

    p = argparse.ArgumentParser(prog="patro birthdays", description="Next lunar (tithi-based) birthdays")
    p.add_argument("birth", help="Gregorian birth date YYYY-MM-DD")
    p.add_argument("--tithi", type=int, default=None, help="Tithi 1..30 (default: tithi of the birth date)")
    p.add_argument("--k", type=int, default=3, help="How many instances (default 3)")
    p.add_argument("--from", dest="from_date", default=None, help="Only dates after this YYYY-MM-DD (default today)")
    args = p.parse_args(argv)

    birth = _parse_ymd(args.birth)
    tithi = args.tithi if args.tithi is not None else patro.calculate_tithi(birth).number
    from_date = _parse_ymd(args.from_date) if args.from_date else None
    dates = patro.next_lunar_birthdays(birth, tithi=tithi, k=args.k, from_date=from_date)

    print(f"birth {birth.isoformat()}  tithi {tithi}")
    prev = None
    for d in dates:
        gap = f"  (+{(d - prev).days} days)" if prev else ""
        print(f"  {d.isoformat()}  {patro.gregorian_to_nepali(d)} BS{gap}")
        prev = d
    if len(dates) < args.k:
        print(f"  only {len(dates)} instance(s) found in the scan window")
    return 0


def _load_events(path: str) -> List:
    from patro.sync.events import LogicalEvent

    raw = json.loads(Path(path).read_text(encoding="utf-8"))
    if isinstance(raw, dict):
        raw = raw.get("events", [])
    return [LogicalEvent.from_dict(r) for r in raw]


def _make_client(token, timeout):
    if token:
        from patro.sync.google import GoogleCalendarClient
        return GoogleCalendarClient(token, timeout=timeout)
    from patro.sync.client import InMemoryCalendarClient
    return InMemoryCalendarClient()


def _add_sync_args(p: argparse.ArgumentParser) -> None:
    p.add_argument("--config", default=None, help="Sync config JSON (camelCase or snake_case keys)")
    p.add_argument("--calendar", default=None, help="Override calendarId")
    p.add_argument("--mapping", default="patro-mapping.json", help="Mapping store JSON path")
    p.add_argument("--token", default=None, help="Google OAuth access token (omit for a dry run)")
    p.add_argument("--dry-run", action="store_true", help="Expand and reconcile against an in-memory calendar only")
    p.add_argument("--timeout", type=float, default=30.0, help="Per-request timeout, seconds")


def _print_result(res) -> int:
    print(res.summary())
    if res.skipped_count:
        print(f"{res.skipped_count} skipped")
    for e in res.errors:
        print(f"  - {e}")
    return 0 if res.ok else 1


def cmd_sync(argv: list[str]) -> int:
    from patro.sync.config import SyncConfig, load_config
    from patro.sync.festivals import upcoming_festivals
    from patro.sync.mapping import InMemoryMappingStore, JsonFileMappingStore
    from patro.sync.reconciler import SyncReconciler
    import patro

    p = argparse.ArgumentParser(prog="patro sync", description="Sync BS events to an external calendar")
    p.add_argument("--events", required=True, help="Events JSON (list, or {\"events\": [...]})")
    p.add_argument("--no-festival-catalogue", action="store_true", help="Do not add the built-in festivals")
    p.add_argument("--today", default=None, help="Pretend today is YYYY-MM-DD")
    _add_sync_args(p)
    args = p.parse_args(argv)

    cfg = load_config(args.config) if args.config else SyncConfig()
    if args.calendar:
        cfg = SyncConfig.from_dict({**cfg.to_dict(), "calendarId": args.calendar})
    today = _parse_ymd(args.today) if args.today else None

    events = _load_events(args.events)
    eng = patro.get_engine()
    if cfg.sync_festivals and not args.no_festival_catalogue:
        from datetime import date
        events += upcoming_festivals(today or date.today(), eng)

    token = None if args.dry_run else args.token
    store = JsonFileMappingStore(args.mapping) if token else InMemoryMappingStore()
    res = SyncReconciler(_make_client(token, args.timeout), store, eng).sync(cfg, events, today=today)
    if not token:
        print("(dry run: nothing was sent, no mapping written)")
    return _print_result(res)


def cmd_unsync(argv: list[str]) -> int:
    from patro.sync.config import SyncConfig, load_config
    from patro.sync.mapping import JsonFileMappingStore
    from patro.sync.reconciler import SyncReconciler

    p = argparse.ArgumentParser(prog="patro unsync", description="Remove every synced event")
    _add_sync_args(p)
    args = p.parse_args(argv)

    if not args.token or args.dry_run:
        print("unsync needs --token", file=sys.stderr)
        return 2
    cfg = load_config(args.config) if args.config else SyncConfig()
    calendar_id = args.calendar or cfg.calendar_id
    res = SyncReconciler(_make_client(args.token, args.timeout), JsonFileMappingStore(args.mapping)).unsync(calendar_id)
    return _print_result(res)


def main(argv: list[str] | None = None) -> int:
    if argv is None:
        argv = sys.argv[1:]

    # Shorthand: `patro YYYY-MM-DD` converts to BS
    if argv and _DATE_RE.match(argv[0]):
        return cmd_bs(argv)

    p = argparse.ArgumentParser(prog="patro", description="Bikram Sambat calendar and lunar-birthday sync toolkit.")
    p.add_argument("--log-level", default="WARNING", help="DEBUG|INFO|WARNING|ERROR (default WARNING)")
    sub = p.add_subparsers(dest="cmd", required=True)

    sub.add_parser("bs", help="Gregorian -> BS date (and tithi)")
    sub.add_parser("ad", help="BS -> Gregorian date")
    sub.add_parser("tithi", help="Approximate tithi of a Gregorian date")
    sub.add_parser("birthdays", help="Next lunar birthdays for a birth date")
    sub.add_parser("sync", help="Sync events to an external calendar")
    sub.add_parser("unsync", help="Remove all synced events")

    p_diag = sub.add_parser("diag", help="Diagnostics tools")
    p_diag.add_argument(
        "tool",
        choices=["round-trip", "tithi-scan", "pretty-month"],
        help="Which diagnostic to run",
    )

    args, rest = p.parse_known_args(argv)
    _setup_logging(args.log_level)

    if args.cmd == "bs":
        return cmd_bs(rest)

    if args.cmd == "ad":
        return cmd_ad(rest)

    if args.cmd == "tithi":
        return cmd_tithi(rest)

    if args.cmd == "birthdays":
        return cmd_birthdays(rest)

    if args.cmd == "sync":
        return cmd_sync(rest)

    if args.cmd == "unsync":
        return cmd_unsync(rest)

    if args.cmd == "diag":
        tool_map = {
            "round-trip": "patro.diagnostics.round_trip",
            "tithi-scan": "patro.diagnostics.tithi_scan",
            "pretty-month": "patro.diagnostics.pretty_month",
        }
        return _run_module_main(tool_map[args.tool], rest)

    raise RuntimeError("unreachable")


if __name__ == "__main__":
    raise SystemExit(main())

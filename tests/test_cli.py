# tests/test_cli.py

import json

from patro.cli import main


def test_bs_command(capsys):
    assert main(["bs", "1991-06-26"]) == 0
    out = capsys.readouterr().out
    assert "2048-03-12 BS" in out
    assert "Asar 12, 2048" in out


def test_date_shorthand(capsys):
    assert main(["2000-01-01"]) == 0
    assert "2056-09-17 BS" in capsys.readouterr().out


def test_ad_command(capsys):
    assert main(["ad", "2048-03-12"]) == 0
    assert "1991-06-26 AD" in capsys.readouterr().out
    assert main(["ad", "2048-03-40"]) == 2


def test_tithi_command(capsys):
    assert main(["tithi", "2025-05-23"]) == 0
    assert capsys.readouterr().out.strip() == "15 Purnima waxing (shukla paksha)"


def test_birthdays_command(capsys):
    assert main(["birthdays", "1991-06-26", "--from", "2026-10-18"]) == 0
    out = capsys.readouterr().out
    assert "2027-06-18" in out
    assert "2029-05-27" in out


def test_sync_dry_run(tmp_path, capsys):
    events = tmp_path / "events.json"
    events.write_text(json.dumps([
        {
            "id": "b1",
            "title": "Aama",
            "kind": "birthday_tithi",
            "nepaliDate": "2048-03-12",
            "gregorianDate": "1991-06-26",
        }
    ]))
    mapping = tmp_path / "mapping.json"
    rc = main(["sync", "--events", str(events), "--today", "2026-10-18", "--mapping", str(mapping),
               "--no-festival-catalogue", "--dry-run"])
    assert rc == 0
    out = capsys.readouterr().out
    assert "Synced 3 events. 0 failed." in out
    assert not mapping.exists()


def test_unsync_requires_token(capsys):
    assert main(["unsync"]) == 2


def test_diag_round_trip(capsys):
    assert main(["diag", "round-trip", "--n", "200"]) == 0
    assert "failures=0" in capsys.readouterr().out

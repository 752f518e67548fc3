from __future__ import annotations

import json
import subprocess
import sys
from pathlib import Path

import pytest

from msc_itemclean.core.landfill import LANDFILL_POSITION
from msc_itemclean.core.records import Record, decode_records, encode_records, get_u32_le, put_u32_le

pytestmark = pytest.mark.p0


def _run_cli(*args: str, cwd: Path | None = None) -> subprocess.CompletedProcess[str]:
    """Run the CLI through a python -c wrapper.

    This avoids assuming the console-script entrypoint is installed.
    """
    cmd = [
        sys.executable,
        "-c",
        "from msc_itemclean.cli import main; raise SystemExit(main())",
        *args,
    ]
    return subprocess.run(
        cmd,
        cwd=str(cwd) if cwd else None,
        text=True,
        capture_output=True,
    )


def _items_blob() -> bytes:
    def item(tag: str, pos: bytes) -> Record:
        return Record(tag, b"\xff\x76\xfa\x7a\x09\x04" + pos + b"\x00\x00\x80\x3f")

    elsewhere = b"\x11" * 12
    return encode_records(
        [
            Record("BeerCaseID", b"\xff\x56\x08\xa8\xe2" + put_u32_le(10)),
            item("beercase0Transform", elsewhere),
            item("beercase10Transform", LANDFILL_POSITION),
            Record("beercase10Consumed", b"\x01"),
            item("beercase6Transform", elsewhere),
            Record("beercase6Consumed", b"\x00"),
        ]
    )


def test_cli_clean_in_place_with_backup(tmp_path: Path) -> None:
    items = tmp_path / "items.txt"
    blob = _items_blob()
    items.write_bytes(blob)

    r = _run_cli("clean", str(items), "--json", "--list-out", str(tmp_path / "items_list.txt"))
    assert r.returncode == 0, (r.stdout, r.stderr)
    assert "[msc-itemclean]" in r.stderr

    summary = json.loads(r.stdout)
    assert summary["removed_items"] == ["beercase10"]
    assert summary["records_removed"] == 2
    assert summary["output"] == str(items)

    assert (tmp_path / "items00.txt").read_bytes() == blob
    recs = decode_records(items.read_bytes())
    assert [x.tag for x in recs] == [
        "BeerCaseID",
        "beercase1Transform",
        "beercase0Transform",
        "beercase0Consumed",
    ]
    assert get_u32_le(recs[0].data, 5) == 1
    listing = (tmp_path / "items_list.txt").read_text(encoding="utf-8")
    assert listing.splitlines()[0] == "BeerCaseID (1)"


def test_cli_clean_dry_run_writes_nothing(tmp_path: Path) -> None:
    items = tmp_path / "items.txt"
    blob = _items_blob()
    items.write_bytes(blob)

    r = _run_cli("clean", str(items), "--dry-run")
    assert r.returncode == 0, (r.stdout, r.stderr)
    assert items.read_bytes() == blob
    assert sorted(p.name for p in tmp_path.iterdir()) == ["items.txt"]


def test_cli_clean_default_path_and_output(tmp_path: Path) -> None:
    (tmp_path / "items.txt").write_bytes(_items_blob())
    r = _run_cli("clean", "--no-backup", "-o", "cleaned.txt", cwd=tmp_path)
    assert r.returncode == 0, (r.stdout, r.stderr)
    assert (tmp_path / "items.txt").read_bytes() == _items_blob()
    assert len(decode_records((tmp_path / "cleaned.txt").read_bytes())) == 4
    assert not (tmp_path / "items00.txt").exists()


def test_cli_corrupt_file_exit_10_and_untouched(tmp_path: Path) -> None:
    items = tmp_path / "items.txt"
    blob = _items_blob()[:-1] + b"\x00"
    items.write_bytes(blob)

    r = _run_cli("clean", str(items))
    assert r.returncode == 10
    assert "[msc-itemclean] format error: " in r.stderr
    assert "footer" in r.stderr
    assert items.read_bytes() == blob
    assert not (tmp_path / "items00.txt").exists()


def test_cli_missing_file_exit_12(tmp_path: Path) -> None:
    r = _run_cli("clean", str(tmp_path / "nope.txt"))
    assert r.returncode == 12
    assert "[msc-itemclean] storage error: " in r.stderr


def test_cli_verify_and_list(tmp_path: Path) -> None:
    items = tmp_path / "items.txt"
    items.write_bytes(_items_blob())

    r = _run_cli("verify", str(items))
    assert r.returncode == 0, (r.stdout, r.stderr)
    assert "OK" in r.stdout

    r = _run_cli("list", str(items))
    assert r.returncode == 0, (r.stdout, r.stderr)
    assert r.stdout.splitlines()[:2] == ["BeerCaseID (10)", "beercase0Transform"]


def test_cli_profile_show_validate_and_use(tmp_path: Path) -> None:
    r = _run_cli("profile-show")
    assert r.returncode == 0, (r.stdout, r.stderr)
    prof = json.loads(r.stdout)
    assert prof["spec"] == "msc-itemclean.profile.v1"

    # no groups: nothing is renumbered, landfill items still go
    prof["groups"] = []
    pfile = tmp_path / "p.json"
    pfile.write_text(json.dumps(prof), encoding="utf-8")

    r = _run_cli("profile-validate", "@" + str(pfile))
    assert r.returncode == 0, (r.stdout, r.stderr)
    assert "OK" in r.stdout

    items = tmp_path / "items.txt"
    items.write_bytes(_items_blob())
    r = _run_cli("clean", str(items), "--no-backup", "--profile", "@" + str(pfile))
    assert r.returncode == 0, (r.stdout, r.stderr)
    assert [x.tag for x in decode_records(items.read_bytes())] == [
        "BeerCaseID",
        "beercase0Transform",
        "beercase6Transform",
        "beercase6Consumed",
    ]


def test_cli_bad_profile_exit_2() -> None:
    r = _run_cli("profile-validate", "{}")
    assert r.returncode == 2
    assert "[msc-itemclean] usage error: " in r.stderr


def test_cli_negative_keep_exit_2(tmp_path: Path) -> None:
    items = tmp_path / "items.txt"
    items.write_bytes(_items_blob())
    r = _run_cli("clean", str(items), "--keep", "-1")
    assert r.returncode == 2
    assert items.read_bytes() == _items_blob()

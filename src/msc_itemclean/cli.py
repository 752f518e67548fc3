"""msc-itemclean CLI.

This is the stable CLI entrypoint (console-script: ``msc-itemclean``).

UX policy:
  - ``clean`` rewrites items.txt in place by default, after rotating backups
    (items00.txt .. items10.txt next to it).
  - Nothing is written when the items file is corrupt: decode + clean + encode
    all happen in memory first.
  - Diagnostics go to stderr with a ``[msc-itemclean]`` prefix; ``--json`` puts a
    machine-readable summary on stdout.
"""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

from msc_itemclean.errors import (
    EXIT_FORMAT,
    EXIT_OK,
    EXIT_USAGE,
    MscItemCleanError,
    StorageError,
    UsageError,
    exit_code_info,
)
from msc_itemclean.profile import DEFAULT_PROFILE, CleanupProfile, load_profile, profile_to_dict

PROG = "msc-itemclean"
ITEMS_FILE_DEFAULT = Path("items.txt")


def _pkg_version() -> str:
    from importlib.metadata import PackageNotFoundError, version

    try:
        return version(PROG)
    except PackageNotFoundError:
        # script invoked from a source checkout without metadata
        return "0+unknown"


def _say(msg: str) -> None:
    print(f"[{PROG}] {msg}", file=sys.stderr)


def _add_common_args(p: argparse.ArgumentParser) -> None:
    p.add_argument("--debug", action="store_true", help="Show stack traces on errors")


def _add_profile_arg(p: argparse.ArgumentParser) -> None:
    p.add_argument(
        "--profile",
        default=None,
        help=(
            "Cleanup profile JSON. Use '@file.json' to load from file, or pass JSON inline. "
            "Replaces the built-in profile entirely (see 'profile-show')."
        ),
    )


def _resolve_profile(profile_arg: str | None) -> CleanupProfile:
    if profile_arg is None:
        return DEFAULT_PROFILE
    return load_profile(profile_arg)


def _read_items(path: Path) -> bytes:
    try:
        return path.read_bytes()
    except OSError as e:
        raise StorageError(
            f"File {str(path)!r} was not found or couldn't be read ({e.strerror or e})"
        ) from e


def _write_items(path: Path, data: bytes) -> None:
    try:
        path.write_bytes(data)
    except OSError as e:
        raise StorageError(f"I/O error while writing to {str(path)!r}: {e}") from e


def _cmd_clean(
    input_path: Path,
    output_path: Path | None,
    *,
    profile_arg: str | None,
    backup: bool,
    keep: int,
    list_out: Path | None,
    dry_run: bool,
    as_json: bool,
) -> int:
    from msc_itemclean.backup import rotate_backups
    from msc_itemclean.core.records import decode_records
    from msc_itemclean.engine.cleaner import clean_bytes
    from msc_itemclean.listing import write_listing

    profile = _resolve_profile(profile_arg)
    raw = _read_items(input_path)
    out, report = clean_bytes(raw, profile)

    target = output_path if output_path is not None else input_path
    if not dry_run:
        if backup and target.exists():
            saved = rotate_backups(target, keep=keep)
            _say(f"backup: {saved}")
        _write_items(target, out)
        if list_out is not None:
            write_listing(decode_records(out), list_out, profile.counter_tags)

    _say(
        f"{report.records_in} records in, {report.records_removed} removed "
        f"({len(report.removed_identities)} landfill items), "
        f"{report.renumber.renamed} renamed, {report.renumber.counters_patched} counters patched"
        + (" (dry run, nothing written)" if dry_run else "")
    )
    if as_json:
        obj = report.to_dict()
        obj["input"] = str(input_path)
        obj["output"] = None if dry_run else str(target)
        print(json.dumps(obj, ensure_ascii=False, sort_keys=True))
    return EXIT_OK


def _cmd_verify(input_path: Path) -> int:
    from msc_itemclean.core.records import decode_records, encode_records

    raw = _read_items(input_path)
    records = decode_records(raw)
    if encode_records(records) != raw:
        _say(f"{input_path}: re-encoding does not reproduce the file")
        return EXIT_FORMAT
    print(f"OK ({len(records)} records)")
    return EXIT_OK


def _cmd_list(input_path: Path, profile_arg: str | None) -> int:
    from msc_itemclean.core.records import decode_records
    from msc_itemclean.listing import format_entries

    profile = _resolve_profile(profile_arg)
    for line in format_entries(decode_records(_read_items(input_path)), profile.counter_tags):
        print(line)
    return EXIT_OK


def _cmd_profile_validate(profile_arg: str) -> int:
    # load is the validation
    load_profile(profile_arg)
    print("OK")
    return EXIT_OK


def _cmd_profile_show(profile_arg: str | None) -> int:
    print(json.dumps(profile_to_dict(_resolve_profile(profile_arg)), indent=2, ensure_ascii=False))
    return EXIT_OK


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog=PROG,
        description="Remove landfill items from a My Summer Car items.txt and renumber item groups",
    )
    p.add_argument("--version", action="version", version=f"%(prog)s {_pkg_version()}")
    sub = p.add_subparsers(dest="cmd", required=True)

    p_c = sub.add_parser("clean", help="Drop landfill items and renumber item groups")
    p_c.add_argument("input", type=Path, nargs="?", default=ITEMS_FILE_DEFAULT)
    p_c.add_argument(
        "-o", "--output", type=Path, default=None, help="Write here instead of in place"
    )
    _add_profile_arg(p_c)
    p_c.add_argument("--no-backup", action="store_true", help="Do not rotate backups")
    p_c.add_argument(
        "--keep", type=int, default=10, help="Number of rotated backups to keep (default: 10)"
    )
    p_c.add_argument(
        "--list-out", type=Path, default=None, help="Also write a tag listing of the result"
    )
    p_c.add_argument("--dry-run", action="store_true", help="Report only, write nothing")
    p_c.add_argument("--json", action="store_true", help="Print a JSON summary on stdout")
    _add_common_args(p_c)

    p_v = sub.add_parser("verify", help="Check that an items file decodes and re-encodes losslessly")
    p_v.add_argument("input", type=Path, nargs="?", default=ITEMS_FILE_DEFAULT)
    _add_common_args(p_v)

    p_l = sub.add_parser("list", help="Print one line per record (counters show their value)")
    p_l.add_argument("input", type=Path, nargs="?", default=ITEMS_FILE_DEFAULT)
    _add_profile_arg(p_l)
    _add_common_args(p_l)

    p_pv = sub.add_parser("profile-validate", help="Validate a cleanup profile (v1)")
    p_pv.add_argument("profile", help="Profile JSON (@file.json or inline JSON)")
    _add_common_args(p_pv)

    p_ps = sub.add_parser("profile-show", help="Print the effective cleanup profile as JSON")
    _add_profile_arg(p_ps)
    _add_common_args(p_ps)

    return p


def main(argv: list[str] | None = None) -> int:
    argv = list(sys.argv[1:] if argv is None else argv)
    p = build_parser()
    ns = p.parse_args(argv)

    try:
        if ns.cmd == "clean":
            if ns.keep < 0:
                raise UsageError("--keep must be >= 0")
            return _cmd_clean(
                ns.input,
                ns.output,
                profile_arg=ns.profile,
                backup=not ns.no_backup,
                keep=ns.keep,
                list_out=ns.list_out,
                dry_run=bool(ns.dry_run),
                as_json=bool(ns.json),
            )
        if ns.cmd == "verify":
            return _cmd_verify(ns.input)
        if ns.cmd == "list":
            return _cmd_list(ns.input, ns.profile)
        if ns.cmd == "profile-validate":
            return _cmd_profile_validate(str(ns.profile))
        if ns.cmd == "profile-show":
            return _cmd_profile_show(ns.profile)
        raise AssertionError("unreachable")

    except SystemExit:
        raise
    except MscItemCleanError as e:
        if getattr(ns, "debug", False):
            raise
        code = int(getattr(e, "exit_code", EXIT_FORMAT) or EXIT_FORMAT)
        info = exit_code_info(code)
        _say(f"{info.name.lower()} error: {e}" if info is not None else str(e))
        return code
    except ValueError as e:
        if getattr(ns, "debug", False):
            raise
        _say(f"error: {e}")
        return EXIT_USAGE


if __name__ == "__main__":
    raise SystemExit(main())

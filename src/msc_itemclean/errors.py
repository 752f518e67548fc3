"""Typed errors for msc-itemclean.

Single source of truth for exit codes lives here.

Policy:
- Errors are small and boring.
- The core never recovers: a malformed items file aborts the run before anything is written.
- The CLI maps errors to stable exit codes (see EXIT_* constants).
- docs/exit_codes.md is generated from this module (scripts/gen_exit_codes_md.py).
"""

from __future__ import annotations

from dataclasses import dataclass

# -------------------------
# Exit codes (single source)
# -------------------------

EXIT_OK = 0
EXIT_USAGE = 2
EXIT_FORMAT = 10
EXIT_STORAGE = 12


@dataclass(frozen=True, slots=True)
class ExitCodeInfo:
    code: int
    name: str
    description: str


EXIT_CODES: tuple[ExitCodeInfo, ...] = (
    ExitCodeInfo(EXIT_OK, "OK", "Success"),
    ExitCodeInfo(EXIT_USAGE, "USAGE", "Usage/config error (invalid args, invalid cleanup profile, etc.)"),
    ExitCodeInfo(EXIT_FORMAT, "FORMAT", "Corrupt items file (bad header/footer byte, truncated record, etc.)"),
    ExitCodeInfo(EXIT_STORAGE, "STORAGE", "I/O failure (missing input, backup rotation, write)"),
)

_EXIT_CODE_BY_CODE: dict[int, ExitCodeInfo] = {e.code: e for e in EXIT_CODES}


def exit_code_info(code: int) -> ExitCodeInfo | None:
    return _EXIT_CODE_BY_CODE.get(int(code))


def render_exit_codes_markdown() -> str:
    """Render docs/exit_codes.md content."""
    lines: list[str] = []
    lines.append("# Exit codes\n")
    lines.append("> GENERATED FILE, do not edit manually.\n")
    lines.append("> Source of truth: `src/msc_itemclean/errors.py` (EXIT_CODES).\n")
    lines.append("> Regenerate: `python scripts/gen_exit_codes_md.py`.\n\n")
    lines.append("These are the CLI exit codes you can rely on.\n\n")
    lines.append("| Code | Name | Meaning |\n")
    lines.append("|---:|---|---|\n")
    for e in sorted(EXIT_CODES, key=lambda x: x.code):
        lines.append(f"| {e.code} | `{e.name}` | {e.description} |\n")
    lines.append("\n## Notes\n")
    lines.append("- Every internal error extends `MscItemCleanError` and carries an `exit_code`.\n")
    lines.append("- `--debug` re-raises errors to show full stack traces.\n")
    lines.append("- A `FORMAT` failure never leaves a partially rewritten items file behind.\n")
    return "".join(lines)


# ---------------
# Typed exceptions
# ---------------


class MscItemCleanError(Exception):
    """Base error for msc-itemclean."""

    exit_code: int = EXIT_FORMAT


class UsageError(MscItemCleanError):
    exit_code = EXIT_USAGE


class FormatError(MscItemCleanError):
    """Structural damage in the record stream.

    ``offset`` is the byte position where decoding gave up (None when the
    problem is in a record being encoded rather than decoded).
    """

    exit_code = EXIT_FORMAT

    def __init__(self, message: str, offset: int | None = None) -> None:
        if offset is not None:
            message = f"{message} at position {offset:#010x}"
        super().__init__(message)
        self.offset = offset


class ProfileError(MscItemCleanError, ValueError):
    exit_code = EXIT_USAGE


class StorageError(MscItemCleanError):
    exit_code = EXIT_STORAGE

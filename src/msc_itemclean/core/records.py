"""items.txt record codec.

Layout (records are concatenated, no container header/trailer):

  repeat:
    0x7E (u8 header) + tag_len(u8) + tag + data_len(u32 LE) + data + 0x7B (u8 footer)

data_len counts the footer byte too, so the stored payload is data_len - 1 bytes.
Tags are one byte per character (latin-1 mapping, no multi-byte encoding).

Decoding is not resumable: the first malformed record raises FormatError and the
whole buffer is considered corrupt.
"""

from __future__ import annotations

import struct
from collections.abc import Iterable, Iterator
from dataclasses import dataclass

from msc_itemclean.errors import FormatError

RECORD_HEADER = 0x7E
RECORD_FOOTER = 0x7B

TAG_MAX_LEN = 0xFF
DATA_MAX_LEN = 0xFFFFFFFF - 1  # stored length includes the footer

TAG_ENCODING = "latin-1"

_U32 = struct.Struct("<I")


def get_u32_le(buf: bytes, offset: int) -> int:
    if offset < 0 or offset + 4 > len(buf):
        raise FormatError("u32 truncated", offset)
    return _U32.unpack_from(buf, offset)[0]


def put_u32_le(n: int) -> bytes:
    if not (0 <= n <= 0xFFFFFFFF):
        raise ValueError(f"u32 out of range: {n}")
    return _U32.pack(n)


@dataclass
class Record:
    """One tagged entry of items.txt."""

    tag: str
    data: bytes

    def __post_init__(self) -> None:
        self.data = bytes(self.data)


def iter_records(buf: bytes) -> Iterator[Record]:
    b = bytes(buf)
    n = len(b)
    idx = 0
    while idx < n:
        if b[idx] != RECORD_HEADER:
            raise FormatError("Invalid header symbol", idx)
        idx += 1

        if idx >= n:
            raise FormatError("Record truncated (tag length)", idx)
        tag_len = b[idx]
        idx += 1

        if idx + tag_len > n:
            raise FormatError("Record truncated (tag)", idx)
        tag = b[idx : idx + tag_len].decode(TAG_ENCODING)
        idx += tag_len

        data_len = get_u32_le(b, idx)
        if data_len == 0:
            raise FormatError("Invalid data length 0", idx)
        idx += 4

        if idx + data_len > n:
            raise FormatError(f"Record truncated (data of {tag!r})", idx)
        data = b[idx : idx + data_len - 1]
        idx += data_len - 1

        if b[idx] != RECORD_FOOTER:
            raise FormatError("Invalid footer symbol", idx)
        idx += 1

        yield Record(tag=tag, data=data)


def decode_records(buf: bytes) -> list[Record]:
    return list(iter_records(buf))


def encode_record(rec: Record) -> bytes:
    try:
        tag = rec.tag.encode(TAG_ENCODING)
    except UnicodeEncodeError as err:
        raise FormatError(f"tag {rec.tag!r} is not representable one byte per character") from err
    if len(tag) > TAG_MAX_LEN:
        raise FormatError(f"tag {rec.tag!r} too long ({len(tag)} > {TAG_MAX_LEN})")
    if len(rec.data) > DATA_MAX_LEN:
        raise FormatError(f"data of {rec.tag!r} too large for a u32 length")

    out = bytearray()
    out.append(RECORD_HEADER)
    out.append(len(tag))
    out += tag
    out += put_u32_le(len(rec.data) + 1)
    out += rec.data
    out.append(RECORD_FOOTER)
    return bytes(out)


def encode_records(records: Iterable[Record]) -> bytes:
    return b"".join(encode_record(r) for r in records)

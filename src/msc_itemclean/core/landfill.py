from __future__ import annotations

import struct

from msc_itemclean.core.records import Record

# Landfill position -679.3277587891, 4.5722312927, -727.2958374023 (X, Y, Z as f32 LE).
#
#   pikex36Transform: FF 76 FA 7A 09 04 | FA D4 29 C4 | B8 4F 92 40 | EF D2 35 C4 | A1 1F 6B 3D ...
#                                         X             Y             Z
LANDFILL_POSITION = bytes.fromhex("fad429c4b84f9240efd235c4")

POSITION_OFFSET = 6
POSITION_LEN = 12


def is_in_landfill(rec: Record, position: bytes = LANDFILL_POSITION) -> bool:
    """True when the record's stored position is exactly the landfill spot.

    Raw byte comparison, no epsilon: items dumped by the game are bit-identical.
    """
    end = POSITION_OFFSET + POSITION_LEN
    if len(rec.data) < end:
        return False
    return rec.data[POSITION_OFFSET:end] == position


def landfill_coordinates(position: bytes = LANDFILL_POSITION) -> tuple[float, float, float]:
    """Decoded (X, Y, Z), for display only."""
    if len(position) != POSITION_LEN:
        raise ValueError(f"landfill position must be {POSITION_LEN} bytes, got {len(position)}")
    x, y, z = struct.unpack("<3f", position)
    return x, y, z

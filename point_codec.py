"""
Packed binary layout for groups of points.

Each point is stored as (3 + attribute_count) little-endian IEEE 754 doubles
in the order x, y, z, attr0 .. attrN-1, with points laid out back to back.
"""

from typing import Iterable, List, Sequence

import numpy as np

from data_generation import Point
from errors import MalformedPayload

DOUBLE = np.dtype("<f8")


def doubles_per_point(attribute_count: int) -> int:
    return 3 + attribute_count


def payload_length(group_size: int, attribute_count: int) -> int:
    """Size in bytes of a payload holding group_size points"""
    return group_size * doubles_per_point(attribute_count) * DOUBLE.itemsize


def encode_points(points: Sequence[Point]) -> bytes:
    """Pack points into one contiguous payload"""
    if not points:
        return b""
    # Ragged attribute lengths make numpy refuse the 2D conversion
    matrix = np.array([p.values for p in points], dtype=DOUBLE)
    return matrix.tobytes()


def decode_points(payload: bytes, attribute_count: int) -> List[Point]:
    """Unpack a payload produced by encode_points"""
    width = doubles_per_point(attribute_count)
    if len(payload) % (width * DOUBLE.itemsize) != 0:
        raise MalformedPayload(
            f"payload of {len(payload)} bytes is not a multiple of "
            f"{width * DOUBLE.itemsize} bytes per point"
        )
    if not payload:
        return []

    matrix = np.frombuffer(payload, dtype=DOUBLE).reshape(-1, width)
    return [
        Point(
            x=float(row[0]),
            y=float(row[1]),
            z=float(row[2]),
            attrs=tuple(float(v) for v in row[3:]),
        )
        for row in matrix
    ]


def pack_doubles(values: Iterable[float]) -> bytes:
    """Pack a flat run of doubles with the same byte order as point payloads"""
    return np.fromiter(values, dtype=DOUBLE).tobytes()

import math
from dataclasses import dataclass
from typing import Iterator, List, Tuple


@dataclass(frozen=True)
class Point:
    """A 3D point with a fixed number of synthetic float attributes"""

    x: float
    y: float
    z: float
    attrs: Tuple[float, ...] = ()

    @property
    def values(self) -> Tuple[float, ...]:
        """All fields in storage order: x, y, z, attrs..."""
        return (self.x, self.y, self.z) + self.attrs


# ============================================================================
# POINT FIXTURES
# ============================================================================
def generate_point(index: int, attribute_count: int) -> Point:
    """
    Deterministic but varied point for the given index.

    Identical arguments always produce bit-identical points.
    """
    if attribute_count < 0:
        raise ValueError(f"attribute_count must be >= 0, got {attribute_count}")

    return Point(
        x=index * 0.001,
        y=math.sin(index * 0.01) * 10.0,
        z=math.cos(index * 0.01) * 10.0,
        attrs=tuple((index % (i + 7)) * 0.1 + i for i in range(attribute_count)),
    )


def generate_points(start: int, count: int, attribute_count: int) -> Iterator[Point]:
    """Yield the fixtures for indexes start .. start + count - 1"""
    for index in range(start, start + count):
        yield generate_point(index, attribute_count)


# ============================================================================
# SIBLING BENCHMARK FIXTURES
# ============================================================================
def simple_row(index: int) -> Tuple[int, float, str]:
    """Row for the benchmarkdata table: (value1, value2, textvalue)"""
    return index, math.sin(index), f"row_{index}"


def ten_doubles(index: int) -> List[float]:
    """Ten cheap deterministic doubles for the multi-format benchmark"""
    return [
        float(index),
        math.sin(index),
        math.cos(index),
        math.sqrt(index + 1),
        index * 0.5,
        float(index % 97),
        math.tanh(index * 0.001),
        math.log(index + 2),
        math.exp((index % 5) * 0.001),
        1.0 if index % 2 == 0 else -1.0,
    ]

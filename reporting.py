"""Console and CSV output shared by all benchmarks"""

from typing import Callable, List, Optional, Sequence, TypeVar

import pandas as pd
from tabulate import tabulate

T = TypeVar("T")


def best_by(results: Sequence[T], key: Callable[[T], float]) -> Optional[T]:
    """Result with the highest key; the first one wins ties"""
    return max(results, key=key, default=None)


def print_banner(title: str, lines: Sequence[str] = ()):
    print(f"\n{'=' * 80}")
    print(title)
    for line in lines:
        print(line)
    print(f"{'=' * 80}\n")


def print_table(headers: Sequence[str], rows: List[Sequence]):
    print(tabulate(rows, headers=headers, tablefmt="grid"))


def write_csv(path: str, headers: Sequence[str], rows: List[Sequence[str]]):
    """Write pre-formatted rows below a single header line"""
    df = pd.DataFrame(rows, columns=list(headers))
    df.to_csv(path, index=False)
    print(f"\nResults saved to {path}")

from __future__ import annotations

import math
from collections.abc import Sequence
from pathlib import Path
from typing import Any, TypeVar

from pairminer.data.jsonl import write_jsonl

T = TypeVar("T")


def parse_split(split: str) -> tuple[float, float, float]:
    parts = [p.strip() for p in split.split(",") if p.strip()]
    if len(parts) != 3:
        raise ValueError("Split must have three comma-separated values, e.g. 8,1,1 or 0.8,0.1,0.1")
    values = [float(p) for p in parts]
    if any(v < 0 for v in values):
        raise ValueError("Split ratios must not be negative")
    total = sum(values)
    if total <= 0:
        raise ValueError("Split ratios must be positive")
    if abs(total - 1.0) > 0.01:
        values = [v / total for v in values]
    return values[0], values[1], values[2]


def split_array(items: Sequence[T], proportion0: float, proportion1: float) -> tuple[list[T], list[T]]:
    """Cut ``items`` in two; the first part gets ``ceil`` of its share."""
    total = proportion0 + proportion1
    if total <= 0:
        return [], list(items)
    size0 = math.ceil(proportion0 / total * len(items))
    return list(items[:size0]), list(items[size0:])


def split_samples(
    samples: Sequence[T], split: tuple[float, float, float]
) -> dict[str, list[T]]:
    """Proportional, order-preserving train/val/test partition."""
    train_ratio, val_ratio, test_ratio = split
    train, rest = split_array(samples, train_ratio, val_ratio + test_ratio)
    val, test = split_array(rest, val_ratio, test_ratio)
    return {"train": train, "val": val, "test": test}


def save_dataset(
    out_dir: Path, rows: Sequence[Any], split: tuple[float, float, float]
) -> dict[str, int]:
    """Write ``all.jsonl`` plus the train/val/test files; return their sizes."""
    write_jsonl(out_dir / "all.jsonl", rows)
    sizes = {"all": len(rows)}
    for name, items in split_samples(rows, split).items():
        write_jsonl(out_dir / f"{name}.jsonl", items)
        sizes[name] = len(items)
    return sizes

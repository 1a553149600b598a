import json
from pathlib import Path

import pytest

from pairminer.data.split import parse_split, save_dataset, split_array, split_samples


def test_parse_split_normalizes_weights() -> None:
    assert parse_split("8,1,1") == pytest.approx((0.8, 0.1, 0.1))
    assert parse_split("0.7, 0.2, 0.1") == pytest.approx((0.7, 0.2, 0.1))


@pytest.mark.parametrize("value", ["8,1", "a,b,c", "-1,1,1", "0,0,0"])
def test_parse_split_rejects_bad_values(value: str) -> None:
    with pytest.raises(ValueError):
        parse_split(value)


def test_split_array_rounds_first_part_up() -> None:
    assert split_array(list(range(5)), 1, 1) == ([0, 1, 2], [3, 4])
    assert split_array([], 1, 1) == ([], [])
    assert split_array([1, 2], 0, 0) == ([], [1, 2])


def test_split_samples_preserves_order() -> None:
    samples = list(range(10))
    parts = split_samples(samples, (0.8, 0.1, 0.1))
    assert parts == {"train": list(range(8)), "val": [8], "test": [9]}


def test_save_dataset_writes_all_partitions(tmp_path: Path) -> None:
    rows = [[f"code{i}", f"comment{i}"] for i in range(7)]
    sizes = save_dataset(tmp_path / "out", rows, (0.8, 0.1, 0.1))
    assert sizes == {"all": 7, "train": 6, "val": 1, "test": 0}
    written = (tmp_path / "out" / "train.jsonl").read_text(encoding="utf-8").splitlines()
    assert [json.loads(line) for line in written] == rows[:6]
    assert (tmp_path / "out" / "test.jsonl").read_text(encoding="utf-8") == ""

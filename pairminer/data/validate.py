from __future__ import annotations

import json
import logging
from pathlib import Path

from pydantic import ValidationError

from pairminer.data.schema import OutputMode, PairRow, TokenRow

LOGGER = logging.getLogger(__name__)


def validate_jsonl(path: Path, mode: OutputMode = "full") -> tuple[int, int]:
    if not path.exists():
        raise FileNotFoundError(path)
    total = 0
    errors = 0
    for line in path.read_text(encoding="utf-8").splitlines():
        if not line.strip():
            continue
        total += 1
        try:
            row = json.loads(line)
            if mode == "tokens":
                TokenRow.from_row(row)
            else:
                PairRow.model_validate(row)
        except (ValueError, ValidationError) as exc:
            errors += 1
            LOGGER.warning("Invalid pair in %s: %s", path, exc)
    return total, errors

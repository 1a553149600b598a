from pairminer.data.schema import (
    CallBodyPair,
    CallCommentPair,
    FunctionDocPair,
    FunctionRecord,
    PairRow,
    TrainingPair,
)
from pairminer.data.split import parse_split, save_dataset, split_samples

__all__ = [
    "CallBodyPair",
    "CallCommentPair",
    "FunctionDocPair",
    "FunctionRecord",
    "PairRow",
    "TrainingPair",
    "parse_split",
    "save_dataset",
    "split_samples",
]

from __future__ import annotations

from dataclasses import dataclass

import numpy as np


@dataclass(frozen=True, eq=False)
class DataPoint:
    """학습 샘플 하나의 스냅샷.

    - features: (n_features,) float64, read-only
    - label: 같은 row의 레이블
    - row_index: 실제로 읽은 물리 row (0-based)
    """

    features: np.ndarray
    label: float
    row_index: int

    def __post_init__(self) -> None:
        x = np.array(self.features, dtype=float)
        x.setflags(write=False)
        object.__setattr__(self, "features", x)
        object.__setattr__(self, "label", float(self.label))
        object.__setattr__(self, "row_index", int(self.row_index))

    @property
    def n_features(self) -> int:
        return int(self.features.shape[0])

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, DataPoint):
            return NotImplemented
        return (
            self.row_index == other.row_index
            and self.label == other.label
            and np.array_equal(self.features, other.features)
        )

    __hash__ = None  # type: ignore[assignment]

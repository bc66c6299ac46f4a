from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import numpy as np

from trainfeed.common.errors import DimensionMismatch


@dataclass(frozen=True)
class DatasetBundle:
    """로더가 돌려주는 dense 데이터 묶음. DataSet.from_bundle의 입력.

    - X: (n_samples, n_features)
    - y: (n_samples,) 레이블
    - feature_names: 있으면 길이 n_features
    - meta: 출처/fingerprint 등
    """

    X: np.ndarray
    y: np.ndarray
    feature_names: list[str] | None
    meta: dict[str, Any]

    def __post_init__(self) -> None:
        if self.X.ndim != 2:
            raise DimensionMismatch(f"X must be 2D array, got shape={self.X.shape}")
        if self.y.ndim != 1 or self.y.shape[0] != self.X.shape[0]:
            raise DimensionMismatch(
                f"y must be 1D with {self.X.shape[0]} rows, got shape={self.y.shape}"
            )
        if self.feature_names is not None and len(self.feature_names) != self.X.shape[1]:
            raise DimensionMismatch(
                f"feature_names has {len(self.feature_names)} names for {self.X.shape[1]} columns"
            )

    @property
    def n_samples(self) -> int:
        return int(self.X.shape[0])

    @property
    def n_features(self) -> int:
        return int(self.X.shape[1])

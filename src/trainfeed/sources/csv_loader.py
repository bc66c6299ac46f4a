from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Sequence

import pandas as pd

from trainfeed.sources.bundle import DatasetBundle
from trainfeed.sources.fingerprint import sha256_file

logger = logging.getLogger(__name__)


def _labels_from_series(y: pd.Series) -> tuple[Any, dict[str, int] | None]:
    # 숫자형은 그대로, 비숫자형은 이진(0/1)만 매핑해서 기록
    if y.dtype == bool:
        return y.astype(float).to_numpy(), {"False": 0, "True": 1}
    if pd.api.types.is_numeric_dtype(y.dtype):
        return y.astype(float).to_numpy(), None

    uniq = sorted(str(u) for u in pd.unique(y))
    if len(uniq) != 2:
        raise ValueError(
            f"non-numeric target must be binary to map onto labels, got {len(uniq)} classes"
        )
    mapping = {uniq[0]: 0, uniq[1]: 1}
    return y.astype(str).map(mapping).astype(float).to_numpy(), mapping


def load_csv_bundle(
    path: str | Path,
    target_col: str,
    *,
    feature_cols: Sequence[str] | None = None,
    one_hot: bool = False,
    dropna: bool = True,
    sep: str = ",",
    encoding: str | None = None,
) -> DatasetBundle:
    """CSV 파일을 dense DatasetBundle로 로드. X는 float64, y는 float64 레이블."""
    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(str(p))
    if not target_col:
        raise ValueError("target_col is required")

    df = pd.read_csv(p, sep=sep, encoding=encoding)
    if target_col not in df.columns:
        raise ValueError(f"target_col not found: {target_col}")

    if feature_cols is None:
        x_df = df.drop(columns=[target_col])
    else:
        cols = list(feature_cols)
        missing = [c for c in cols if c not in df.columns]
        if missing:
            raise ValueError(f"feature_cols not found: {missing}")
        x_df = df[cols]

    y = df[target_col]
    if dropna:
        mask = ~(x_df.isna().any(axis=1) | y.isna())
        x_df = x_df.loc[mask]
        y = y.loc[mask]

    if one_hot:
        x_df = pd.get_dummies(x_df, drop_first=False)

    X = x_df.to_numpy(dtype=float)
    y_arr, target_mapping = _labels_from_series(y)

    meta: dict[str, Any] = {
        "source": {"type": "csv", "path": str(p)},
        "fingerprint": {"sha256": sha256_file(p)},
        "target_col": str(target_col),
        "n_rows": int(X.shape[0]),
        "n_features": int(X.shape[1]),
    }
    if target_mapping is not None:
        meta["target_mapping"] = target_mapping

    logger.debug("csv loaded: %s rows=%d features=%d", p, X.shape[0], X.shape[1])
    return DatasetBundle(
        X=X, y=y_arr, feature_names=[str(c) for c in x_df.columns], meta=meta
    )

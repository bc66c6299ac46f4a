from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable

import numpy as np

from trainfeed.common.config import Settings, get_settings, parse_bool
from trainfeed.data.backends import (
    Backend,
    ColumnHandle,
    ColumnMajorMatrix,
    DenseBackend,
    OutOfCoreBackend,
)
from trainfeed.data.data_set import DataSet
from trainfeed.sources.csv_loader import load_csv_bundle

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DataSetSpec:
    """DataSet 생성용 범용 스펙.

    - kind: backend 종류 (dense, out_of_core, csv). 비어 있으면 settings.backend
    - name: 표시용 이름(선택)
    - params: backend별 파라미터 (matrix/labels, path/shape/dtype, target_col, ...)
    - n_passes / shuffle / seed: None이면 settings 값을 따른다
    """

    kind: str = ""
    name: str | None = None
    params: dict[str, Any] = field(default_factory=dict)
    n_passes: float | None = None
    shuffle: bool | None = None
    seed: int | None = None
    note: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "kind": self.kind,
            "name": self.name,
            "params": self.params,
            "n_passes": self.n_passes,
            "shuffle": self.shuffle,
            "seed": self.seed,
            "note": self.note,
        }

    @staticmethod
    def from_dict(d: dict[str, Any]) -> "DataSetSpec":
        n_passes = d.get("n_passes")
        shuffle = d.get("shuffle")
        seed = d.get("seed")
        return DataSetSpec(
            kind=str(d.get("kind") or ""),
            name=d.get("name"),
            params=dict(d.get("params") or {}),
            n_passes=None if n_passes is None else float(n_passes),
            shuffle=None if shuffle is None else parse_bool(shuffle, False, strict=True),
            seed=None if seed is None else int(seed),
            note=d.get("note"),
        )

    @staticmethod
    def from_json(path: str | Path) -> "DataSetSpec":
        p = Path(path)
        obj = json.loads(p.read_text(encoding="utf-8"))
        if not isinstance(obj, dict):
            raise ValueError("data set spec JSON must be an object")
        return DataSetSpec.from_dict(obj)


@dataclass(frozen=True)
class BackendSource:
    """factory 결과: backend + 같은 row 순서의 labels + 메타.

    factory가 직접 연 out-of-core 핸들은 handle에 담기고 이 source가 소유한다.
    DataSet은 빌려 쓰기만 하므로, 다 쓴 뒤 close()로 닫는 것은 호출자 몫이다.
    """

    backend: Backend
    labels: np.ndarray
    meta: dict[str, Any] = field(default_factory=dict)
    handle: ColumnHandle | None = None

    def close(self) -> None:
        close = getattr(self.handle, "close", None)
        if close is not None:
            close()

    def __enter__(self) -> "BackendSource":
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()


BackendFactory = Callable[[DataSetSpec], BackendSource]


_BACKENDS: dict[str, BackendFactory] = {}


def register_backend(kind: str, factory: BackendFactory, *, overwrite: bool = False) -> None:
    k = kind.strip().lower()
    if not k:
        raise ValueError("kind is required")
    if (k in _BACKENDS) and (not overwrite):
        raise ValueError(f"backend already registered: {k}")
    _BACKENDS[k] = factory


def list_backends() -> list[str]:
    return sorted(_BACKENDS.keys())


def make_backend(spec: DataSetSpec, *, settings: Settings | None = None) -> BackendSource:
    k = spec.kind.strip().lower()
    if not k:
        k = (settings or get_settings()).backend
    if k not in _BACKENDS:
        known = ", ".join(list_backends()) or "(none)"
        raise ValueError(f"unknown backend kind: {k} (known: {known})")

    source = _BACKENDS[k](spec)

    meta = dict(source.meta or {})
    meta.setdefault("backend_kind", k)
    meta.setdefault("data_set_name", spec.name or k)
    return BackendSource(
        backend=source.backend, labels=source.labels, meta=meta, handle=source.handle
    )


def build_data_set(
    spec: DataSetSpec,
    *,
    source: BackendSource | None = None,
    rng: Any = None,
    settings: Settings | None = None,
) -> DataSet:
    """spec으로 DataSet 생성. spec에서 비운 값은 settings(환경변수)로 채운다.

    source를 주면 make_backend를 다시 부르지 않는다. 파일에서 연 핸들을 직접 닫아야
    할 때는 make_backend로 source를 먼저 받아 넘긴다.
    """
    s = settings or get_settings()
    if source is None:
        source = make_backend(spec, settings=s)

    n_passes = spec.n_passes if spec.n_passes is not None else s.n_passes
    shuffle = spec.shuffle if spec.shuffle is not None else s.shuffle
    if rng is None:
        rng = spec.seed if spec.seed is not None else s.seed

    logger.info(
        "building data set %s: backend=%s shuffle=%s n_passes=%s",
        source.meta.get("data_set_name"),
        source.meta.get("backend_kind"),
        shuffle,
        n_passes,
    )
    return DataSet(
        source.labels,
        backend=source.backend,
        n_passes=n_passes,
        shuffle=shuffle,
        rng=rng,
    )


def _labels_param(params: dict[str, Any]) -> np.ndarray:
    if params.get("labels") is not None:
        return np.asarray(params["labels"], dtype=float)
    if params.get("labels_path"):
        p = Path(str(params["labels_path"]))
        if not p.exists():
            raise FileNotFoundError(str(p))
        return np.asarray(np.load(p), dtype=float)
    raise ValueError("params.labels or params.labels_path is required")


def _dense_source(spec: DataSetSpec) -> BackendSource:
    params = spec.params
    if params.get("matrix") is not None:
        matrix = params["matrix"]
        meta: dict[str, Any] = {"source": {"type": "array"}}
    elif params.get("matrix_path"):
        p = Path(str(params["matrix_path"]))
        if not p.exists():
            raise FileNotFoundError(str(p))
        matrix = np.load(p)
        meta = {"source": {"type": "npy", "path": str(p)}}
    else:
        raise ValueError("dense backend requires params.matrix or params.matrix_path")

    return BackendSource(backend=DenseBackend(matrix), labels=_labels_param(params), meta=meta)


def _out_of_core_source(spec: DataSetSpec) -> BackendSource:
    params = spec.params
    handle = params.get("handle")
    opened: ColumnMajorMatrix | None = None
    if handle is not None:
        meta: dict[str, Any] = {"source": {"type": "handle"}}
    else:
        path = params.get("path")
        shape = params.get("shape")
        if not path or not shape:
            raise ValueError("out_of_core backend requires params.handle or params.path+shape")
        dtype = np.dtype(params.get("dtype") or "float64")
        handle = opened = ColumnMajorMatrix.open(str(path), shape=tuple(shape), dtype=dtype)
        meta = {"source": {"type": "memmap", "path": str(path), "dtype": dtype.name}}

    try:
        backend = OutOfCoreBackend(handle)
        labels = _labels_param(params)
    except Exception:
        if opened is not None:
            opened.close()
        raise
    return BackendSource(backend=backend, labels=labels, meta=meta, handle=opened)


def _csv_source(spec: DataSetSpec) -> BackendSource:
    params = spec.params
    path = params.get("path")
    target_col = params.get("target_col")
    if not path:
        raise ValueError("csv backend requires params.path")
    if not target_col:
        raise ValueError("csv backend requires params.target_col")

    bundle = load_csv_bundle(
        str(path),
        str(target_col),
        feature_cols=params.get("feature_cols"),
        one_hot=parse_bool(params.get("one_hot"), False),
        dropna=parse_bool(params.get("dropna"), True),
        sep=str(params.get("sep") or ","),
        encoding=params.get("encoding"),
    )
    meta = dict(bundle.meta)
    meta["feature_names"] = bundle.feature_names
    return BackendSource(backend=DenseBackend(bundle.X), labels=bundle.y, meta=meta)


# built-in
register_backend("dense", _dense_source, overwrite=True)
register_backend("out_of_core", _out_of_core_source, overwrite=True)
register_backend("csv", _csv_source, overwrite=True)

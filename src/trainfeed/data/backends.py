from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Protocol

import numpy as np
import numpy.typing as npt

from trainfeed.common.errors import DimensionMismatch, IndexOutOfRange

logger = logging.getLogger(__name__)


class ColumnHandle(Protocol):
    """out-of-core 저장소 핸들. (n_rows, n_cols) shape와 column 단위 random access만 요구."""

    @property
    def shape(self) -> tuple[int, ...]: ...

    def column(self, j: int) -> Any: ...


class ColumnMajorMatrix:
    """디스크 위 column-major(Fortran order) 행렬에 대한 memmap 핸들.

    핸들의 수명은 호출자가 관리한다. DataSet/OutOfCoreBackend는 빌려서 읽기만 하고
    close 하지 않는다.
    """

    def __init__(self, data: npt.NDArray[Any], path: Path | None = None) -> None:
        if data.ndim != 2:
            raise DimensionMismatch(f"column-major matrix must be 2D, got shape={data.shape}")
        self._data: npt.NDArray[Any] | None = data
        self.path = path

    @classmethod
    def open(
        cls, path: str | Path, *, shape: tuple[int, int], dtype: Any = np.float64
    ) -> "ColumnMajorMatrix":
        p = Path(path)
        if not p.exists():
            raise FileNotFoundError(str(p))
        shape = (int(shape[0]), int(shape[1]))
        arr = np.memmap(p, dtype=dtype, mode="r", shape=shape, order="F")
        logger.debug("memmap opened: %s shape=%s dtype=%s", p, shape, np.dtype(dtype).name)
        return cls(arr, path=p)

    @classmethod
    def create(cls, path: str | Path, X: Any, *, dtype: Any = np.float64) -> "ColumnMajorMatrix":
        """X를 Fortran order로 path에 기록한 뒤 read-only로 다시 연다."""
        x = np.asarray(X, dtype=dtype)
        if x.ndim != 2:
            raise DimensionMismatch(f"X must be 2D array, got shape={x.shape}")

        p = Path(path)
        p.parent.mkdir(parents=True, exist_ok=True)
        out = np.memmap(p, dtype=dtype, mode="w+", shape=x.shape, order="F")
        out[:] = x
        out.flush()
        del out

        return cls.open(p, shape=x.shape, dtype=dtype)

    @property
    def closed(self) -> bool:
        return self._data is None

    @property
    def shape(self) -> tuple[int, int]:
        return tuple(int(n) for n in self._require().shape)  # type: ignore[return-value]

    @property
    def nrow(self) -> int:
        return self.shape[0]

    @property
    def ncol(self) -> int:
        return self.shape[1]

    def column(self, j: int) -> npt.NDArray[Any]:
        return self._require()[:, j]

    def close(self) -> None:
        # memmap은 참조가 모두 사라질 때 해제된다.
        self._data = None

    def _require(self) -> npt.NDArray[Any]:
        if self._data is None:
            raise ValueError("column-major matrix handle is closed")
        return self._data

    def __enter__(self) -> "ColumnMajorMatrix":
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()

    def __repr__(self) -> str:
        if self._data is None:
            return f"ColumnMajorMatrix(path='{self.path}', closed)"
        return f"ColumnMajorMatrix(path='{self.path}', shape={self.shape})"


class _RowBackend(ABC):
    kind = ""

    _n_samples: int
    _n_features: int

    @property
    def n_samples(self) -> int:
        return self._n_samples

    @property
    def n_features(self) -> int:
        return self._n_features

    def _check_row(self, i: int) -> int:
        if i < 0 or i >= self._n_samples:
            raise IndexOutOfRange(f"row index {i} out of range [0, {self._n_samples})")
        return int(i)

    @abstractmethod
    def get_row(self, i: int) -> np.ndarray: ...


class DenseBackend(_RowBackend):
    """메모리에 전부 올라와 있는 row-major 행렬."""

    kind = "dense"

    def __init__(self, matrix: Any) -> None:
        x = np.array(matrix, dtype=float, order="C")
        if x.ndim != 2:
            raise DimensionMismatch(f"matrix must be 2D array, got shape={x.shape}")
        if x.shape[0] == 0 or x.shape[1] == 0:
            raise DimensionMismatch(f"matrix must be non-empty, got shape={x.shape}")
        x.setflags(write=False)

        self._X = x
        self._n_samples = int(x.shape[0])
        self._n_features = int(x.shape[1])

    def get_row(self, i: int) -> np.ndarray:
        return self._X[self._check_row(i)].copy()


class OutOfCoreBackend(_RowBackend):
    """외부 소유 column-major 저장소를 핸들로 읽는 backend.

    row 하나를 만들 때 column마다 (i, j) 원소를 하나씩 읽는다. 저장소가 row 접근을
    제공하지 않기 때문이며, dense보다 느린 경로다.
    핸들은 빌린 참조(non-owning)이므로 이 backend보다 오래 살아 있어야 한다.
    """

    kind = "out_of_core"

    def __init__(self, handle: ColumnHandle) -> None:
        shape = tuple(handle.shape)
        if len(shape) != 2:
            raise DimensionMismatch(f"handle must expose a 2D shape, got shape={shape}")
        if shape[0] == 0 or shape[1] == 0:
            raise DimensionMismatch(f"handle matrix must be non-empty, got shape={shape}")

        self._handle = handle
        self._n_samples = int(shape[0])
        self._n_features = int(shape[1])

    @property
    def handle(self) -> ColumnHandle:
        return self._handle

    def get_row(self, i: int) -> np.ndarray:
        i = self._check_row(i)
        row = np.empty(self._n_features, dtype=float)
        for j in range(self._n_features):
            row[j] = self._handle.column(j)[i]
        return row


Backend = DenseBackend | OutOfCoreBackend

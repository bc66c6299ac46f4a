from __future__ import annotations

import itertools
import logging
from collections.abc import Iterator
from typing import Any

import numpy as np

from trainfeed.common.errors import DimensionMismatch
from trainfeed.data.backends import Backend, ColumnHandle, DenseBackend, OutOfCoreBackend
from trainfeed.data.point import DataPoint
from trainfeed.data.sampler import Sampler, SamplingMode
from trainfeed.sources.bundle import DatasetBundle

logger = logging.getLogger(__name__)


def select_backend(
    *,
    matrix: Any = None,
    handle: ColumnHandle | None = None,
    backend: Backend | None = None,
    big: bool | None = None,
) -> Backend:
    """matrix / handle / backend 중 정확히 하나로 backend를 만든다.

    big은 dense(False)/out-of-core(True)를 고른다. backend를 직접 넘길 때 big을 주면
    backend 종류와 맞는지만 확인한다.
    """
    if backend is not None:
        if matrix is not None or handle is not None:
            raise ValueError("backend cannot be combined with matrix or handle")
        if big is not None and bool(big) != isinstance(backend, OutOfCoreBackend):
            raise ValueError(f"big={big} contradicts backend kind: {backend.kind}")
        return backend

    if big:
        if handle is None:
            raise ValueError("big=True requires an out-of-core handle")
        if matrix is not None:
            raise ValueError("matrix and handle are mutually exclusive")
        return OutOfCoreBackend(handle)

    if matrix is None:
        raise ValueError("big=False requires a dense matrix")
    if handle is not None:
        raise ValueError("matrix and handle are mutually exclusive")
    return DenseBackend(matrix)


def _as_labels(labels: Any, n_samples: int) -> np.ndarray:
    y = np.array(labels, dtype=float)
    # (n, 1) column vector도 허용
    if y.ndim == 2 and y.shape[1] == 1:
        y = y.reshape(-1)
    if y.ndim != 1:
        raise DimensionMismatch(f"labels must be 1D array, got shape={y.shape}")
    if y.shape[0] != n_samples:
        raise DimensionMismatch(f"X/y size mismatch: {n_samples} vs {y.shape[0]}")
    y.setflags(write=False)
    return y


class DataSet:
    """iteration 번호 t -> DataPoint 접근자.

    생성 후에는 read-only. 같은 t에는 항상 같은 DataPoint를 돌려주므로 여러 스레드에서
    각자의 t로 get_data_point를 호출해도 된다.

    big=True일 때 handle은 빌린 참조다. DataSet은 handle을 닫지도, 수명을 늘리지도
    않으므로 호출자가 DataSet보다 오래 열어 두어야 한다.
    """

    def __init__(
        self,
        labels: Any,
        *,
        matrix: Any = None,
        handle: ColumnHandle | None = None,
        backend: Backend | None = None,
        big: bool | None = None,
        n_passes: float = 1.0,
        shuffle: bool = False,
        rng: Any = None,
        n_features: int | None = None,
    ) -> None:
        b = select_backend(matrix=matrix, handle=handle, backend=backend, big=big)
        if n_features is not None and int(n_features) != b.n_features:
            raise DimensionMismatch(
                f"declared n_features={n_features} but backend has {b.n_features}"
            )

        y = _as_labels(labels, b.n_samples)
        mode = SamplingMode.SHUFFLED if shuffle else SamplingMode.SEQUENTIAL
        sampler = Sampler(b.n_samples, mode=mode, n_passes=n_passes, rng=rng)

        self._backend = b
        self._labels = y
        self._sampler = sampler

        logger.debug(
            "data set ready: backend=%s n_samples=%d n_features=%d mode=%s n_iterations=%s",
            b.kind,
            b.n_samples,
            b.n_features,
            mode.value,
            sampler.n_iterations,
        )

    @classmethod
    def from_bundle(cls, bundle: DatasetBundle, **kwargs: Any) -> "DataSet":
        return cls(bundle.y, matrix=bundle.X, **kwargs)

    @property
    def n_samples(self) -> int:
        return self._backend.n_samples

    @property
    def n_features(self) -> int:
        return self._backend.n_features

    @property
    def big(self) -> bool:
        return isinstance(self._backend, OutOfCoreBackend)

    @property
    def backend(self) -> Backend:
        return self._backend

    @property
    def labels(self) -> np.ndarray:
        return self._labels

    @property
    def sampler(self) -> Sampler:
        return self._sampler

    @property
    def sampling_mode(self) -> SamplingMode:
        return self._sampler.mode

    @property
    def n_passes(self) -> float:
        return self._sampler.n_passes

    @property
    def n_iterations(self) -> int | None:
        return self._sampler.n_iterations

    def get_data_point(self, t: int) -> DataPoint:
        """t번째(1-based) iteration의 샘플."""
        i = self._sampler.physical_index(t)
        x = self._backend.get_row(i)
        return DataPoint(features=x, label=self._labels[i], row_index=i)

    def iter_data_points(self, start: int = 1, stop: int | None = None) -> Iterator[DataPoint]:
        """start..stop(포함) 구간을 차례로 돌려준다.

        stop이 없으면 SHUFFLED는 시퀀스 끝까지, SEQUENTIAL은 끝없이 이어진다.
        """
        if stop is None:
            stop = self.n_iterations
        ts = itertools.count(start) if stop is None else range(start, stop + 1)
        for t in ts:
            yield self.get_data_point(t)

    def __repr__(self) -> str:
        return (
            f"DataSet(backend={self._backend.kind}, n_samples={self.n_samples}, "
            f"n_features={self.n_features}, mode={self.sampling_mode.value})"
        )

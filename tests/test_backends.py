from __future__ import annotations

from pathlib import Path

import numpy as np
import pytest

from trainfeed.data import (
    ColumnMajorMatrix,
    DenseBackend,
    DimensionMismatch,
    IndexOutOfRange,
    OutOfCoreBackend,
)


class CountingHandle:
    """column 접근 횟수를 세는 fake 핸들."""

    def __init__(self, X: np.ndarray):
        self.data = np.asfortranarray(X)
        self.calls: list[int] = []

    @property
    def shape(self):
        return self.data.shape

    def column(self, j: int):
        self.calls.append(j)
        return self.data[:, j]


def test_dense_get_row_returns_copy(toy_xy) -> None:
    X, _ = toy_xy
    b = DenseBackend(X)

    row = b.get_row(1)
    row[0] = 99.0

    assert b.n_samples == 3
    assert b.n_features == 2
    assert b.get_row(1).tolist() == [3.0, 4.0]
    # 원본 수정도 backend에 영향 없음
    X[0, 0] = -1.0
    assert b.get_row(0).tolist() == [1.0, 2.0]


@pytest.mark.parametrize("i", [-1, 3, 100])
def test_dense_row_out_of_range(toy_xy, i: int) -> None:
    X, _ = toy_xy
    with pytest.raises(IndexOutOfRange):
        DenseBackend(X).get_row(i)


@pytest.mark.parametrize("bad", [np.ones(3), np.ones((2, 2, 2)), np.ones((0, 2)), np.ones((2, 0))])
def test_dense_rejects_bad_shapes(bad: np.ndarray) -> None:
    with pytest.raises(DimensionMismatch):
        DenseBackend(bad)


def test_out_of_core_reads_each_column(toy_xy) -> None:
    X, _ = toy_xy
    h = CountingHandle(X)
    b = OutOfCoreBackend(h)

    assert b.get_row(2).tolist() == [5.0, 6.0]
    assert h.calls == [0, 1]
    assert b.handle is h


def test_out_of_core_row_out_of_range(toy_xy) -> None:
    X, _ = toy_xy
    with pytest.raises(IndexOutOfRange):
        OutOfCoreBackend(CountingHandle(X)).get_row(3)


def test_out_of_core_rejects_non_2d_handle() -> None:
    class Cube:
        shape = (2, 2, 2)

        def column(self, j):
            raise AssertionError("never read")

    with pytest.raises(DimensionMismatch):
        OutOfCoreBackend(Cube())


def test_column_major_file_roundtrip(tmp_path: Path) -> None:
    rng = np.random.default_rng(0)
    X = rng.normal(size=(20, 4))
    p = tmp_path / "x.f64"

    with ColumnMajorMatrix.create(p, X) as h:
        assert h.shape == (20, 4)
        assert h.nrow == 20
        assert h.ncol == 4
        assert h.path == p
        assert np.array_equal(h.column(2), X[:, 2])

    # Fortran order: 첫 column이 파일 맨 앞
    raw = np.fromfile(p, dtype=np.float64)
    assert np.array_equal(raw[:20], X[:, 0])

    h2 = ColumnMajorMatrix.open(p, shape=(20, 4))
    dense = DenseBackend(X)
    ooc = OutOfCoreBackend(h2)
    for i in range(20):
        assert np.array_equal(ooc.get_row(i), dense.get_row(i))


def test_column_major_closed_handle(tmp_path: Path) -> None:
    h = ColumnMajorMatrix.create(tmp_path / "x.f64", np.ones((2, 2)))
    h.close()

    assert h.closed
    with pytest.raises(ValueError):
        h.column(0)


def test_column_major_open_missing_file(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        ColumnMajorMatrix.open(tmp_path / "nope.f64", shape=(2, 2))


def test_column_major_open_read_only(tmp_path: Path) -> None:
    h = ColumnMajorMatrix.create(tmp_path / "x.f64", np.ones((3, 2)))
    with pytest.raises(ValueError):
        h.column(0)[0] = 5.0


def test_backend_without_get_row_cannot_be_built() -> None:
    from trainfeed.data.backends import _RowBackend

    class Incomplete(_RowBackend):
        kind = "incomplete"

    with pytest.raises(TypeError):
        Incomplete()

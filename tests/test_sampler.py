from __future__ import annotations

import numpy as np
import pytest

from trainfeed.data import IndexOutOfRange, Sampler, SamplingMode, draw_indices, shuffled_length


@pytest.mark.parametrize("n_samples", [1, 3, 7])
def test_sequential_index_is_modulo(n_samples: int) -> None:
    s = Sampler(n_samples, mode=SamplingMode.SEQUENTIAL)

    got = [s.physical_index(t) for t in range(1, 4 * n_samples + 1)]

    assert got == [(t - 1) % n_samples for t in range(1, 4 * n_samples + 1)]
    assert got[:n_samples] == got[n_samples : 2 * n_samples]
    assert s.n_iterations is None
    assert s.indices is None


def test_sequential_never_fails_for_large_t() -> None:
    s = Sampler(5)
    assert s.physical_index(10**12 + 1) == 0


@pytest.mark.parametrize(
    "n_samples, n_passes, expected",
    [(3, 2.0, 6), (3, 2.5, 8), (3, 0.5, 2), (4, 1.0, 4), (5, 0.0, 0)],
)
def test_shuffled_length_rounds_up(n_samples: int, n_passes: float, expected: int) -> None:
    assert shuffled_length(n_samples, n_passes) == expected

    s = Sampler(n_samples, mode="shuffled", n_passes=n_passes, rng=0)
    assert s.n_iterations == expected
    assert s.indices is not None
    assert s.indices.shape == (expected,)


def test_shuffled_indices_in_range_and_with_replacement() -> None:
    s = Sampler(4, mode=SamplingMode.SHUFFLED, n_passes=50, rng=np.random.default_rng(1))
    idx = s.indices

    assert idx is not None
    assert idx.min() >= 0
    assert idx.max() < 4
    # 복원추출이므로 첫 pass가 permutation일 필요는 없고, 전체 200개 중 중복은 반드시 있다
    assert len(np.unique(idx)) < idx.shape[0]
    assert [s.physical_index(t) for t in range(1, 201)] == idx.tolist()


def test_injected_generator_is_reproducible() -> None:
    a = draw_indices(10, 3.0, np.random.default_rng(7))
    b = draw_indices(10, 3.0, 7)
    expected = np.random.default_rng(7).integers(0, 10, size=30, dtype=np.int64)

    assert np.array_equal(a, b)
    assert np.array_equal(a, expected)


def test_shuffled_indices_are_read_only() -> None:
    s = Sampler(3, mode=SamplingMode.SHUFFLED, n_passes=1, rng=0)
    assert s.indices is not None
    with pytest.raises(ValueError):
        s.indices[0] = 1


def test_shuffled_past_end_fails() -> None:
    s = Sampler(3, mode=SamplingMode.SHUFFLED, n_passes=2, rng=0)

    s.physical_index(6)
    with pytest.raises(IndexOutOfRange):
        s.physical_index(7)


def test_zero_passes_never_wraps() -> None:
    s = Sampler(3, mode=SamplingMode.SHUFFLED, n_passes=0)

    assert s.n_iterations == 0
    with pytest.raises(IndexOutOfRange):
        s.physical_index(1)


@pytest.mark.parametrize("t", [0, -1, -100])
def test_iteration_below_one_fails(t: int) -> None:
    for mode in SamplingMode:
        with pytest.raises(IndexOutOfRange):
            Sampler(3, mode=mode, n_passes=1, rng=0).physical_index(t)


@pytest.mark.parametrize("t", [1.0, "1", True])
def test_non_integer_iteration_rejected(t: object) -> None:
    with pytest.raises(TypeError):
        Sampler(3).physical_index(t)  # type: ignore[arg-type]


def test_numpy_integer_iteration_accepted() -> None:
    assert Sampler(3).physical_index(np.int64(5)) == 1


@pytest.mark.parametrize("n_passes", [-0.5, float("nan"), float("inf")])
def test_invalid_passes_rejected(n_passes: float) -> None:
    with pytest.raises(ValueError):
        Sampler(3, mode=SamplingMode.SHUFFLED, n_passes=n_passes)
    with pytest.raises(ValueError):
        Sampler(3, mode=SamplingMode.SEQUENTIAL, n_passes=n_passes)


def test_invalid_sample_count_rejected() -> None:
    with pytest.raises(ValueError):
        Sampler(0)


def test_default_generator_is_not_fixed_seed() -> None:
    # rng를 주지 않으면 OS 엔트로피로 시드되므로 두 시퀀스가 같을 수 없다 (확률 1000^-1000)
    a = Sampler(1000, mode=SamplingMode.SHUFFLED, n_passes=1)
    b = Sampler(1000, mode=SamplingMode.SHUFFLED, n_passes=1)

    assert a.indices is not None and b.indices is not None
    assert a.indices.shape == b.indices.shape == (1000,)
    assert not np.array_equal(a.indices, b.indices)
    assert not np.array_equal(draw_indices(1000, 1.0), draw_indices(1000, 1.0))

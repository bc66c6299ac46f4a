from __future__ import annotations

import logging
import math
import operator
from enum import Enum
from typing import Any

import numpy as np

from trainfeed.common.errors import IndexOutOfRange

logger = logging.getLogger(__name__)


class SamplingMode(str, Enum):
    SEQUENTIAL = "sequential"
    SHUFFLED = "shuffled"


def shuffled_length(n_samples: int, n_passes: float) -> int:
    """ceil(n_samples * n_passes). 소수 pass도 항상 올림."""
    if not math.isfinite(n_passes) or n_passes < 0:
        raise ValueError(f"n_passes must be a finite number >= 0, got {n_passes}")
    return int(math.ceil(n_samples * n_passes))


def draw_indices(n_samples: int, n_passes: float, rng: Any = None) -> np.ndarray:
    """[0, n_samples) 에서 복원추출(with replacement)로 index 시퀀스를 뽑는다.

    permutation이 아니므로 한 pass 안에서도 중복/누락이 생길 수 있다.
    rng가 없으면 OS 엔트로피로 시드된 Generator를 쓴다.
    """
    gen = np.random.default_rng(rng)
    size = shuffled_length(n_samples, n_passes)
    idx = gen.integers(0, n_samples, size=size, dtype=np.int64)
    idx.setflags(write=False)
    return idx


class Sampler:
    """1-based iteration 번호 t를 물리 row index로 바꾼다.

    - SEQUENTIAL: (t - 1) % n_samples, 끝없이 반복
    - SHUFFLED: 생성 시 한 번 뽑아 둔 index 시퀀스의 (t - 1)번째. 길이를 넘으면 실패
    """

    def __init__(
        self,
        n_samples: int,
        *,
        mode: SamplingMode | str = SamplingMode.SEQUENTIAL,
        n_passes: float = 1.0,
        rng: Any = None,
    ) -> None:
        n_samples = operator.index(n_samples)
        if n_samples <= 0:
            raise ValueError(f"n_samples must be > 0, got {n_samples}")
        n_passes = float(n_passes)
        if not math.isfinite(n_passes) or n_passes < 0:
            raise ValueError(f"n_passes must be a finite number >= 0, got {n_passes}")

        self._n_samples = n_samples
        self._n_passes = n_passes
        self._mode = SamplingMode(mode)
        self._indices: np.ndarray | None = None

        if self._mode is SamplingMode.SHUFFLED:
            self._indices = draw_indices(n_samples, n_passes, rng)
            logger.debug(
                "shuffled index sequence drawn: n_samples=%d n_passes=%s length=%d",
                n_samples,
                n_passes,
                self._indices.shape[0],
            )

    @property
    def mode(self) -> SamplingMode:
        return self._mode

    @property
    def n_samples(self) -> int:
        return self._n_samples

    @property
    def n_passes(self) -> float:
        return self._n_passes

    @property
    def n_iterations(self) -> int | None:
        """허용되는 최대 t. SEQUENTIAL이면 제한 없음(None)."""
        if self._indices is None:
            return None
        return int(self._indices.shape[0])

    @property
    def indices(self) -> np.ndarray | None:
        return self._indices

    def physical_index(self, t: int) -> int:
        if isinstance(t, bool):
            raise TypeError("iteration must be an integer, got bool")
        t = operator.index(t)
        if t < 1:
            raise IndexOutOfRange(f"iteration must be >= 1, got {t}")

        p = t - 1
        if self._indices is None:
            return p % self._n_samples

        if p >= self._indices.shape[0]:
            raise IndexOutOfRange(
                f"iteration {t} exceeds shuffled sequence length {self._indices.shape[0]}"
            )
        return int(self._indices[p])

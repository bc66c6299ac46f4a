from __future__ import annotations

import sys
from pathlib import Path

import numpy as np
import pytest

# repo root / src 를 pytest import 경로에 강제로 추가
ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"

src_str = str(SRC)
if src_str not in sys.path:
    sys.path.insert(0, src_str)


@pytest.fixture
def toy_xy() -> tuple[np.ndarray, np.ndarray]:
    X = np.array([[1.0, 2.0], [3.0, 4.0], [5.0, 6.0]])
    y = np.array([0.0, 1.0, 0.0])
    return X, y

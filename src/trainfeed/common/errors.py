from __future__ import annotations


class TrainfeedError(Exception):
    pass


class IndexOutOfRange(TrainfeedError, IndexError):
    """iteration 번호나 물리 row index가 허용 범위를 벗어남."""


class DimensionMismatch(TrainfeedError, ValueError):
    """행렬/레이블 shape가 서로 맞지 않음 (생성 시점에 검증)."""

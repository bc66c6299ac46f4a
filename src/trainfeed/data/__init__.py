from __future__ import annotations

from trainfeed.common.errors import DimensionMismatch, IndexOutOfRange, TrainfeedError
from trainfeed.data.backends import (
    ColumnHandle,
    ColumnMajorMatrix,
    DenseBackend,
    OutOfCoreBackend,
)
from trainfeed.data.data_set import DataSet, select_backend
from trainfeed.data.point import DataPoint
from trainfeed.data.registry import (
    BackendFactory,
    BackendSource,
    DataSetSpec,
    build_data_set,
    list_backends,
    make_backend,
    register_backend,
)
from trainfeed.data.sampler import Sampler, SamplingMode, draw_indices, shuffled_length

__all__ = [
    "BackendFactory",
    "BackendSource",
    "ColumnHandle",
    "ColumnMajorMatrix",
    "DataPoint",
    "DataSet",
    "DataSetSpec",
    "DenseBackend",
    "DimensionMismatch",
    "IndexOutOfRange",
    "OutOfCoreBackend",
    "Sampler",
    "SamplingMode",
    "TrainfeedError",
    "build_data_set",
    "draw_indices",
    "list_backends",
    "make_backend",
    "register_backend",
    "select_backend",
    "shuffled_length",
]

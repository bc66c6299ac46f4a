from __future__ import annotations

from trainfeed.sources.bundle import DatasetBundle
from trainfeed.sources.csv_loader import load_csv_bundle
from trainfeed.sources.fingerprint import sha256_file

__all__ = [
    "DatasetBundle",
    "load_csv_bundle",
    "sha256_file",
]

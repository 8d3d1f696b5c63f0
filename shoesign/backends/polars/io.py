"""
shoesign.backends.polars.io
===========================

Pluggable persistence for Polars frames via **sinks/sources**.

Used to persist the ledger frame and the per-stream prior table.

- Parquet file, CSV file

No ledger semantics here, only I/O.

Doctest (smoke):
>>> import polars as pl
>>> from shoesign.backends.polars.io import ParquetFileSink, ParquetFileSource
>>> df = pl.DataFrame({"x":[1,2,3]})
>>> ParquetFileSink("_tmp.parquet").write(df)  # doctest: +SKIP
>>> _ = ParquetFileSource("_tmp.parquet").read()  # doctest: +SKIP
"""

from __future__ import annotations
import os
from typing import Protocol

import polars as pl


class FrameSink(Protocol):
    """A write-only sink: DataFrame -> storage."""
    def write(self, df: pl.DataFrame) -> None: ...


class FrameSource(Protocol):
    """A read-only source: storage -> DataFrame."""
    def read(self) -> pl.DataFrame: ...


def _ensure_parent(path: str) -> None:
    parent = os.path.dirname(path)
    if parent:
        os.makedirs(parent, exist_ok=True)


class ParquetFileSink:
    def __init__(self, path: str) -> None:
        self.path = path
    def write(self, df: pl.DataFrame) -> None:
        _ensure_parent(self.path)
        df.write_parquet(self.path)


class CsvFileSink:
    def __init__(self, path: str) -> None:
        self.path = path
    def write(self, df: pl.DataFrame) -> None:
        _ensure_parent(self.path)
        df.write_csv(self.path)


class ParquetFileSource:
    def __init__(self, path: str) -> None:
        self.path = path
    def read(self) -> pl.DataFrame:
        return pl.read_parquet(self.path)


class CsvFileSource:
    def __init__(self, path: str) -> None:
        self.path = path
    def read(self) -> pl.DataFrame:
        return pl.read_csv(self.path)

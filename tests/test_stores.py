import polars as pl
import pytest

from shoesign.backends.polars.io import CsvFileSink, CsvFileSource, ParquetFileSink, ParquetFileSource
from shoesign.core.names import Category
from shoesign.runtime.stores import PriorStore


def test_unknown_stream_gets_default_copy():
    store = PriorStore()
    prior = store.get("bac-9")
    prior[Category.B] = 99.0
    assert store.get("bac-9")[Category.B] == 1.0
    assert "bac-9" not in store


def test_custom_default_prior():
    store = PriorStore({"B": 2, "P": 3, "T": 0.5})
    assert store.get("x") == {Category.B: 2.0, Category.P: 3.0, Category.T: 0.5}


def test_fold_formula():
    store = PriorStore()
    new = store.fold("bac-1", {Category.B: 11, Category.P: 6, Category.T: 1}, factor=0.2)
    assert new == pytest.approx({Category.B: 3.2, Category.P: 2.2, Category.T: 1.2})
    assert store.get("bac-1") == new
    assert len(store) == 1 and list(store) == ["bac-1"]


def test_fold_rejects_negative_factor():
    with pytest.raises(ValueError):
        PriorStore().fold("bac-1", {"B": 1, "P": 1, "T": 1}, factor=-0.1)


def test_to_frame_schema():
    store = PriorStore()
    store.fold("a", {"B": 5, "P": 0, "T": 0}, factor=0.2)
    df = store.to_frame()
    assert df.schema == {"stream_id": pl.Utf8, "B": pl.Float64, "P": pl.Float64, "T": pl.Float64}
    assert df.row(0) == ("a", pytest.approx(2.0), 1.0, 1.0)


@pytest.mark.parametrize(
    "sink_cls,source_cls,name",
    [(ParquetFileSink, ParquetFileSource, "priors.parquet"), (CsvFileSink, CsvFileSource, "priors.csv")],
)
def test_autosave_and_load(tmp_path, sink_cls, source_cls, name):
    path = str(tmp_path / "nested" / name)
    store = PriorStore(sink=sink_cls(path))
    store.fold("bac-1", {"B": 10, "P": 5, "T": 1}, factor=0.2)
    store.fold("bac-2", {"B": 0, "P": 5, "T": 0}, factor=0.2)

    restored = PriorStore.load(source_cls(path))
    assert restored.get("bac-1") == pytest.approx(store.get("bac-1"))
    assert restored.get("bac-2") == pytest.approx(store.get("bac-2"))


def test_load_rejects_missing_columns(tmp_path):
    path = str(tmp_path / "bad.parquet")
    ParquetFileSink(path).write(pl.DataFrame({"stream_id": ["a"], "B": [1.0]}))
    with pytest.raises(ValueError, match="missing columns"):
        PriorStore.load(ParquetFileSource(path))

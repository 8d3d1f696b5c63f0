"""
Polars backend: an in-memory ledger plus Parquet / CSV sinks and sources.
"""

"""Row, schema and index-key encodings plus EXPLAIN estimation for a small database engine."""

__version__ = "0.59.0"
__all__ = [
    "annotate",
    "codec",
    "estimates",
    "indexkey",
    "schema",
    "schemacodec",
    "selectivity",
]
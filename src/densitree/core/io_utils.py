"""
Reading and writing coordinate tables.

Reconciled trees are exported as one long table (one row per node, a
`tree` column telling the trees apart) and can be read back as plot
input. CSV and TSV may be gzip-compressed on read.
"""

from __future__ import annotations

from pathlib import Path
from typing import Literal

import polars as pl

OutputFormat = Literal["csv", "tsv", "parquet"]

_SEPARATORS = {"csv": ",", "tsv": "\t"}


def _table_suffix(path: Path) -> str:
    """File suffix ignoring a trailing .gz, lower-cased."""
    name = path.name.lower()
    if name.endswith(".gz"):
        name = name[:-3]
    return Path(name).suffix


def output_format_for(path: Path) -> OutputFormat:
    """Table format implied by a file name; anything unrecognised is CSV."""
    suffix = path.suffix.lower()
    if suffix == ".parquet":
        return "parquet"
    if suffix == ".tsv":
        return "tsv"
    return "csv"


def write_dataframe(
    df: pl.DataFrame,
    path: Path,
    output_format: OutputFormat = "csv",
) -> None:
    """
    Write a coordinate table, creating missing parent directories.

    Parquet output is zstd-compressed.

    Example:
        >>> write_dataframe(result.combined(), Path("coords.parquet"), "parquet")
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    if output_format == "parquet":
        df.write_parquet(path, compression="zstd")
    else:
        df.write_csv(path, separator=_SEPARATORS[output_format])


def read_dataframe(
    path: Path,
    schema: dict[str, pl.DataType] | None = None,
) -> pl.DataFrame:
    """
    Read a coordinate table written by write_dataframe().

    Accepts .csv, .tsv and .parquet, plus .csv.gz and .tsv.gz.

    Args:
        path: Input file path.
        schema: Column types for CSV/TSV input. Listed columns are read
            as text and cast to these types instead of being inferred, so
            labels such as "001" keep their leading zeros. Columns not
            listed stay text.

    Raises:
        ValueError: If the extension is none of these.
    """
    suffix = _table_suffix(path)
    if suffix == ".parquet" and not path.name.lower().endswith(".gz"):
        return pl.read_parquet(path)
    if suffix in (".csv", ".tsv"):
        separator = _SEPARATORS[suffix[1:]]
        if schema is None:
            return pl.read_csv(path, separator=separator)
        df = pl.read_csv(path, separator=separator, infer_schema=False)
        return df.with_columns(
            _cast_text(name, dtype) for name, dtype in schema.items() if name in df.columns
        )
    msg = f"Unrecognized file format: {path}"
    raise ValueError(msg)


def _cast_text(name: str, dtype: pl.DataType) -> pl.Expr:
    """Cast a text column; booleans are written as true/false."""
    if dtype == pl.Boolean:
        return pl.col(name).str.to_lowercase() == "true"
    return pl.col(name).cast(dtype)

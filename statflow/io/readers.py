"""Tabular readers (CSV/TSV/TXT and in-memory frames)."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable, Mapping, Optional, Union

import pandas as pd

from statflow.contracts.choices import ColumnKind
from statflow.core.dataset import Dataset

logger = logging.getLogger(__name__)


def _infer_delimiter(sample_line: str) -> str:
    if "\t" in sample_line:
        return "\t"
    if "," in sample_line:
        return ","
    if ";" in sample_line:
        return ";"
    return r"\s+"


def read_csv(
    file_path: Union[str, Path],
    *,
    delimiter: Optional[str] = None,
    kinds: Optional[Mapping[str, ColumnKind]] = None,
    levels: Optional[Mapping[str, Iterable[str]]] = None,
    encoding: Optional[str] = None,
    drop_columns: Iterable[str] = (),
) -> Dataset:
    """Load a delimited table with a header row into a :class:`Dataset`.

    - If delimiter is None, it is inferred from the first line.
    - Column kinds are inferred (text -> nominal) unless given in ``kinds``.
    """
    path = Path(file_path)
    if not path.exists():
        raise FileNotFoundError(f"Table file not found: {path}")

    sep = delimiter
    if sep is None:
        with path.open("r", encoding=encoding or "utf-8", errors="replace") as fh:
            sep = _infer_delimiter(fh.readline())
    if sep == "\\t":
        sep = "\t"

    df = pd.read_csv(path.as_posix(), sep=sep, encoding=encoding or "utf-8", engine="python")
    drop = list(drop_columns)
    if drop:
        df = df.drop(columns=drop)

    ds = Dataset.from_frame(df, kinds=kinds, levels=levels)
    logger.info("Loaded %s: %d rows, %d columns", path.name, len(ds), len(ds.columns))
    return ds


def from_frame(
    frame: pd.DataFrame,
    *,
    kinds: Optional[Mapping[str, ColumnKind]] = None,
    levels: Optional[Mapping[str, Iterable[str]]] = None,
) -> Dataset:
    return Dataset.from_frame(frame, kinds=kinds, levels=levels)


__all__ = ["read_csv", "from_frame"]

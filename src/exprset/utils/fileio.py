"""
Crash-safe writes for set directories.

Each output goes to a hidden temporary file in the destination directory and
is renamed over the target only after it has been written completely, so a
manifest never points at a truncated table.
"""

from __future__ import annotations

import json
import os
import tempfile
from contextlib import contextmanager
from pathlib import Path
from typing import IO, Any, Iterator, Union

import pandas as pd

__all__ = ['atomic_write_json', 'atomic_write_csv', 'replacing']

PathLike = Union[str, os.PathLike]


@contextmanager
def replacing(path: PathLike) -> Iterator[IO[str]]:
    """
    Open a text handle whose contents replace *path* on successful exit.

    On any exception the partial file is removed and *path* is left as it was.

    Examples:
        >>> with replacing("results/eset/notes.txt") as fh:
        ...     fh.write("pilot run")
    """
    target = Path(path)
    fd, staged = tempfile.mkstemp(
        prefix=f".{target.name}.", suffix=".part", dir=target.parent
    )
    try:
        with os.fdopen(fd, "w", encoding="utf-8", newline="") as fh:
            yield fh
        os.replace(staged, target)
    except BaseException:
        if os.path.exists(staged):
            os.unlink(staged)
        raise


def atomic_write_json(path: PathLike, payload: Any, *, indent: int = 2) -> None:
    """Serialise *payload* as JSON and move it into place."""
    with replacing(path) as fh:
        json.dump(payload, fh, indent=indent)
        fh.write("\n")


def atomic_write_csv(path: PathLike, frame: pd.DataFrame, **to_csv_kwargs: Any) -> None:
    """Write *frame* as CSV; extra keyword arguments go to ``DataFrame.to_csv``."""
    with replacing(path) as fh:
        frame.to_csv(fh, **to_csv_kwargs)

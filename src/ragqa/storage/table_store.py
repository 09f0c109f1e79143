"""
Table Store - persist an EmbeddingStore as a CSV table.

Format:
    text,embedding
    "Passage text...","[0.0123, -0.0456, ...]"

The ``embedding`` cell holds a JSON array of floats. Vectors round-trip by
value (Python's float repr is shortest-exact), not necessarily byte-for-byte
across platforms.

A small JSON manifest describing the build is written next to the table.
"""

import csv
import json
import logging
import math
import os
import sys
import tempfile
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Sequence, TextIO, Union

from ..core.exceptions import EmbeddingDimensionError, SerializationError
from ..retrieval.store import EmbeddingStore

logger = logging.getLogger(__name__)

TEXT_COLUMN = "text"
EMBEDDING_COLUMN = "embedding"
MANIFEST_SUFFIX = ".manifest.json"


def encode_vector(vector: Sequence[float]) -> str:
    """Encode a vector as a JSON array string."""
    return json.dumps([float(v) for v in vector], separators=(",", ":"))


def decode_vector(cell: str) -> List[float]:
    """
    Decode a JSON array string into a vector.

    Raises:
        SerializationError: If the cell is not a non-empty JSON array of finite numbers
    """
    try:
        values = json.loads(cell)
    except (TypeError, json.JSONDecodeError) as e:
        raise SerializationError(f"Malformed vector encoding: {e}") from e

    if not isinstance(values, list) or not values:
        raise SerializationError("Vector encoding must be a non-empty JSON array")

    vector = []
    for value in values:
        # bool is an int subclass but never a valid component
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise SerializationError(f"Vector component is not a number: {value!r}")
        value = float(value)
        if not math.isfinite(value):
            raise SerializationError(f"Vector component is not finite: {value!r}")
        vector.append(value)

    return vector


def save_store(store: EmbeddingStore, path: Union[str, Path]) -> Path:
    """
    Write the store to a CSV table.

    Args:
        store: Embedding store to persist
        path: Destination table path (parent directories are created)

    Returns:
        Path of the written table

    Raises:
        SerializationError: If the table cannot be written
    """
    out_path = Path(path)

    def write_rows(f):
        writer = csv.writer(f)
        writer.writerow([TEXT_COLUMN, EMBEDDING_COLUMN])
        for record in store:
            writer.writerow([record.text, encode_vector(record.vector)])

    _write_atomic(out_path, write_rows, newline="")

    logger.info(f"Saved {len(store)} passages to {out_path}")
    return out_path


def load_store(path: Union[str, Path]) -> EmbeddingStore:
    """
    Read a CSV table into an EmbeddingStore.

    Raises:
        SerializationError: If the file is unreadable or any row is malformed
    """
    in_path = Path(path)
    _raise_field_size_limit()

    try:
        with open(in_path, "r", encoding="utf-8", newline="") as f:
            reader = csv.DictReader(f)
            columns = reader.fieldnames or []
            missing = [c for c in (TEXT_COLUMN, EMBEDDING_COLUMN) if c not in columns]
            if missing:
                raise SerializationError(
                    f"Table {in_path} is missing column(s): {', '.join(missing)}"
                )

            store = EmbeddingStore()
            # Row 1 is the header
            for row_number, row in enumerate(reader, start=2):
                text = row.get(TEXT_COLUMN)
                if not text:
                    raise SerializationError(f"Table {in_path} row {row_number} has no text")
                cell = row.get(EMBEDDING_COLUMN)
                if cell is None:
                    raise SerializationError(f"Table {in_path} row {row_number} has no embedding")
                try:
                    vector = decode_vector(cell)
                    store.append(text, vector)
                except (SerializationError, EmbeddingDimensionError) as e:
                    raise SerializationError(f"Table {in_path} row {row_number}: {e}") from e

    except OSError as e:
        raise SerializationError(f"Unable to read table {in_path}: {e}") from e
    except csv.Error as e:
        raise SerializationError(f"Malformed table {in_path}: {e}") from e
    except UnicodeDecodeError as e:
        raise SerializationError(f"Table {in_path} is not valid UTF-8: {e}") from e

    logger.info(f"Loaded {len(store)} passages from {in_path} (dimension={store.dimension})")
    return store


def manifest_path_for(table_path: Union[str, Path]) -> Path:
    table_path = Path(table_path)
    return table_path.with_name(table_path.name + MANIFEST_SUFFIX)


def write_manifest(table_path: Union[str, Path], manifest: Dict[str, Any]) -> Path:
    """
    Write the build manifest next to the table.

    Args:
        table_path: Path of the table the manifest describes
        manifest: Build details (run id, model, counts, policy)

    Returns:
        Path of the manifest file

    Raises:
        SerializationError: If the manifest cannot be written
    """
    path = manifest_path_for(table_path)
    payload = {"created_utc": datetime.now(timezone.utc).isoformat(), **manifest}

    _write_atomic(path, lambda f: json.dump(payload, f, indent=2))

    logger.debug(f"Wrote build manifest to {path}")
    return path


def _write_atomic(path: Path, write: Callable[[TextIO], None], newline: Optional[str] = None) -> None:
    """
    Write a text file through a temp file in the same directory, then rename.

    A failed write leaves any existing file at ``path`` untouched.
    """
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    except OSError as e:
        raise SerializationError(f"Unable to write {path}: {e}") from e

    try:
        with os.fdopen(fd, "w", encoding="utf-8", newline=newline) as f:
            write(f)
        os.replace(tmp_path, path)
    except OSError as e:
        # Clean up partial temp file on failure
        try:
            os.unlink(tmp_path)
        except OSError:
            logger.warning(f"Could not remove temp file {tmp_path}")
        raise SerializationError(f"Unable to write {path}: {e}") from e


def _raise_field_size_limit() -> None:
    """Large embeddings exceed csv's default 128 KiB field limit."""
    limit = sys.maxsize
    while True:
        try:
            csv.field_size_limit(limit)
            return
        except OverflowError:
            limit //= 10

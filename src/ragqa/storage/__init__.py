"""
Persistence for the passage table and its build manifest.
"""

from .table_store import (
    decode_vector,
    encode_vector,
    load_store,
    manifest_path_for,
    save_store,
    write_manifest,
)

__all__ = [
    "decode_vector",
    "encode_vector",
    "load_store",
    "manifest_path_for",
    "save_store",
    "write_manifest",
]

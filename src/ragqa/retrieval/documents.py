"""
Document ingestion - read a directory of text files for indexing.

Each regular file directly under the source directory is one document.
Any failure aborts the build: a partially read corpus is never indexed.
"""

import logging
from pathlib import Path
from typing import List, Union

from ..contracts.retrieval_contracts import SourceDocument
from ..core.exceptions import IngestionError

logger = logging.getLogger(__name__)


def load_documents(directory: Union[str, Path], encoding: str = "utf-8") -> List[SourceDocument]:
    """
    Read every file in a directory as one document.

    Files are read in sorted name order so that builds are reproducible.
    Subdirectories are not descended into.

    Args:
        directory: Directory containing the source documents
        encoding: Text encoding (decoding errors are fatal)

    Returns:
        List of SourceDocument records

    Raises:
        IngestionError: If the directory is missing or any file cannot be read
    """
    root = Path(directory)
    if not root.is_dir():
        raise IngestionError(f"Source directory not found: {root}", path=str(root))

    documents = []
    for path in sorted(p for p in root.iterdir() if p.is_file()):
        try:
            with open(path, "r", encoding=encoding) as f:
                text = f.read()
        except UnicodeDecodeError as e:
            raise IngestionError(f"Document {path} is not valid {encoding}: {e}", path=str(path)) from e
        except OSError as e:
            raise IngestionError(f"Unable to read document {path}: {e}", path=str(path)) from e

        documents.append(SourceDocument(path=str(path), text=text))

    logger.info(f"Loaded {len(documents)} documents from {root}")
    return documents

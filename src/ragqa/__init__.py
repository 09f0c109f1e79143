"""
Retrieval-Augmented Question Answering

Splits a corpus of text documents into passages, embeds each passage,
persists passages with their vectors in a table, and answers questions by
ranking passages against the question, packing the most related ones into a
token budget, and forwarding the assembled prompt to a completion model.

Key components:
- core/: Configuration types, exceptions, and logging utilities
- config/: YAML / environment configuration loading
- contracts/: Data records shared across the pipeline
- retrieval/: Ingestion, segmentation, embedding store, ranking, context assembly
- runners/: Answerer and build/query orchestration
- storage/: Persisted passage table
- providers/: Embedding, completion, and tokenizer clients
- cli/: Command line entry point
"""

__version__ = "0.1.0"

"""
RAG (Retrieval Augmented Generation) Module

This module provides:
- Sentence-based document chunking
- Embedding generation (OpenAI text-embedding-3-small)
- Vector store for document chunks (ChromaDB)
- Document ingestion and per-document retrieval
"""

from .chunker import split_sentences, split_into_chunks

from .embeddings import Embedder

from .vectorstore import VectorStore, create_chroma_client

from .ingestion import DocumentIngestor, chunk_id

from .retrieval import Retriever

__all__ = [
    # Chunking
    "split_sentences",
    "split_into_chunks",
    # Embeddings
    "Embedder",
    # Vector store
    "VectorStore",
    "create_chroma_client",
    # Ingestion
    "DocumentIngestor",
    "chunk_id",
    # Retrieval
    "Retriever",
]

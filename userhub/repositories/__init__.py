"""
Repositories package - handles all database reads
"""

from userhub.repositories.document_repository import DocumentRepository

__all__ = [
    'DocumentRepository',
]

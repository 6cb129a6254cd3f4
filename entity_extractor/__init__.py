"""Document entity extraction and ground-truth reconciliation"""
from .models import Document, EntityRecord, EntityType, ReconciliationResult, Relation

__version__ = "0.1.0"

__all__ = [
    "Document",
    "EntityRecord",
    "EntityType",
    "ReconciliationResult",
    "Relation",
]

"""Data model shared by the extractor, the CSV codec and reconciliation"""
from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class Relation(str, Enum):
    """Relation linking an identifier to the entity that holds it"""
    IDENTIFIER_OF = "PAN_Of"


class EntityType(str, Enum):
    ORGANISATION = "Organisation"
    INDIVIDUAL = "Individual"


class EntityRecord(BaseModel):
    """One identifier and the named entity it belongs to.

    Field aliases are the wire keys used in model responses and API payloads.
    """
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    identifier: str = Field(..., alias="pan", description="Permanent Account Number")
    relation: Relation
    entity_name: str = Field(..., alias="entityName")
    entity_type: EntityType = Field(..., alias="entityType")


class ReconciliationResult(BaseModel):
    """Outcome of comparing extracted records against ground truth"""
    model_config = ConfigDict(frozen=True)

    matches: List[EntityRecord] = Field(default_factory=list)
    extractor_only: List[EntityRecord] = Field(default_factory=list)
    ground_truth_only: List[EntityRecord] = Field(default_factory=list)

    def summary(self) -> Dict[str, int]:
        return {
            "matches": len(self.matches),
            "extractor_only": len(self.extractor_only),
            "ground_truth_only": len(self.ground_truth_only),
        }


class Document(BaseModel):
    """Raw uploaded document"""
    model_config = ConfigDict(frozen=True)

    content: bytes
    mime_type: str
    filename: Optional[str] = None

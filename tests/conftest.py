import json
from typing import Any, Dict, List, Optional

import fitz
import pytest

from entity_extractor.models import EntityRecord, EntityType, Relation


class StubCapability:
    """Extraction capability answering with a canned payload"""

    def __init__(self, payload: str = "[]", error: Optional[Exception] = None):
        self.payload = payload
        self.error = error
        self.prompts: List[str] = []
        self.schemas: List[Dict[str, Any]] = []

    async def generate(self, prompt: str, response_schema: Dict[str, Any]) -> str:
        self.prompts.append(prompt)
        self.schemas.append(response_schema)
        if self.error is not None:
            raise self.error
        return self.payload


def make_record(identifier: str, name: str, entity_type: EntityType = EntityType.INDIVIDUAL) -> EntityRecord:
    return EntityRecord(
        identifier=identifier,
        relation=Relation.IDENTIFIER_OF,
        entity_name=name,
        entity_type=entity_type,
    )


def make_pdf(pages: List[str]) -> bytes:
    doc = fitz.open()
    for text in pages:
        page = doc.new_page()
        page.insert_text((72, 72), text)
    data = doc.tobytes()
    doc.close()
    return data


@pytest.fixture
def sample_payload() -> str:
    return json.dumps([
        {"pan": "ABCDE1234F", "relation": "PAN_Of", "entityName": "RAMESH KUMAR", "entityType": "Individual"},
        {"pan": "PQRSX6789K", "relation": "PAN_Of", "entityName": "SHREE GANESH TRADERS", "entityType": "Organisation"},
    ])

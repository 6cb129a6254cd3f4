"""Entity extraction orchestrator"""
import json
import logging
import re
from typing import Any, Dict, List, Optional

from pydantic import TypeAdapter, ValidationError

from .errors import EmptyResponse, MalformedResponse, ServiceError
from .llm_client import ExtractionCapability, OpenAIExtractionClient
from .models import EntityRecord, EntityType, Relation

logger = logging.getLogger(__name__)

# Case-sensitive substrings marking a name as an organisation
ORGANISATION_KEYWORDS = (
    "PVT. LTD.",
    "LTD.",
    "SERVICES",
    "AGENCIES",
    "TRADERS",
    "COMMERCIALS",
    "UDYOG",
    "ENTERPRISES",
    "CONSULTANTS",
    "DEVELOPERS",
    "BUILDERS",
    "LOGISTICS",
    "MARKETING",
    "MERCHANTS",
)

# Hindu Undivided Family suffix, kept in the name
FAMILY_UNIT_TAG = "(HUF)"

ENTITY_SCHEMA: Dict[str, Any] = {
    "type": "array",
    "items": {
        "type": "object",
        "properties": {
            "pan": {
                "type": "string",
                "description": "The 10-character Permanent Account Number (PAN). Should be uppercase alphanumeric.",
            },
            "relation": {
                "type": "string",
                "enum": [relation.value for relation in Relation],
                "description": f"The relationship. This should always be the string '{Relation.IDENTIFIER_OF.value}'.",
            },
            "entityName": {
                "type": "string",
                "description": "The full name of the person or organization associated with the PAN.",
            },
            "entityType": {
                "type": "string",
                "enum": [entity_type.value for entity_type in EntityType],
                "description": "The type of entity. Either 'Organisation' for companies or 'Individual' for people.",
            },
        },
        "required": ["pan", "relation", "entityName", "entityType"],
        "additionalProperties": False,
    },
}

_RECORDS = TypeAdapter(List[EntityRecord])
_CODE_FENCE = re.compile(r"^```(?:json)?|```$", re.MULTILINE)


def classify_entity_name(entity_name: str) -> EntityType:
    """Apply the organisation keyword rule to a single name.

    Reference form of the rule written into the extraction prompt; the
    model applies the prompt, this is for checking its output offline.
    A ``(HUF)`` suffix marks a family unit, which is still an individual.
    """
    if entity_name.rstrip().endswith(FAMILY_UNIT_TAG):
        return EntityType.INDIVIDUAL
    if any(keyword in entity_name for keyword in ORGANISATION_KEYWORDS):
        return EntityType.ORGANISATION
    return EntityType.INDIVIDUAL


def build_prompt(text: str) -> str:
    keywords = ", ".join(f"'{keyword}'" for keyword in ORGANISATION_KEYWORDS[:-1])
    keywords += f", or '{ORGANISATION_KEYWORDS[-1]}'"
    organisation = EntityType.ORGANISATION.value
    individual = EntityType.INDIVIDUAL.value
    relation = Relation.IDENTIFIER_OF.value

    return f"""Based on the following document text, extract all entities of type '{organisation}', '{individual}', and 'PAN'.
For each PAN found, create a relation '{relation}' linking it to the corresponding {individual} or {organisation}.
- If an entity name contains {keywords}, classify it as an '{organisation}'.
- If an entity name is followed by '{FAMILY_UNIT_TAG}', classify it as an '{individual}' and include '{FAMILY_UNIT_TAG}' in the entityName.
- For all other cases, classify the entity as an '{individual}'.
Ensure every PAN in the document is extracted along with its corresponding entity.

Document Text:
---
{text}
---
"""


def parse_response(payload: str) -> List[EntityRecord]:
    """
    Validate a raw extraction payload

    Args:
        payload: Response text from the extraction capability

    Returns:
        Parsed entity records
    """
    cleaned = _CODE_FENCE.sub("", payload.strip()).strip() if payload else ""
    if not cleaned:
        raise EmptyResponse()

    try:
        data = json.loads(cleaned)
    except json.JSONDecodeError as e:
        raise MalformedResponse("Failed to parse the AI's response. The data may be malformed.") from e

    if not isinstance(data, list):
        raise MalformedResponse("AI response is not in the expected array format.")

    try:
        return _RECORDS.validate_python(data)
    except ValidationError as e:
        raise MalformedResponse(
            f"AI response entries do not match the entity format: {e.error_count()} error(s)"
        ) from e


class EntityExtractor:
    """Extracts PAN/entity records from document text"""

    def __init__(self, capability: Optional[ExtractionCapability] = None):
        self.capability = capability or OpenAIExtractionClient()

    async def extract(self, text: str) -> List[EntityRecord]:
        """
        Run one extraction call

        Args:
            text: Normalized document text

        Returns:
            Records in the order the service listed them
        """
        prompt = build_prompt(text)
        try:
            payload = await self.capability.generate(prompt, ENTITY_SCHEMA)
        except Exception as e:
            logger.exception("Extraction service call failed")
            raise ServiceError(
                "Failed to extract entities from the document. The AI model returned an error."
            ) from e

        records = parse_response(payload)
        logger.info("Extracted %d entity record(s)", len(records))
        return records

"""LLM client for schema-constrained entity extraction"""
import json
import logging
from typing import Any, Dict, Optional, Protocol

from openai import AsyncOpenAI

from . import config
from .errors import ConfigurationError

logger = logging.getLogger(__name__)

# Structured outputs need an object at the schema root
ENVELOPE_KEY = "entities"


class ExtractionCapability(Protocol):
    """Anything that turns a prompt plus a response schema into a text payload"""

    async def generate(self, prompt: str, response_schema: Dict[str, Any]) -> str:
        ...


class OpenAIExtractionClient:
    """Client for the OpenAI API"""

    def __init__(self,
                 api_key: Optional[str] = None,
                 model: Optional[str] = None,
                 client: Optional[AsyncOpenAI] = None):
        api_key = api_key or config.OPENAI_API_KEY
        if client is None and not api_key:
            raise ConfigurationError("OPENAI_API_KEY not set in environment variables")
        self.client = client or AsyncOpenAI(api_key=api_key)
        self.model = model or config.LLM_MODEL

    async def generate(self, prompt: str, response_schema: Dict[str, Any]) -> str:
        """
        Send one extraction request

        Args:
            prompt: Full instruction text, document included
            response_schema: JSON schema the payload must follow

        Returns:
            Raw response text with the envelope removed
        """
        response = await self.client.chat.completions.create(
            model=self.model,
            temperature=config.LLM_TEMPERATURE,
            messages=[
                {"role": "system", "content": "You are a precise document extraction assistant. Return only valid JSON."},
                {"role": "user", "content": prompt}
            ],
            response_format={
                "type": "json_schema",
                "json_schema": {
                    "name": "extracted_entities",
                    "strict": True,
                    "schema": wrap_schema(response_schema),
                },
            },
        )
        content = response.choices[0].message.content or ""
        return unwrap_payload(content)


def wrap_schema(response_schema: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "type": "object",
        "properties": {ENVELOPE_KEY: response_schema},
        "required": [ENVELOPE_KEY],
        "additionalProperties": False,
    }


def unwrap_payload(content: str) -> str:
    """Return the enveloped array as JSON text, or the content untouched"""
    try:
        payload = json.loads(content)
    except json.JSONDecodeError:
        return content
    if isinstance(payload, dict) and ENVELOPE_KEY in payload:
        return json.dumps(payload[ENVELOPE_KEY], ensure_ascii=False)
    logger.debug("Response payload has no '%s' envelope", ENVELOPE_KEY)
    return content

"""Configuration settings for the entity extractor"""
import os
from dotenv import load_dotenv

load_dotenv()

# LLM Configuration
OPENAI_API_KEY = os.getenv("OPENAI_API_KEY")
LLM_MODEL = os.getenv("LLM_MODEL", "gpt-4o-mini")  # Must support json_schema response_format
LLM_TEMPERATURE = float(os.getenv("LLM_TEMPERATURE", "0"))

# Accepted document types
SUPPORTED_MIME_TYPES = ("text/plain", "application/pdf")

# Sessions held by the API
SESSION_IDLE_SECONDS = int(os.getenv("SESSION_IDLE_SECONDS", "3600"))
MAX_SESSIONS = int(os.getenv("MAX_SESSIONS", "100"))

# CSV export
EXPORT_FILENAME = "extracted_entities.csv"

# Logging
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

# API Settings
API_HOST = os.getenv("API_HOST", "0.0.0.0")
API_PORT = int(os.getenv("API_PORT", "8000"))

#!/usr/bin/env python3
"""Simple script to run the Document Entity Extractor API"""
import uvicorn

from entity_extractor.config import API_HOST, API_PORT
from entity_extractor.logging_utils import configure_logging

if __name__ == "__main__":
    configure_logging()
    uvicorn.run("entity_extractor.api:app", host=API_HOST, port=API_PORT, reload=True)

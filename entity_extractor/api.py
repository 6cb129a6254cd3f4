"""FastAPI interface for document entity extraction"""
import logging
import time
import uuid
from typing import Dict, Optional

from fastapi import FastAPI, File, HTTPException, UploadFile
from fastapi.responses import Response
from pydantic import BaseModel

from . import config
from .errors import (
    EntityExtractorError,
    ExtractionFailure,
    ExtractionServiceError,
    MissingColumns,
    SessionStateError,
    UnsupportedFormat,
)
from .extractor import EntityExtractor
from .models import Document
from .session import ExtractionSession

logger = logging.getLogger(__name__)

app = FastAPI(title="Document Entity Extractor API", version="0.1.0")

# Checked in order, most specific first
ERROR_STATUS_CODES = (
    (UnsupportedFormat, 415),
    (ExtractionFailure, 422),
    (MissingColumns, 400),
    (ExtractionServiceError, 502),
    (SessionStateError, 409),
)


class SessionCreated(BaseModel):
    session_id: str


class DocumentLoaded(BaseModel):
    session_id: str
    filename: Optional[str]
    mime_type: Optional[str]
    text_length: int


# Initialize extractor
entity_extractor: Optional[EntityExtractor] = None

# In-memory only, lost on restart; pruned by idle time and capped at MAX_SESSIONS
sessions: Dict[str, ExtractionSession] = {}


@app.on_event("startup")
async def startup_event():
    """Initialize extractor on startup"""
    global entity_extractor
    try:
        entity_extractor = EntityExtractor()
    except EntityExtractorError as e:
        logger.warning("Failed to initialize extractor: %s", e)


def _http_error(error: EntityExtractorError) -> HTTPException:
    for error_type, status_code in ERROR_STATUS_CODES:
        if isinstance(error, error_type):
            return HTTPException(status_code=status_code, detail=str(error))
    return HTTPException(status_code=500, detail=str(error))


def _get_session(session_id: str) -> ExtractionSession:
    session = sessions.get(session_id)
    if session is None:
        raise HTTPException(status_code=404, detail=f"Unknown session: {session_id}")
    session.touch()
    return session


def _prune_sessions() -> None:
    """Drop idle sessions, then the least recently used ones above the cap"""
    now = time.monotonic()
    for session_id, session in list(sessions.items()):
        if now - session.last_used > config.SESSION_IDLE_SECONDS:
            logger.info("Expiring idle session %s", session_id)
            del sessions[session_id]
    while sessions and len(sessions) >= config.MAX_SESSIONS:
        oldest = min(sessions, key=lambda sid: sessions[sid].last_used)
        logger.info("Session limit reached, evicting %s", oldest)
        del sessions[oldest]


@app.post("/sessions", response_model=SessionCreated, status_code=201)
async def create_session():
    """Open a new extraction session"""
    if entity_extractor is None:
        raise HTTPException(status_code=500, detail="Extractor not initialized")

    _prune_sessions()
    session_id = uuid.uuid4().hex
    sessions[session_id] = ExtractionSession(entity_extractor)
    return SessionCreated(session_id=session_id)


@app.delete("/sessions/{session_id}", status_code=204)
async def delete_session(session_id: str):
    _get_session(session_id)
    del sessions[session_id]
    return Response(status_code=204)


@app.post("/sessions/{session_id}/document", response_model=DocumentLoaded)
async def upload_document(session_id: str, document: UploadFile = File(...)):
    """
    Load a document into the session.

    Accepts a .txt (text/plain) or .pdf (application/pdf) upload. Any
    previous extraction or verification in the session is discarded.
    """
    session = _get_session(session_id)
    content = await document.read()
    # Drop parameters such as "; charset=utf-8"
    mime_type = (document.content_type or "").split(";")[0].strip().lower()
    try:
        text = await session.load_document(Document(
            content=content,
            mime_type=mime_type,
            filename=document.filename,
        ))
    except EntityExtractorError as e:
        raise _http_error(e) from e

    return DocumentLoaded(
        session_id=session_id,
        filename=document.filename,
        mime_type=mime_type,
        text_length=len(text),
    )


@app.post("/sessions/{session_id}/extract")
async def extract_entities(session_id: str):
    """
    Extract PAN / entity records from the loaded document.

    Returns an array of objects with keys pan, relation, entityName and
    entityType.
    """
    session = _get_session(session_id)
    try:
        entities = await session.extract()
    except EntityExtractorError as e:
        raise _http_error(e) from e

    return [entity.model_dump(by_alias=True, mode="json") for entity in entities]


@app.get("/sessions/{session_id}/export")
async def export_entities(session_id: str):
    """Download the latest extraction as extracted_entities.csv"""
    session = _get_session(session_id)
    try:
        csv_text = session.export_csv()
    except EntityExtractorError as e:
        raise _http_error(e) from e

    return Response(
        content=csv_text.encode("utf-8"),
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="{config.EXPORT_FILENAME}"'},
    )


@app.post("/sessions/{session_id}/verify")
async def verify_entities(session_id: str, ground_truth: UploadFile = File(...)):
    """
    Compare the latest extraction with an uploaded ground-truth CSV.

    The CSV must have "PAN", "Entity Name" and "Entity Type" columns, in
    any order.
    """
    session = _get_session(session_id)
    content = await ground_truth.read()
    try:
        result = await session.verify(content)
    except EntityExtractorError as e:
        raise _http_error(e) from e

    response = result.model_dump(by_alias=True, mode="json")
    response["summary"] = result.summary()
    return response


@app.get("/health")
async def health_check():
    """Health check endpoint"""
    return {
        "status": "healthy",
        "extractor_initialized": entity_extractor is not None,
        "active_sessions": len(sessions),
    }


if __name__ == "__main__":
    import uvicorn
    from .config import API_HOST, API_PORT
    uvicorn.run(app, host=API_HOST, port=API_PORT)

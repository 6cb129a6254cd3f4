"""Caller-owned session state driving the extraction pipeline"""
import logging
import time
from typing import List, Optional

from .csv_codec import read_ground_truth, to_csv
from .errors import NoDocumentLoaded, NoExtractionAvailable
from .extractor import EntityExtractor
from .models import Document, EntityRecord, ReconciliationResult
from .reconciliation import compare
from .text_extractor import TextExtractor

logger = logging.getLogger(__name__)


class ExtractionSession:
    """Holds the current document and the results derived from it.

    Every step clears the state downstream of it before running, so a failed
    step never leaves an older result next to newer input.
    """

    def __init__(self,
                 entity_extractor: EntityExtractor,
                 text_extractor: Optional[TextExtractor] = None):
        self.entity_extractor = entity_extractor
        self.text_extractor = text_extractor or TextExtractor()
        self.filename: Optional[str] = None
        self.text: Optional[str] = None
        self.entities: Optional[List[EntityRecord]] = None
        self.reconciliation: Optional[ReconciliationResult] = None
        self.last_used = time.monotonic()
        # Bumped whenever the document or the results derived from it are reset
        self._document_version = 0
        self._results_version = 0
        self._reconciliation_version = 0

    def touch(self) -> None:
        self.last_used = time.monotonic()

    def clear(self) -> None:
        self.filename = None
        self.text = None
        self._document_version += 1
        self._clear_results()

    def _clear_results(self) -> None:
        self._results_version += 1
        self.entities = None
        self.reconciliation = None

    async def load_document(self, document: Document) -> str:
        """Normalize a new document, replacing whatever was loaded before"""
        self.clear()
        version = self._document_version
        text = await self.text_extractor.normalize(document)
        if version != self._document_version:
            logger.info("Document %r was replaced while loading, not storing it", document.filename)
            return text
        self.filename = document.filename
        self.text = text
        logger.info("Loaded document %r (%d characters)", document.filename, len(text))
        return text

    async def extract(self) -> List[EntityRecord]:
        """Run extraction on the loaded document text.

        Results are only stored if nothing reset the session while the
        extraction call was in flight.
        """
        if not self.text:
            raise NoDocumentLoaded()
        self._clear_results()
        version = self._results_version
        entities = await self.entity_extractor.extract(self.text)
        if version == self._results_version:
            self.entities = entities
        else:
            logger.info("Session changed during extraction, discarding %d record(s)", len(entities))
        return entities

    def export_csv(self) -> str:
        if self.entities is None:
            raise NoExtractionAvailable()
        return to_csv(self.entities)

    async def verify(self, ground_truth_csv: bytes) -> ReconciliationResult:
        """Compare the latest extraction against an uploaded ground-truth CSV"""
        entities = self.entities
        if entities is None:
            raise NoExtractionAvailable()
        self.reconciliation = None
        self._reconciliation_version += 1
        version = self._reconciliation_version
        ground_truth = await read_ground_truth(ground_truth_csv)
        result = compare(entities, ground_truth)
        if self.entities is entities and version == self._reconciliation_version:
            self.reconciliation = result
        return result

"""Error taxonomy for the extraction and reconciliation pipeline"""
from typing import Iterable


class EntityExtractorError(Exception):
    """Base class for every error raised by the pipeline"""


class ConfigurationError(EntityExtractorError):
    """Raised when required configuration values are absent"""


# Document normalization

class UnsupportedFormat(EntityExtractorError):
    """Raised when a document's declared MIME type cannot be normalized"""

    def __init__(self, mime_type: str):
        self.mime_type = mime_type
        super().__init__(
            f"Unsupported file type '{mime_type}'. Please upload a .txt or .pdf file."
        )


class ExtractionFailure(EntityExtractorError):
    """Raised when a document cannot be read or decoded"""


# Extraction capability

class ExtractionServiceError(EntityExtractorError):
    """Base class for failures of the extraction call"""


class EmptyResponse(ExtractionServiceError):
    """The service answered, but with nothing in it"""

    def __init__(self, message: str = "AI returned an empty response."):
        super().__init__(message)


class MalformedResponse(ExtractionServiceError):
    """The payload is not valid JSON or does not have the entity shape"""


class ServiceError(ExtractionServiceError):
    """The extraction capability itself failed"""


# CSV import

class MissingColumns(EntityExtractorError):
    """Raised when a ground-truth CSV lacks one of the required columns"""

    def __init__(self, missing: Iterable[str]):
        self.missing = list(missing)
        names = ", ".join(f'"{name}"' for name in self.missing)
        super().__init__(
            f'CSV must contain "PAN", "Entity Name", and "Entity Type" headers. Missing: {names}'
        )


# Session preconditions

class SessionStateError(EntityExtractorError):
    """Raised when a session operation runs before its inputs exist"""


class NoDocumentLoaded(SessionStateError):
    def __init__(self):
        super().__init__("No document content to process.")


class NoExtractionAvailable(SessionStateError):
    def __init__(self):
        super().__init__("No extraction results available. Process a document first.")

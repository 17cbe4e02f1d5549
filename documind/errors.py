from __future__ import annotations


class DocuMindError(Exception):
    """Base error. Each subclass is one entry of the failure taxonomy."""

    code = "internal_error"
    status_code = 500
    retryable = False
    default_message = "Internal server error"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_dict(self) -> dict:
        return {
            "success": False,
            "error": self.message,
            "code": self.code,
            "retryable": self.retryable,
        }


class InvalidRequest(DocuMindError):
    code = "invalid_request"
    status_code = 400
    default_message = "Missing required fields"


class UnsupportedFormat(DocuMindError):
    code = "unsupported_format"
    status_code = 400
    default_message = "Unsupported file format"


class FileTooLarge(DocuMindError):
    code = "file_too_large"
    status_code = 400
    default_message = "File size exceeds 10MB limit"


class ExtractionFailed(DocuMindError):
    code = "extraction_failed"
    status_code = 400
    default_message = "Failed to extract text"


class InsufficientText(DocuMindError):
    code = "insufficient_text"
    status_code = 400
    default_message = "Document contains insufficient text for analysis"


class AnalysisNotFound(DocuMindError):
    code = "not_found"
    status_code = 404
    default_message = "Analysis not found"


class PersistenceError(DocuMindError):
    code = "persistence_error"
    default_message = "Failed to save analysis"


class AIServiceError(DocuMindError):
    code = "ai_service_error"
    retryable = True
    default_message = "Failed to connect to AI service"


class AnalysisError(AIServiceError):
    code = "analysis_error"
    default_message = "Failed to analyze document"


class QAError(AIServiceError):
    code = "qa_error"
    default_message = "Failed to answer question"


class SummaryError(AIServiceError):
    code = "summary_error"
    default_message = "Failed to generate focused summary"


class NotificationError(DocuMindError):
    code = "notification_error"
    retryable = True
    default_message = "Failed to send email"

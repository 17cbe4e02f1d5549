from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Snake-case attributes, camelCase on the wire and on disk."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class DocumentMetadata(CamelModel):
    file_size: int
    file_type: str
    page_count: int = 0
    word_count: int = 0


class AnalysisRecord(CamelModel):
    """Durable analysis record persisted as one JSON file per id."""

    id: str
    file_name: str
    uploaded_at: str
    metadata: DocumentMetadata
    analysis: dict[str, Any]
    document_text: str = ""

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True)


class ConversationTurn(CamelModel):
    question: str = ""
    answer: str = ""


class AnalysisOutcome(CamelModel):
    analysis_id: str
    file_name: str
    metadata: DocumentMetadata
    analysis: dict[str, Any]

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True)


class QAAnswer(CamelModel):
    question: str
    answer: str
    timestamp: str


class FocusedSummary(CamelModel):
    focus_area: str
    summary: str
    timestamp: str


class LengthSummary(CamelModel):
    summary: str
    length: str
    timestamp: str


class ExtractionReport(CamelModel):
    extraction_type: str
    result: str
    timestamp: str


class ComparedDocument(CamelModel):
    id: str
    file_name: str
    word_count: int = 0


class DocumentComparison(CamelModel):
    document1: ComparedDocument
    document2: ComparedDocument
    comparison: str
    timestamp: str


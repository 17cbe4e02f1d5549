from __future__ import annotations

import logging
from datetime import datetime, timezone

from documind.analysis_store import AnalysisStore
from documind.errors import AnalysisNotFound, InvalidRequest
from documind.llm_client import GroqClient
from documind.models import (
    ComparedDocument,
    ConversationTurn,
    DocumentComparison,
    ExtractionReport,
    FocusedSummary,
    LengthSummary,
    QAAnswer,
)

logger = logging.getLogger(__name__)

MAX_HISTORY_TURNS = 10

SUMMARY_LENGTHS = {
    "short": "1-2 sentences",
    "medium": "1 paragraph (4-5 sentences)",
    "long": "2-3 paragraphs",
}

EXTRACTION_PROMPTS = {
    "dates": "Extract all dates, deadlines, and time-related information",
    "names": "Extract all person names and their roles/positions mentioned",
    "numbers": "Extract all important numbers, statistics, and figures with their context",
    "emails": "Extract all email addresses and contact information",
}


def _utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


def bound_history(history: list[ConversationTurn] | None, limit: int = MAX_HISTORY_TURNS) -> list[ConversationTurn]:
    turns = [turn for turn in history or [] if turn.question.strip() and turn.answer.strip()]
    if limit <= 0:
        return []
    return turns[-limit:]


class QAService:
    """Question answering and free-text requests over stored records.

    Holds no conversation state; callers replay their own history.
    """

    def __init__(self, store: AnalysisStore, llm: GroqClient):
        self.store = store
        self.llm = llm

    def _document_text(self, record_id: str) -> str:
        record = self.store.load(record_id)
        return str(record.get("documentText") or "")

    def ask(
        self,
        record_id: str,
        question: str,
        history: list[ConversationTurn] | None = None,
    ) -> QAAnswer:
        text = self._document_text(record_id)
        turns = bound_history(history)
        logger.info("Answering question for %s with %d prior turns", record_id, len(turns))
        answer = self.llm.answer_question(text, question, turns)
        return QAAnswer(question=question, answer=answer, timestamp=_utc_now())

    def focused_summary(self, record_id: str, focus_area: str) -> FocusedSummary:
        text = self._document_text(record_id)
        summary = self.llm.generate_focused_summary(text, focus_area)
        return FocusedSummary(focus_area=focus_area, summary=summary, timestamp=_utc_now())

    def summarize(self, record_id: str, length: str = "medium") -> LengthSummary:
        text = self._document_text(record_id)
        target_length = SUMMARY_LENGTHS.get(length, SUMMARY_LENGTHS["medium"])
        logger.info("Generating %s summary for %s", length, record_id)
        summary = self.llm.generate_focused_summary(text, f"Create a {target_length} summary of the main points")
        return LengthSummary(summary=summary, length=length, timestamp=_utc_now())

    def extract_information(self, record_id: str, extraction_type: str) -> ExtractionReport:
        prompt = EXTRACTION_PROMPTS.get(extraction_type)
        if prompt is None:
            raise InvalidRequest("Invalid extractionType")

        text = self._document_text(record_id)
        logger.info("Extracting %s from %s", extraction_type, record_id)
        result = self.llm.generate_focused_summary(text, prompt)
        return ExtractionReport(extraction_type=extraction_type, result=result, timestamp=_utc_now())

    def compare(self, first_id: str, second_id: str) -> DocumentComparison:
        try:
            first = self.store.load(first_id)
            second = self.store.load(second_id)
        except AnalysisNotFound:
            raise AnalysisNotFound("One or both analyses not found") from None

        logger.info("Comparing documents %s and %s", first.get("fileName"), second.get("fileName"))
        comparison = self.llm.compare_documents(first, second)
        return DocumentComparison(
            document1=_compared_document(first),
            document2=_compared_document(second),
            comparison=comparison,
            timestamp=_utc_now(),
        )


def _compared_document(record: dict) -> ComparedDocument:
    metadata = record.get("metadata") or {}
    word_count = metadata.get("wordCount") if isinstance(metadata, dict) else 0
    return ComparedDocument(
        id=str(record.get("id") or ""),
        file_name=str(record.get("fileName") or ""),
        word_count=word_count if isinstance(word_count, int) else 0,
    )

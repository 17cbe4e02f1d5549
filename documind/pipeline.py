"""Upload analysis pipeline.

A single upload moves through extract, validate, analyze, persist, notify and
cleanup. Every failure before the record is persisted removes the temporary
upload; a failed notification is logged and never undoes persistence.
"""
from __future__ import annotations

import logging
from datetime import datetime, timezone
from pathlib import Path
from uuid import uuid4

from documind.analysis_store import AnalysisStore
from documind.config import DOCUMENT_TEXT_LIMIT, MIN_TEXT_LENGTH
from documind.errors import InsufficientText, NotificationError
from documind.extraction import extract_text
from documind.llm_client import GroqClient
from documind.models import AnalysisOutcome, AnalysisRecord
from documind.notifier import EmailNotifier

logger = logging.getLogger(__name__)


def _utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


def delete_upload(path: Path) -> None:
    try:
        path.unlink()
    except FileNotFoundError:
        pass
    except OSError as exc:
        logger.warning("Failed to delete file %s: %s", path, exc)


def validate_text(text: str) -> None:
    if not text or len(text.strip()) < MIN_TEXT_LENGTH:
        raise InsufficientText()


class AnalysisPipeline:
    def __init__(
        self,
        store: AnalysisStore,
        llm: GroqClient,
        notifier: EmailNotifier | None = None,
    ):
        self.store = store
        self.llm = llm
        self.notifier = notifier

    def run(
        self,
        upload_path: Path,
        file_name: str,
        *,
        email: str | None = None,
        notify: bool = False,
    ) -> AnalysisOutcome:
        upload_path = Path(upload_path)
        logger.info("Processing document: %s", file_name)

        try:
            extraction = extract_text(upload_path.read_bytes(), file_name)
            text = extraction.text
            validate_text(text)
            logger.info("Text extracted: %d words", extraction.metadata.word_count)

            logger.info("Running AI analysis for %s", file_name)
            analysis = self.llm.analyze_document(text)
            logger.info("AI analysis complete for %s", file_name)

            record = AnalysisRecord(
                id=str(uuid4()),
                file_name=file_name,
                uploaded_at=_utc_now(),
                metadata=extraction.metadata,
                analysis=analysis,
                document_text=text[:DOCUMENT_TEXT_LIMIT],
            )
            outcome = AnalysisOutcome(
                analysis_id=record.id,
                file_name=record.file_name,
                metadata=record.metadata,
                analysis=record.analysis,
            )
            self.store.save(record.id, record.to_payload())
            logger.info("Analysis saved: %s", record.id)

            if notify and email:
                self._notify(email, file_name, analysis)
        finally:
            delete_upload(upload_path)

        return outcome

    def _notify(self, email: str, file_name: str, analysis: dict) -> None:
        if self.notifier is None:
            logger.warning("Email notification requested but no notifier is configured")
            return

        logger.info("Sending email to: %s", email)
        try:
            self.notifier.send_analysis(email, file_name, analysis)
        except NotificationError as exc:
            logger.error("Email sending failed: %s", exc.message)
            return
        logger.info("Email sent successfully")

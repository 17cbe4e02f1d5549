from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from uuid import uuid4

from fastapi import APIRouter, Depends, FastAPI, File, Form, Request, UploadFile
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from documind.analysis_store import AnalysisStore
from documind.config import ALLOWED_EXTENSIONS, Settings, load_settings
from documind.errors import (
    AIServiceError,
    DocuMindError,
    FileTooLarge,
    InvalidRequest,
    NotificationError,
    UnsupportedFormat,
)
from documind.extraction import normalize_extension
from documind.llm_client import GroqClient
from documind.logging_config import setup_logging
from documind.models import CamelModel, ConversationTurn
from documind.notifier import EmailNotifier
from documind.pipeline import AnalysisPipeline
from documind.qa import QAService

logger = logging.getLogger(__name__)

API_VERSION = "1.0.0"


@dataclass
class Services:
    settings: Settings
    store: AnalysisStore
    llm: GroqClient
    notifier: EmailNotifier
    pipeline: AnalysisPipeline
    qa: QAService


def build_services(settings: Settings) -> Services:
    store = AnalysisStore(settings.analysis_dir)
    llm = GroqClient.from_settings(settings)
    notifier = EmailNotifier(settings)
    return Services(
        settings=settings,
        store=store,
        llm=llm,
        notifier=notifier,
        pipeline=AnalysisPipeline(store, llm, notifier),
        qa=QAService(store, llm),
    )


def get_services(request: Request) -> Services:
    return request.app.state.services


class QuestionRequest(CamelModel):
    analysis_id: str | None = None
    question: str | None = None
    conversation_history: list[ConversationTurn] | None = None


class FocusedSummaryRequest(CamelModel):
    analysis_id: str | None = None
    focus_area: str | None = None


class ResendEmailRequest(CamelModel):
    analysis_id: str | None = None
    email: str | None = None


class CustomAnalysisRequest(CamelModel):
    text: str | None = None
    prompt: str | None = None


class CompareRequest(CamelModel):
    analysis_id1: str | None = None
    analysis_id2: str | None = None


class SummarizeRequest(CamelModel):
    analysis_id: str | None = None
    length: str = "medium"


class ExtractRequest(CamelModel):
    analysis_id: str | None = None
    extraction_type: str | None = None


def _utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _require(*values: str | None, message: str = "Missing required fields") -> None:
    if any(value is None or not str(value).strip() for value in values):
        raise InvalidRequest(message)


def _success(data: dict | list) -> dict:
    return {"success": True, "data": data}


def _error_response(status_code: int, message: str, code: str = "internal_error") -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "error": message, "code": code, "retryable": False},
    )


router = APIRouter()


@router.get("/")
def root():
    return {
        "message": "DocuMind AI - Smart Document Analyzer",
        "version": API_VERSION,
        "endpoints": {
            "health": "/api/health",
            "analyze": "POST /api/analyze",
            "getAnalysis": "GET /api/analysis/:id",
            "getAllAnalyses": "GET /api/analyses",
            "askQuestion": "POST /api/question",
            "focusedSummary": "POST /api/focused-summary",
            "resendEmail": "POST /api/resend-email",
        },
    }


@router.get("/health")
def health_check():
    return {
        "success": True,
        "status": "ok",
        "message": "DocuMind API is running",
        "timestamp": _utc_now(),
    }


def _store_upload(upload_dir: Path, extension: str, content: bytes) -> Path:
    upload_dir.mkdir(parents=True, exist_ok=True)
    stamp = datetime.now(timezone.utc).strftime("%Y%m%dT%H%M%S%fZ")
    path = upload_dir / f"file-{stamp}-{uuid4().hex[:8]}{extension}"
    path.write_bytes(content)
    return path


@router.post("/analyze")
def analyze_document(
    file: UploadFile | None = File(None),
    email: str | None = Form(None),
    notify_email: str | None = Form(None, alias="notifyEmail"),
    services: Services = Depends(get_services),
):
    if file is None or not (file.filename or "").strip():
        raise InvalidRequest("No file uploaded")

    file_name = file.filename or ""
    extension = normalize_extension(file_name)
    if extension not in ALLOWED_EXTENSIONS:
        raise UnsupportedFormat("Invalid file type. Only PDF, TXT, and DOCX files are allowed.")

    content = file.file.read()
    max_size = services.settings.max_file_size
    if len(content) > max_size:
        raise FileTooLarge(f"File size exceeds {max_size // (1024 * 1024)}MB limit")

    upload_path = _store_upload(services.settings.upload_dir, extension, content)
    try:
        outcome = services.pipeline.run(
            upload_path,
            file_name,
            email=(email or "").strip() or None,
            notify=(notify_email or "").strip().lower() == "true",
        )
    except DocuMindError:
        raise
    except Exception:
        logger.exception("Document analysis error for %s", file_name)
        return _error_response(500, "Failed to analyze document")

    return _success(outcome.to_payload())


@router.get("/analysis/{analysis_id}")
def get_analysis(analysis_id: str, services: Services = Depends(get_services)):
    return _success(services.store.load(analysis_id))


@router.get("/analyses")
def list_analyses(services: Services = Depends(get_services)):
    records = services.store.list_all()
    records.sort(key=lambda record: str(record.get("uploadedAt") or ""), reverse=True)
    return _success(records)


@router.post("/question")
def ask_question(body: QuestionRequest, services: Services = Depends(get_services)):
    _require(body.analysis_id, body.question)
    answer = services.qa.ask(body.analysis_id, body.question, body.conversation_history or [])
    return _success(answer.model_dump(by_alias=True))


@router.post("/focused-summary")
def focused_summary(body: FocusedSummaryRequest, services: Services = Depends(get_services)):
    _require(body.analysis_id, body.focus_area)
    summary = services.qa.focused_summary(body.analysis_id, body.focus_area)
    return _success(summary.model_dump(by_alias=True))


@router.post("/resend-email")
def resend_email(body: ResendEmailRequest, services: Services = Depends(get_services)):
    _require(body.analysis_id, body.email)
    record = services.store.load(body.analysis_id)
    services.notifier.send_analysis(body.email.strip(), str(record.get("fileName") or ""), record.get("analysis") or {})
    return {"success": True, "message": "Email sent successfully"}


@router.get("/ai/test")
def test_ai_connection(services: Services = Depends(get_services)):
    try:
        response = services.llm.test_connection()
    except AIServiceError as exc:
        logger.error("AI connection test failed: %s", exc.message)
        raise AIServiceError("Failed to connect to AI service") from exc

    return {
        "success": True,
        "message": "AI connection successful",
        "response": response,
        "model": services.llm.model,
    }


@router.post("/ai/custom-analysis")
def custom_analysis(body: CustomAnalysisRequest, services: Services = Depends(get_services)):
    _require(body.text, body.prompt, message="Missing required fields: text and prompt")
    logger.info("Custom analysis requested (prompt length %d)", len(body.prompt))
    try:
        result = services.llm.custom_analysis(body.text, body.prompt)
    except AIServiceError as exc:
        logger.error("Custom analysis failed: %s", exc.message)
        raise AIServiceError("Failed to generate custom analysis") from exc
    return _success({"result": result, "timestamp": _utc_now()})


@router.post("/ai/compare")
def compare_documents(body: CompareRequest, services: Services = Depends(get_services)):
    _require(body.analysis_id1, body.analysis_id2, message="Both analysisId1 and analysisId2 are required")
    try:
        comparison = services.qa.compare(body.analysis_id1, body.analysis_id2)
    except AIServiceError as exc:
        logger.error("Document comparison failed: %s", exc.message)
        raise AIServiceError("Failed to compare documents") from exc
    return _success(comparison.model_dump(by_alias=True))


@router.post("/ai/summarize")
def summarize_document(body: SummarizeRequest, services: Services = Depends(get_services)):
    _require(body.analysis_id, message="analysisId is required")
    summary = services.qa.summarize(body.analysis_id, body.length or "medium")
    return _success(summary.model_dump(by_alias=True))


@router.post("/ai/extract")
def extract_information(body: ExtractRequest, services: Services = Depends(get_services)):
    _require(body.analysis_id, body.extraction_type, message="Both analysisId and extractionType are required")
    report = services.qa.extract_information(body.analysis_id, body.extraction_type)
    return _success(report.model_dump(by_alias=True))


async def api_prefix_alias(request, call_next):
    """Accept both `/path` and `/api/path` for frontend compatibility."""
    if request.scope.get("path", "").startswith("/api/"):
        request.scope["path"] = request.scope["path"][4:]
    return await call_next(request)


async def documind_error_handler(request: Request, exc: DocuMindError):
    if isinstance(exc, (AIServiceError, NotificationError)) or exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    else:
        logger.warning("%s %s rejected: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


async def validation_error_handler(request: Request, exc: RequestValidationError):
    logger.warning("Invalid request body for %s: %s", request.url.path, exc.errors())
    return JSONResponse(status_code=400, content=InvalidRequest().to_dict())


async def http_error_handler(request: Request, exc: StarletteHTTPException):
    if exc.status_code == 404:
        return _error_response(404, "Endpoint not found", code="not_found")
    return _error_response(exc.status_code, str(exc.detail))


async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error for %s %s", request.method, request.url.path)
    return _error_response(500, "Internal server error")


def create_app(settings: Settings | None = None, services: Services | None = None) -> FastAPI:
    setup_logging()
    settings = settings or (services.settings if services else load_settings())
    services = services or build_services(settings)

    app = FastAPI(title="DocuMind API", version=API_VERSION)
    app.state.services = services

    app.middleware("http")(api_prefix_alias)
    cors_origins = ["http://localhost:3000"]
    if settings.frontend_url and settings.frontend_url not in cors_origins:
        cors_origins.append(settings.frontend_url)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_origins,
        allow_origin_regex=r"https://.*\.vercel\.app",
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization"],
    )

    app.add_exception_handler(DocuMindError, documind_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)

    app.include_router(router)
    return app


app = create_app()

from __future__ import annotations

import json
import logging
import re
from typing import Any, Literal
from urllib import error, request

from documind.config import Settings
from documind.errors import AIServiceError, AnalysisError, QAError, SummaryError
from documind.models import ConversationTurn

logger = logging.getLogger(__name__)

ANALYSIS_TEXT_LIMIT = 15000
QUESTION_TEXT_LIMIT = 10000
SUMMARY_TEXT_LIMIT = 12000
CUSTOM_ANALYSIS_TEXT_LIMIT = 10000

ResponseFormat = Literal["text", "json"]

_CODE_FENCE_PATTERN = re.compile(r"```(?:json)?\s*\n?|\n?\s*```", re.IGNORECASE)

ANALYSIS_SYSTEM_PROMPT = (
    "You are an expert document analyzer. Always respond with valid JSON only, no additional text."
)

QA_SYSTEM_PROMPT = (
    "You are a helpful assistant that answers questions about documents. "
    "Base your answers ONLY on the provided document content. "
    "If the answer isn't in the document, say \"I cannot find that information in the document.\" "
    "Be concise and accurate."
)

SUMMARY_SYSTEM_PROMPT = "You are an expert at creating focused, detailed summaries."
CUSTOM_ANALYSIS_SYSTEM_PROMPT = "You are a helpful AI assistant for document analysis."
COMPARISON_SYSTEM_PROMPT = "You are an expert at comparing and contrasting documents."
CONNECTION_TEST_PROMPT = "Respond with 'OK' if you can read this."


def _analysis_prompt(text: str) -> str:
    return (
        "Analyze the following document and provide:\n\n"
        "1. Executive Summary (2-3 paragraphs): comprehensive overview\n"
        "2. Key Points (5-7 bullet points): main takeaways\n"
        "3. Important Entities: names, dates, locations, organizations mentioned\n"
        "4. Sentiment: overall tone (Positive/Neutral/Negative)\n"
        "5. Action Items: any tasks, deadlines, or follow-ups mentioned\n"
        "6. Topics & Categories: main subjects discussed\n\n"
        f"Document Text:\n{text[:ANALYSIS_TEXT_LIMIT]}\n\n"
        "Respond in valid JSON format with this structure:\n"
        "{\n"
        '  "summary": "...",\n'
        '  "keyPoints": ["...", "..."],\n'
        '  "entities": {\n'
        '    "people": ["..."],\n'
        '    "organizations": ["..."],\n'
        '    "dates": ["..."],\n'
        '    "locations": ["..."]\n'
        "  },\n"
        '  "sentiment": "...",\n'
        '  "actionItems": ["..."],\n'
        '  "topics": ["..."],\n'
        '  "wordCount": number,\n'
        '  "readingTime": "X minutes"\n'
        "}"
    )


def _comparison_prompt(first: dict[str, Any], second: dict[str, Any]) -> str:
    sections = []
    for index, record in enumerate((first, second), start=1):
        analysis = record.get("analysis") or {}
        key_points = analysis.get("keyPoints") or []
        if not isinstance(key_points, list):
            key_points = [str(key_points)]
        sections.append(
            f"Document {index} ({record.get('fileName', 'unknown')}):\n"
            f"Summary: {analysis.get('summary', '')}\n"
            f"Key Points: {', '.join(str(point) for point in key_points)}"
        )

    return (
        "Compare these two documents and provide:\n"
        "1. Main similarities\n"
        "2. Key differences\n"
        "3. Which document covers topics more comprehensively\n"
        "4. Recommendations based on the comparison\n\n"
        + "\n\n".join(sections)
    )


def strip_code_fences(raw: str) -> str:
    return _CODE_FENCE_PATTERN.sub("", raw or "").strip()


def _post_json(url: str, payload: dict[str, Any], headers: dict[str, str], timeout: float = 60.0) -> dict[str, Any]:
    body = json.dumps(payload).encode("utf-8")
    req = request.Request(url, data=body, headers=headers, method="POST")
    with request.urlopen(req, timeout=timeout) as response:
        response_body = response.read().decode("utf-8")
    return json.loads(response_body)


def _http_error_message(provider_name: str, exc: error.HTTPError) -> str:
    response_excerpt = ""
    try:
        response_body = exc.read().decode("utf-8", errors="replace").strip()
    except Exception:  # noqa: BLE001
        response_body = ""

    if response_body:
        try:
            parsed = json.loads(response_body)
            if isinstance(parsed, dict):
                error_payload = parsed.get("error")
                if isinstance(error_payload, dict):
                    message = error_payload.get("message")
                    if isinstance(message, str) and message.strip():
                        response_excerpt = message.strip()
        except json.JSONDecodeError:
            response_excerpt = response_body[:200]

    if response_excerpt:
        return f"{provider_name} request failed with HTTP {exc.code}: {response_excerpt}"

    return f"{provider_name} request failed with HTTP {exc.code}."


def _extract_chat_text(response_payload: dict[str, Any]) -> str | None:
    choices = response_payload.get("choices") or []
    if not choices or not isinstance(choices[0], dict):
        return None

    message = choices[0].get("message") or {}
    content = message.get("content") if isinstance(message, dict) else None
    if isinstance(content, str) and content.strip():
        return content.strip()
    return None


class GroqClient:
    """Chat-completion client for the Groq OpenAI-compatible API.

    Every request shape goes through :meth:`complete`. Failures raise the
    caller-selected ``AIServiceError`` subclass; nothing is retried.
    """

    provider_name = "Groq"

    def __init__(
        self,
        api_key: str,
        model: str,
        base_url: str = "https://api.groq.com/openai/v1",
        timeout: float = 60.0,
    ):
        self.api_key = api_key
        self.model = model
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    @classmethod
    def from_settings(cls, settings: Settings) -> "GroqClient":
        return cls(
            api_key=settings.groq_api_key,
            model=settings.groq_model,
            base_url=settings.groq_base_url,
            timeout=settings.llm_timeout_seconds,
        )

    def complete(
        self,
        messages: list[dict[str, str]],
        *,
        temperature: float | None = None,
        max_tokens: int = 500,
        response_format: ResponseFormat = "text",
        error_cls: type[AIServiceError] = AIServiceError,
    ) -> Any:
        """Send one chat completion.

        Returns the reply text, or the parsed JSON object when
        ``response_format`` is ``"json"``.
        """
        if not self.api_key:
            raise error_cls(f"{self.provider_name} API key is not configured.")

        payload: dict[str, Any] = {
            "model": self.model,
            "messages": messages,
            "max_tokens": max_tokens,
        }
        if temperature is not None:
            payload["temperature"] = temperature
        if response_format == "json":
            payload["response_format"] = {"type": "json_object"}

        try:
            response_payload = _post_json(
                f"{self.base_url}/chat/completions",
                payload,
                {
                    "Content-Type": "application/json",
                    "Authorization": f"Bearer {self.api_key}",
                },
                timeout=self.timeout,
            )
        except error.HTTPError as exc:
            message = _http_error_message(self.provider_name, exc)
            logger.error(message)
            raise error_cls(message) from exc
        except Exception as exc:  # noqa: BLE001
            logger.error("%s request failed: %s", self.provider_name, exc)
            raise error_cls(f"{self.provider_name} request failed before receiving a response.") from exc

        text = _extract_chat_text(response_payload) if isinstance(response_payload, dict) else None
        if text is None:
            raise error_cls(f"{self.provider_name} response did not contain text content.")

        if response_format == "text":
            return text

        try:
            parsed = json.loads(strip_code_fences(text))
        except json.JSONDecodeError as exc:
            logger.error("%s returned invalid JSON: %s", self.provider_name, exc)
            raise error_cls(f"{self.provider_name} response was not valid JSON.") from exc

        if not isinstance(parsed, dict):
            raise error_cls(f"{self.provider_name} response was not a JSON object.")
        return parsed

    def analyze_document(self, text: str) -> dict[str, Any]:
        return self.complete(
            [
                {"role": "system", "content": ANALYSIS_SYSTEM_PROMPT},
                {"role": "user", "content": _analysis_prompt(text)},
            ],
            temperature=0.3,
            max_tokens=2000,
            response_format="json",
            error_cls=AnalysisError,
        )

    def answer_question(
        self,
        text: str,
        question: str,
        history: list[ConversationTurn] | None = None,
    ) -> str:
        messages = [
            {
                "role": "system",
                "content": f"{QA_SYSTEM_PROMPT}\n\nDocument Content:\n{text[:QUESTION_TEXT_LIMIT]}",
            }
        ]
        for turn in history or []:
            messages.append({"role": "user", "content": turn.question})
            messages.append({"role": "assistant", "content": turn.answer})
        messages.append({"role": "user", "content": f"Question: {question}"})

        return self.complete(messages, temperature=0.5, max_tokens=500, error_cls=QAError)

    def generate_focused_summary(self, text: str, focus: str) -> str:
        return self.complete(
            [
                {"role": "system", "content": SUMMARY_SYSTEM_PROMPT},
                {
                    "role": "user",
                    "content": (
                        f"Create a detailed summary focusing specifically on: {focus}\n\n"
                        f"Document:\n{text[:SUMMARY_TEXT_LIMIT]}"
                    ),
                },
            ],
            temperature=0.4,
            max_tokens=800,
            error_cls=SummaryError,
        )

    def test_connection(self) -> str:
        return self.complete(
            [{"role": "user", "content": CONNECTION_TEST_PROMPT}],
            max_tokens=50,
        )

    def custom_analysis(self, text: str, prompt: str) -> str:
        return self.complete(
            [
                {"role": "system", "content": CUSTOM_ANALYSIS_SYSTEM_PROMPT},
                {
                    "role": "user",
                    "content": f"{prompt}\n\nText to analyze:\n{text[:CUSTOM_ANALYSIS_TEXT_LIMIT]}",
                },
            ],
            temperature=0.5,
            max_tokens=1000,
        )

    def compare_documents(self, first: dict[str, Any], second: dict[str, Any]) -> str:
        return self.complete(
            [
                {"role": "system", "content": COMPARISON_SYSTEM_PROMPT},
                {"role": "user", "content": _comparison_prompt(first, second)},
            ],
            temperature=0.4,
            max_tokens=800,
        )

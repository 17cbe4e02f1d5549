from __future__ import annotations

import html
import logging
import smtplib
from email.message import EmailMessage
from email.utils import getaddresses, make_msgid
from typing import Any

from documind.config import Settings
from documind.errors import NotificationError

logger = logging.getLogger(__name__)

SENDER_NAME = "DocuMind AI"
SENTIMENT_CLASSES = {"positive", "neutral", "negative"}

REPORT_STYLE = """
  body { font-family: Arial, sans-serif; line-height: 1.6; color: #333; }
  .container { max-width: 600px; margin: 0 auto; padding: 20px; }
  .header { background: #667eea; color: white; padding: 30px; text-align: center; border-radius: 10px 10px 0 0; }
  .content { background: #f9f9f9; padding: 30px; border-radius: 0 0 10px 10px; }
  .section { margin-bottom: 25px; background: white; padding: 20px; border-radius: 8px; }
  .section-title { color: #667eea; font-size: 18px; font-weight: bold; margin-bottom: 15px;
                   border-bottom: 2px solid #667eea; padding-bottom: 10px; }
  .key-points { list-style: none; padding: 0; }
  .key-points li { padding: 10px; margin: 5px 0; background: #f0f4ff; border-left: 4px solid #667eea; }
  .badge { display: inline-block; padding: 5px 12px; border-radius: 20px; font-size: 12px; font-weight: bold; margin: 5px; }
  .badge-positive { background: #d4edda; color: #155724; }
  .badge-neutral { background: #fff3cd; color: #856404; }
  .badge-negative { background: #f8d7da; color: #721c24; }
  .badge-topic { background: #e3f2fd; color: #1976d2; }
  .stats { display: flex; justify-content: space-around; margin: 20px 0; }
  .stat-box { text-align: center; padding: 15px; background: white; border-radius: 8px; flex: 1; margin: 0 5px; }
  .stat-number { font-size: 24px; font-weight: bold; color: #667eea; }
  .stat-label { font-size: 12px; color: #666; text-transform: uppercase; }
  .footer { text-align: center; padding: 20px; color: #666; font-size: 12px; }
"""


def _as_list(value: Any) -> list[str]:
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        return [str(item) for item in value if item is not None and str(item).strip()]
    text = str(value).strip()
    return [text] if text else []


def _escape(value: Any) -> str:
    return html.escape(str(value))


def _list_section(title: str, items: list[str]) -> str:
    rows = "".join(f"<li>{_escape(item)}</li>" for item in items)
    return (
        '<div class="section">'
        f'<div class="section-title">{title}</div>'
        f'<ul class="key-points">{rows}</ul>'
        "</div>"
    )


def _entities_section(entities: Any) -> str:
    if not isinstance(entities, dict):
        return ""

    lines = []
    for category, items in entities.items():
        values = _as_list(items)
        if not values:
            continue
        label = str(category)[:1].upper() + str(category)[1:]
        lines.append(f"<p><strong>{_escape(label)}:</strong> {_escape(', '.join(values))}</p>")

    if not lines:
        return ""
    return '<div class="section"><div class="section-title">Key Entities</div>' + "".join(lines) + "</div>"


def render_report(file_name: str, analysis: dict[str, Any]) -> str:
    """Render an analysis payload as a self-contained HTML email body."""
    analysis = analysis if isinstance(analysis, dict) else {}
    key_points = _as_list(analysis.get("keyPoints"))
    action_items = _as_list(analysis.get("actionItems"))
    topics = _as_list(analysis.get("topics"))

    sentiment = str(analysis.get("sentiment") or "Neutral").strip() or "Neutral"
    sentiment_class = sentiment.lower() if sentiment.lower() in SENTIMENT_CLASSES else "neutral"

    sections = [
        '<div class="stats">'
        f'<div class="stat-box"><div class="stat-number">{_escape(analysis.get("wordCount") or "N/A")}</div>'
        '<div class="stat-label">Words</div></div>'
        f'<div class="stat-box"><div class="stat-number">{_escape(analysis.get("readingTime") or "N/A")}</div>'
        '<div class="stat-label">Reading Time</div></div>'
        f'<div class="stat-box"><div class="stat-number">{len(key_points)}</div>'
        '<div class="stat-label">Key Points</div></div>'
        "</div>",
        '<div class="section"><div class="section-title">Executive Summary</div>'
        f'<p>{_escape(analysis.get("summary") or "No summary available")}</p></div>',
        _list_section("Key Points", key_points),
    ]
    if action_items:
        sections.append(_list_section("Action Items", action_items))

    sections.append(
        '<div class="section"><div class="section-title">Sentiment Analysis</div>'
        f'<span class="badge badge-{sentiment_class}">{_escape(sentiment)}</span></div>'
    )

    if topics:
        badges = "".join(f'<span class="badge badge-topic">{_escape(topic)}</span>' for topic in topics)
        sections.append(f'<div class="section"><div class="section-title">Topics</div>{badges}</div>')

    sections.append(_entities_section(analysis.get("entities")))

    return (
        "<!DOCTYPE html>\n"
        "<html><head><meta charset=\"utf-8\">"
        f"<style>{REPORT_STYLE}</style></head>"
        '<body><div class="container">'
        f'<div class="header"><h1>{SENDER_NAME}</h1><p>Document Analysis Complete</p></div>'
        '<div class="content">'
        f"<h2>{_escape(file_name)}</h2>"
        + "".join(section for section in sections if section)
        + "</div>"
        '<div class="footer"><p>This analysis was automatically generated. '
        "For questions, visit your DocuMind dashboard.</p></div>"
        "</div></body></html>"
    )


def _single_line(value: str) -> str:
    return " ".join(str(value or "").split())


def is_valid_recipient(recipient: str | None) -> bool:
    """Accept exactly one bare address with no header line breaks."""
    if not recipient or "\r" in recipient or "\n" in recipient:
        return False
    addresses = getaddresses([recipient])
    if len(addresses) != 1:
        return False
    _, address = addresses[0]
    local, _, domain = address.partition("@")
    return address == recipient.strip() and bool(local) and bool(domain) and "@" not in domain


class EmailNotifier:
    def __init__(self, settings: Settings):
        self.settings = settings

    def _connect(self) -> smtplib.SMTP:
        client = smtplib.SMTP(self.settings.smtp_host, self.settings.smtp_port, timeout=30)
        client.starttls()
        if self.settings.email_password:
            client.login(self.settings.email_user, self.settings.email_password)
        return client

    def build_message(self, recipient: str, file_name: str, analysis: dict[str, Any]) -> EmailMessage:
        message = EmailMessage()
        message["From"] = f"{SENDER_NAME} <{self.settings.email_user}>"
        message["To"] = recipient
        message["Subject"] = f"Document Analysis Complete: {_single_line(file_name)}"
        message["Message-ID"] = make_msgid(domain="documind.local")
        message.set_content("Your document analysis is ready. View this message in an HTML-capable client.")
        message.add_alternative(render_report(file_name, analysis), subtype="html")
        return message

    def send_analysis(self, recipient: str, file_name: str, analysis: dict[str, Any]) -> str:
        """Send the HTML report and return its Message-ID."""
        if not self.settings.email_configured:
            raise NotificationError("Email service is not configured")
        if not is_valid_recipient(recipient):
            raise NotificationError(f"Invalid recipient address {recipient!r}")

        try:
            message = self.build_message(recipient, file_name, analysis)
            with self._connect() as client:
                client.send_message(message)
        except (ValueError, smtplib.SMTPException, OSError) as exc:
            logger.error("Email sending error: %s", exc)
            raise NotificationError(str(exc) or "Failed to send email") from exc

        return message["Message-ID"]

    def verify_connection(self) -> bool:
        if not self.settings.email_configured:
            logger.warning("Email service is not configured")
            return False
        try:
            with self._connect() as client:
                client.noop()
        except (smtplib.SMTPException, OSError) as exc:
            logger.error("Email service error: %s", exc)
            return False

        logger.info("Email service ready")
        return True

from __future__ import annotations

import argparse
import logging

import uvicorn

from documind.app import build_services, create_app
from documind.config import load_settings
from documind.logging_config import setup_logging

logger = logging.getLogger("documind.server")


def main(argv: list[str] | None = None) -> None:
    settings = load_settings()
    parser = argparse.ArgumentParser(prog="documind", description="Run the DocuMind API server.")
    parser.add_argument("--host", default=settings.host)
    parser.add_argument("--port", type=int, default=settings.port)
    parser.add_argument("--skip-email-check", action="store_true", help="Do not verify the SMTP connection on startup.")
    args = parser.parse_args(argv)

    setup_logging()
    services = build_services(settings)
    logger.info("DocuMind AI backend starting on http://%s:%d", args.host, args.port)
    logger.info("Frontend URL: %s", settings.frontend_url)

    if not args.skip_email_check:
        if services.notifier.verify_connection():
            logger.info("Email notifications enabled")
        else:
            logger.warning("Email notifications disabled (check EMAIL_USER / EMAIL_PASSWORD)")

    uvicorn.run(create_app(services=services), host=args.host, port=args.port)


if __name__ == "__main__":
    main()

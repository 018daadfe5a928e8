"""Command-line launcher for the scoring API."""

import argparse
import logging
import os
from urllib.parse import urlsplit

import uvicorn

from patrons_cup.db import ensure_schema
from patrons_cup.migrations import apply_migrations
from patrons_cup.settings import load_settings

logger = logging.getLogger(__name__)
APP_MODULE = "patrons_cup.main:app"


def _port_from_env() -> int:
    for key in ("APP_PORT", "PORT"):
        value = os.getenv(key)
        if value:
            try:
                return int(value)
            except ValueError:
                logger.warning("Ignoring %s=%s (not an integer)", key, value)
    return 8000


def _flag_from_env(key: str) -> bool:
    return os.getenv(key, "").lower() in ("1", "true", "yes")


def _ssl_kwargs() -> dict[str, str]:
    cert = os.getenv("SSL_CERT_FILE")
    key = os.getenv("SSL_KEY_FILE")
    if not cert and not key:
        return {}
    if not cert or not key:
        logger.warning("Both SSL_CERT_FILE and SSL_KEY_FILE are required for HTTPS, ignoring partial config.")
        return {}

    ssl_kwargs: dict[str, str] = {"ssl_certfile": cert, "ssl_keyfile": key}
    ca = os.getenv("SSL_CA_FILE")
    if ca:
        ssl_kwargs["ssl_ca_certs"] = ca
    password = os.getenv("SSL_KEY_PASSWORD")
    if password:
        ssl_kwargs["ssl_keyfile_password"] = password

    logger.info("Starting HTTPS server using %s/%s", cert, key)
    return ssl_kwargs


def database_label(database_url: str) -> str:
    """Host and database name of a DSN, without credentials, for log lines."""
    parts = urlsplit(database_url)
    host = parts.hostname or "localhost"
    if parts.port:
        host = f"{host}:{parts.port}"
    return f"{host}{parts.path or ''}"


def prepare_database(database_url: str) -> list[str]:
    ensure_schema(database_url)
    applied = apply_migrations(database_url)
    if applied:
        logger.info("Applied migrations on %s: %s", database_label(database_url), ", ".join(applied))
    else:
        logger.info("Database %s is up to date", database_label(database_url))
    return applied


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Run the Patron's Cup scoring API.")
    parser.add_argument("--host", default=os.getenv("APP_HOST", "0.0.0.0"), help="Interface to bind.")
    parser.add_argument("--port", type=int, default=None, help="Port to bind (defaults to APP_PORT or PORT, then 8000).")
    parser.add_argument(
        "--reload",
        action="store_true",
        default=_flag_from_env("APP_RELOAD"),
        help="Restart on code changes (development only).",
    )
    parser.add_argument(
        "--migrate-only",
        action="store_true",
        help="Create the schema, apply pending migrations and exit without serving.",
    )
    return parser


def main(argv: list[str] | None = None) -> None:
    args = build_parser().parse_args(argv)
    log_level = os.getenv("UVICORN_LOG_LEVEL", "info")
    logging.basicConfig(level=log_level.upper(), format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    settings = load_settings()
    if args.migrate_only:
        prepare_database(settings.database_url)
        return

    if settings.status_poll_seconds > 0:
        logger.info(
            "Tee times in %s, scheduled matches checked every %ss",
            settings.timezone,
            settings.status_poll_seconds,
        )
    else:
        logger.info("Automatic status sync disabled, use POST /api/admin/status/sync")
    logger.info("Scoring against %s", database_label(settings.database_url))

    uvicorn.run(
        APP_MODULE,
        host=args.host,
        port=args.port or _port_from_env(),
        log_level=log_level,
        reload=args.reload,
        **_ssl_kwargs(),
    )


if __name__ == "__main__":
    main()

"""
Tinkoff Investments MCP — Entry Point

Usage:
    python __main__.py                       # SSE server on 0.0.0.0:8100
    python __main__.py -t stdio              # stdio transport (local agent)
    python __main__.py -t http -p 9000       # streamable HTTP on port 9000
    python __main__.py --verbose             # Debug logging

Requires TINKOFF_TOKEN (environment or .env).  The broker session and the
operating account are set up before any tool is served.
"""

import argparse
import logging
import sys
from logging.handlers import TimedRotatingFileHandler
from pathlib import Path


def setup_logging(verbose: bool = False):
    """Configure logging with console (stderr) + rotating file handler.

    stdout belongs to the protocol in stdio mode, so the console goes to stderr.
    """
    log_dir = Path("logs")
    log_dir.mkdir(exist_ok=True)

    level = logging.DEBUG if verbose else logging.INFO
    fmt = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

    root = logging.getLogger()
    root.setLevel(logging.DEBUG)

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(level)
    console.setFormatter(logging.Formatter(fmt))
    root.addHandler(console)

    file_handler = TimedRotatingFileHandler(
        log_dir / "tinvest_mcp.log",
        when="midnight",
        interval=1,
        backupCount=30,
        encoding="utf-8",
    )
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(logging.Formatter(fmt))
    root.addHandler(file_handler)

    # Suppress noisy SDK/transport logs
    logging.getLogger("grpc").setLevel(logging.WARNING)
    logging.getLogger("tinkoff.invest").setLevel(logging.WARNING)


logger = logging.getLogger(__name__)


def validate_startup():
    """Load .env and validate settings before touching the broker."""
    from dotenv import load_dotenv
    from core.config import load_settings
    from data.broker_errors import ConfigurationError

    if not load_dotenv():
        logger.warning(".env not found or empty; using process environment only")

    try:
        settings = load_settings()
    except ConfigurationError as e:
        logger.error(f"Startup: {e}")
        logger.error("Fix the above error and restart.")
        sys.exit(1)

    logger.info("Startup validation passed")
    return settings


def main():
    """Main entry point."""
    from core.config import DEFAULT_HOST, DEFAULT_PORT, DEFAULT_TRANSPORT, TRANSPORTS

    parser = argparse.ArgumentParser(description="Tinkoff Investments MCP server")
    parser.add_argument("-t", "--transport", choices=TRANSPORTS, default=DEFAULT_TRANSPORT,
                        help=f"Transport (default: {DEFAULT_TRANSPORT})")
    parser.add_argument("--host", default=DEFAULT_HOST, help=f"Listener host (default: {DEFAULT_HOST})")
    parser.add_argument("-p", "--port", type=int, default=DEFAULT_PORT,
                        help=f"Listener port (default: {DEFAULT_PORT})")
    parser.add_argument("--verbose", action="store_true", help="Enable DEBUG logging")

    args = parser.parse_args()
    setup_logging(verbose=args.verbose)

    settings = validate_startup()

    from core.server import build_server, run_server
    from core.session import Session
    from data.broker_errors import BackendFailure, BridgeError
    from tools.tools_executor import ToolExecutor

    # NoAccountResolved / connection failures are fatal: never serve without an account
    try:
        session = Session.open(settings)
    except (BridgeError, BackendFailure) as e:
        logger.error(f"Failed to start broker session: {e}")
        sys.exit(1)

    with session:
        logger.info(f"Using account: {session.account_id}")
        server = build_server(ToolExecutor(session))
        run_server(server, args.transport, host=args.host, port=args.port)


if __name__ == "__main__":
    main()

"""scripts.run_exporter

Notes (what this script does)
- Single top-level entrypoint for the GitLab CI pipelines exporter.
- Loads the YAML config, sets up JSON logging, then serves /metrics and /health
  with uvicorn while the poll scheduler runs in the background.

How to run (from project root)
    python -m scripts.run_exporter

Optional flags
    python -m scripts.run_exporter --config ./exporter.yml
    python -m scripts.run_exporter --listen-address 127.0.0.1:9100
"""

# Import argparse to parse CLI flags in a standard way
import argparse  # Command-line interface

# Import sys to propagate exit codes
import sys  # Interpreter exit

# Import uvicorn to serve the ASGI app
import uvicorn  # ASGI server

from api.main import create_app  # App factory
from src.glexporter.config import (
    DEFAULT_CONFIG_PATH,  # ~/.gitlab-ci-pipelines-exporter.yml
    DEFAULT_LISTEN_ADDRESS,  # :8080
    ConfigError,  # Startup failure
    load_config,  # YAML loader
)
from src.glexporter.logging_config import setup_logging  # JSON logs
from src.glexporter.utils import parse_listen_address  # host:port split


def parse_args(argv=None) -> argparse.Namespace:
    """Parse CLI arguments for the exporter."""

    parser = argparse.ArgumentParser(description="Export GitLab CI pipeline status as Prometheus metrics.")  # CLI

    parser.add_argument(
        "--listen-address",
        default=DEFAULT_LISTEN_ADDRESS,
        help="Listening address (default: %(default)s).",
    )  # Bind address
    parser.add_argument(
        "--config",
        default=DEFAULT_CONFIG_PATH,
        help="Config file path (default: %(default)s).",
    )  # Config path

    return parser.parse_args(argv)  # Namespace


def main(argv=None) -> int:
    """Main entrypoint; returns the process exit code."""

    args = parse_args(argv)  # User options
    logger = setup_logging()  # Application logger

    # Fail before serving anything if the config is unusable
    try:
        config = load_config(args.config)  # Validated config
    except ConfigError as exc:
        logger.error(str(exc))  # Visible reason
        return 1  # Non-zero exit

    try:
        host, port = parse_listen_address(args.listen_address)  # Bind target
    except ValueError as exc:
        logger.error(str(exc))
        return 1

    logger.info("Starting exporter")
    logger.info(f"Polling {config.gitlab.url} every {config.polling_interval_seconds}s")
    logger.info(f"{len(config.projects)} project(s) configured")

    app = create_app(config)  # Wire scheduler + routes
    uvicorn.run(app, host=host, port=port, log_level="info")  # Blocks until shutdown

    return 0


if __name__ == "__main__":
    # Execute the exporter when called as a script
    sys.exit(main())  # Propagate exit code

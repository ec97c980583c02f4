"""CLI entry point for agent-kernel.

This module provides the command-line interface for starting the kernel
service. It can be invoked as `agent-kernel` (via the script entry point) or
`python -m agent_kernel`.
"""

import argparse
import logging
import sys

import uvicorn

from agent_kernel import __version__, create_app
from agent_kernel.config import AgentKernelSettings


def main() -> None:
    """Main entry point for the agent-kernel CLI.

    Parses command-line arguments and starts the uvicorn server with the
    FastAPI application.
    """
    parser = argparse.ArgumentParser(
        prog="agent-kernel",
        description="Agent orchestration runtime served over HTTP",
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"agent-kernel {__version__}",
    )

    parser.add_argument(
        "--host",
        type=str,
        default=None,
        help="Host to bind the server to (default: 127.0.0.1, can be set via AGENT_KERNEL_HOST)",
    )

    parser.add_argument(
        "--port",
        type=int,
        default=None,
        help="Port to bind the server to (default: 8000, can be set via AGENT_KERNEL_PORT)",
    )

    parser.add_argument(
        "--ollama-host",
        type=str,
        default=None,
        help="Ollama server URL (default: http://localhost:11434, can be set via AGENT_KERNEL_OLLAMA_HOST)",
    )

    parser.add_argument(
        "--data-dir",
        type=str,
        default=None,
        help="Base directory for all data (default: ., can be set via AGENT_KERNEL_DATA_DIR)",
    )

    parser.add_argument(
        "--max-concurrent",
        type=int,
        default=None,
        help="Maximum number of tasks running at once (default: 5)",
    )

    parser.add_argument(
        "--no-scheduler",
        action="store_true",
        help="Serve the API without starting the scheduler tick loop",
    )

    parser.add_argument(
        "--log-level",
        type=str,
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Logging level (default: INFO, can be set via AGENT_KERNEL_LOG_LEVEL)",
    )

    args = parser.parse_args()

    # Build settings, CLI args override environment variables
    settings_kwargs = {}
    if args.host is not None:
        settings_kwargs["host"] = args.host
    if args.port is not None:
        settings_kwargs["port"] = args.port
    if args.ollama_host is not None:
        settings_kwargs["ollama_host"] = args.ollama_host
    if args.data_dir is not None:
        settings_kwargs["data_dir"] = args.data_dir
    if args.max_concurrent is not None:
        settings_kwargs["max_concurrent_processes"] = args.max_concurrent
    if args.no_scheduler:
        settings_kwargs["scheduler_autostart"] = False
    if args.log_level is not None:
        settings_kwargs["log_level"] = args.log_level

    settings = AgentKernelSettings(**settings_kwargs)

    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    app = create_app(settings=settings)

    uvicorn.run(
        app,
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    sys.exit(main())

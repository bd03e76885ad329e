# =============================================================================
# tools/server_logging.py  —  STDERR logging shared by the tool servers
# =============================================================================
# Tool servers talk MCP over STDOUT, so every log line MUST go to STDERR or it
# corrupts the protocol stream.
#
# ANSI colors:
#   CYAN    incoming tool calls with parameters
#   GREEN   response JSON
#   YELLOW  intermediate status
# =============================================================================

import json
import logging
import sys

_CYAN = "\033[36m"
_GREEN = "\033[32m"
_YELLOW = "\033[33m"
_RESET = "\033[0m"


def configure_server_logging(server_tag: str, level: str = "INFO") -> None:
    """Send every log record to STDERR, tagged with the server name."""
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format=f"%(asctime)s [{server_tag}] %(message)s",
        datefmt="%H:%M:%S",
        stream=sys.stderr,
    )


def log_request(logger: logging.Logger, tool_name: str, **params) -> None:
    """Log an incoming tool call and its parameters (cyan)."""
    param_str = ", ".join(f"{k}={v!r}" for k, v in params.items())
    logger.info(f"{_CYAN}{tool_name} called with: {param_str}{_RESET}")


def log_status(logger: logging.Logger, message: str) -> None:
    """Log an intermediate step (yellow)."""
    logger.info(f"{_YELLOW}  → {message}{_RESET}")


def log_response(logger: logging.Logger, tool_name: str, result: dict) -> dict:
    """Log the tool response as compact JSON, then return it."""
    logger.info(f"{_GREEN}  ← {tool_name} response: {json.dumps(result, separators=(',', ':'))}{_RESET}")
    return result

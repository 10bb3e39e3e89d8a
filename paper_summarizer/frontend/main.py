"""
Launch the paper summarizer's processes.

``python -m paper_summarizer.frontend.main`` takes one optional
argument naming what to start:

* ``server`` – the read-only papers API (uvicorn, ``API_PORT``, 8001)
* ``ui`` – the Streamlit page (``UI_PORT``, 8000)
* ``both`` – the API on a daemon thread, then the page (the default)

Both listen on ``127.0.0.1`` unless ``API_HOST`` / ``UI_HOST`` say
otherwise.
"""

from __future__ import annotations

import logging
import os
import socket
import subprocess
import sys
import threading
import time
from pathlib import Path
from typing import List, Optional

logger = logging.getLogger(__name__)

COMMANDS = ("server", "ui", "both")
DEFAULT_HOST = "127.0.0.1"


def api_address() -> tuple:
    return os.getenv("API_HOST", DEFAULT_HOST), int(os.getenv("API_PORT", "8001"))


def run_server() -> None:
    from paper_summarizer.backend import api_server

    host, port = api_address()
    api_server.run(host=host, port=port)


def run_ui() -> None:
    page = Path(__file__).with_name("app.py")
    # uvicorn owns an event loop; the page gets a process of its own.
    subprocess.run([
        sys.executable, "-m", "streamlit", "run", str(page),
        "--server.port", os.getenv("UI_PORT", "8000"),
        "--server.address", os.getenv("UI_HOST", DEFAULT_HOST),
    ])


def wait_for_port(host: str, port: int, timeout: float = 10.0) -> bool:
    """Poll until something accepts connections on ``host:port``."""
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        try:
            with socket.create_connection((host, port), timeout=0.5):
                return True
        except OSError:
            time.sleep(0.2)
    return False


def run_both() -> None:
    threading.Thread(target=run_server, name="papers-api", daemon=True).start()
    host, port = api_address()
    if not wait_for_port(host, port):
        logger.warning(f"API did not come up on {host}:{port}; starting the page anyway")
    run_ui()


def main(argv: Optional[List[str]] = None) -> int:
    """Dispatch to the component named on the command line; 1 on bad input."""
    logging.basicConfig(level=os.getenv("LOG_LEVEL", "INFO"))
    args = sys.argv[1:] if argv is None else argv
    command = args[0].lower() if args else "both"
    if command not in COMMANDS:
        print(f"Unknown command: {command}")
        print(f"Usage: python -m paper_summarizer.frontend.main [{'|'.join(COMMANDS)}]")
        return 1
    logger.info(f"Starting component(s): {command}")
    {"server": run_server, "ui": run_ui, "both": run_both}[command]()
    return 0


if __name__ == "__main__":
    sys.exit(main())

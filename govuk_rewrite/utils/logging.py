"""Session transcript logging and debug log setup."""

import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler


def configure_logging(verbose: bool = False, console: Optional[Console] = None) -> None:
    """Route library logging through rich on stderr.

    Args:
        verbose: DEBUG level when True, WARNING otherwise
        console: Console to log to (a stderr console by default)
    """
    handler = RichHandler(
        console=console or Console(stderr=True),
        show_path=False,
        rich_tracebacks=True,
    )
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(name)s: %(message)s",
        handlers=[handler],
        force=True,
    )
    # Keep HTTP client internals quiet unless explicitly asked for
    for noisy in ("httpx", "httpcore", "anthropic"):
        logging.getLogger(noisy).setLevel(logging.INFO if verbose else logging.WARNING)


class SessionLogger:
    """Writes an NDJSON transcript of one chat session."""

    def __init__(self, log_root: Path, run_id: Optional[str] = None):
        """Initialize session logger.

        Args:
            log_root: Directory holding one sub-directory per run
            run_id: Optional run ID (generated if not provided)
        """
        self.run_id = run_id or datetime.now().strftime("%Y%m%d_%H%M%S")

        self.log_dir = log_root / self.run_id
        self.log_dir.mkdir(parents=True, exist_ok=True)

        self.transcript_path = self.log_dir / "transcript.ndjson"

    def _append(self, entry: dict) -> None:
        entry = {"ts": datetime.now().isoformat(), **entry}
        with open(self.transcript_path, "a", encoding="utf-8") as f:
            f.write(json.dumps(entry, ensure_ascii=False) + "\n")

    def log_input(self, text: str) -> None:
        """Log a submitted input.

        Args:
            text: Raw submitted text
        """
        self._append({"kind": "input", "text": text})

    def log_event(self, kind: str, text: str) -> None:
        """Log an emitted session event.

        Args:
            kind: Event kind (assistant, system, error, success)
            text: Event text
        """
        self._append({"kind": kind, "text": text})

    def get_log_path(self) -> str:
        """Get the path to the log directory.

        Returns:
            Absolute path to log directory
        """
        return str(self.log_dir.absolute())

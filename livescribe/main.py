"""Main application entry point for Livescribe."""

import sys
import time
import argparse
import logging
from pathlib import Path
from typing import Optional

from rich.console import Console
from rich.live import Live

from livescribe import __version__
from livescribe.services.transcription_service import BACKEND_TYPES, TranscriptionService
from livescribe.ui.display import RichDisplaySink

from .config import LivescribeConfig

logger = logging.getLogger(__name__)


class Server:

    def __init__(self, config_path: Optional[str], log_level: Optional[str] = None):
        # Load configuration
        self.config = LivescribeConfig(config_path)
        # Command line level wins over config
        level = log_level or self.config.get('logging.level', 'INFO')
        setup_logging(self.config, level)
        self.console = Console()
        self.should_exit = False

    def init(self, backend_type: Optional[str] = None):
        logger.info("Initializing services...")
        self.backend_type = backend_type
        self.display = RichDisplaySink(self.console, title=self.config.get('display.title', 'Livescribe'))
        self.transcription_service = TranscriptionService(self.config, self.display)

    def run(self, duration: Optional[int]) -> bool:
        """Run one dictation session until it ends, the duration elapses or Ctrl-C.

        Returns:
            False if the session could not be started
        """
        if not self.config.get('session.start_on_launch', True):
            self.console.input("Press Enter to start dictation...")

        aggregator = self.transcription_service.aggregator
        with Live(self.display.render(""), console=self.console, refresh_per_second=8) as live:
            self.display.attach(live)
            try:
                if not self.transcription_service.start_session(self.backend_type):
                    return False
                deadline = time.time() + duration if duration else None
                while aggregator.is_active and not self.should_exit:
                    if deadline is not None and time.time() >= deadline:
                        logger.info(f"Duration of {duration}s elapsed")
                        break
                    self.transcription_service.pump(timeout=0.1)
            finally:
                self.cleanup()
                self.display.attach(None)
        return True

    def cleanup(self):
        self.transcription_service.stop_session()
        status = self.transcription_service.aggregator.get_status()
        logger.info(f"Session {status.session_id} finished: {status.finals_received} final results, "
                    f"{status.auto_restarts} restarts")


def setup_logging(config, level: str = "INFO") -> None:
    """Set up logging configuration from YAML config."""
    log_file_path = config.get('logging.file_path', 'data/logs/livescribe.log')
    console_output = config.get('logging.console_output', True)

    # Create logs directory if it doesn't exist
    log_dir = Path(log_file_path).parent
    log_dir.mkdir(parents=True, exist_ok=True)

    handlers = []

    # File handler - always write to file
    file_handler = logging.FileHandler(log_file_path)
    file_handler.setLevel(logging.DEBUG)
    file_formatter = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(funcName)s:%(lineno)d - %(message)s'
    )
    file_handler.setFormatter(file_formatter)
    handlers.append(file_handler)

    # Console handler - only if enabled in config
    if console_output:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(logging.WARNING)  # Only show warnings and above on console
        console_formatter = logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s')
        console_handler.setFormatter(console_formatter)
        handlers.append(console_handler)

    # Configure root logger
    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.setLevel(getattr(logging, level.upper()))
    for handler in handlers:
        root_logger.addHandler(handler)

    logger.info("="*50)
    logger.info("Livescribe starting up")
    logger.info(f"Log file: {log_file_path}")
    logger.info(f"Log level set to: {level}")
    logger.info("="*50)


def main() -> None:
    """Main entry point for Livescribe application."""
    parser = argparse.ArgumentParser(
        description="Livescribe - live transcription into a text display",
        epilog="Press Ctrl-C to stop dictation"
    )

    parser.add_argument(
        "--config",
        type=str,
        help="Path to configuration YAML file (default: livescribe.yaml)"
    )

    parser.add_argument(
        "--log-level",
        type=str,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Set logging level (default: logging.level from config, else INFO)"
    )

    parser.add_argument(
        "--backend",
        type=str,
        choices=BACKEND_TYPES,
        help="Transcription backend (overrides backend.type in config)"
    )

    parser.add_argument(
        "--duration",
        type=int,
        help="Stop dictation after this many seconds (default: run until the session ends)"
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"Livescribe v{__version__}"
    )

    args = parser.parse_args()

    try:
        server = Server(args.config, args.log_level)
    except (FileNotFoundError, ValueError) as e:
        print(f"Error: {e}")
        sys.exit(1)

    try:
        server.init(args.backend)
        if not server.run(args.duration):
            sys.exit(1)
        print(server.transcription_service.aggregator.committed_text)
    except KeyboardInterrupt:
        print("\nGoodbye!")
    except Exception as e:
        print(f"Error: {e}")
        logging.error(f"Application error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()

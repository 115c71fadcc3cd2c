"""
Configuration management for Doc Reader MCP.

Handles loading environment variables from .env file with support for:
- Custom .env file path via parameter
- Default .env location at repository root
- Fallback to system environment variables
"""

import os
from pathlib import Path
from typing import Optional
import logging

logger = logging.getLogger(__name__)

# Global config holder
_config = None


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        logger.warning(f"Ignoring non-integer value for {name}: {raw!r}")
        return default


def _env_float(name: str, default: float) -> float:
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        logger.warning(f"Ignoring non-numeric value for {name}: {raw!r}")
        return default


class Config:
    """Configuration container for Doc Reader MCP."""

    def __init__(self, dotenv_path: Optional[str] = None):
        """
        Initialize configuration.

        Args:
            dotenv_path: Path to .env file. If None, uses default location (repo root/.env)
        """
        self.dotenv_path = self._resolve_dotenv_path(dotenv_path)
        self._load_env()
        self._init_settings()

    def _resolve_dotenv_path(self, dotenv_path: Optional[str]) -> Path:
        """
        Resolve .env file path.

        Args:
            dotenv_path: Custom path or None for default

        Returns:
            Path to .env file
        """
        if dotenv_path:
            return Path(dotenv_path).resolve()

        # This file is in src/doc_reader_mcp/config.py, repository root is 2 levels up
        repo_root = Path(__file__).parent.parent.parent
        return repo_root / ".env"

    def _load_env(self):
        """Load environment variables from .env file if it exists."""
        if self.dotenv_path.exists():
            logger.info(f"Loading environment variables from: {self.dotenv_path}")
            with open(self.dotenv_path, 'r', encoding='utf-8') as f:
                for line in f:
                    line = line.strip()
                    if not line or line.startswith('#'):
                        continue

                    if '=' in line:
                        key, value = line.split('=', 1)
                        key = key.strip()
                        value = value.strip()

                        if value.startswith('"') and value.endswith('"'):
                            value = value[1:-1]
                        elif value.startswith("'") and value.endswith("'"):
                            value = value[1:-1]

                        # Real environment always wins over .env
                        if key not in os.environ:
                            os.environ[key] = value
        else:
            logger.debug(f".env file not found at: {self.dotenv_path}")

    def _init_settings(self):
        """Initialize settings from environment variables."""
        # Chunking
        self.chunk_size = max(1, _env_int("DOC_READER_CHUNK_SIZE", 2000))
        self.csv_rows_per_chunk = max(1, _env_int("DOC_READER_CSV_ROWS_PER_CHUNK", 50))

        # Search
        self.snippet_padding = max(0, _env_int("DOC_READER_SNIPPET_PADDING", 100))

        # read_full_document
        self.full_read_max_chunks = max(1, _env_int("DOC_READER_FULL_READ_MAX_CHUNKS", 50))
        self.full_read_default_chunks = min(
            max(1, _env_int("DOC_READER_FULL_READ_DEFAULT_CHUNKS", 10)),
            self.full_read_max_chunks,
        )

        # OCR
        self.ocr_max_pages = max(1, _env_int("DOC_READER_OCR_MAX_PAGES", 20))
        self.ocr_scale = _env_float("DOC_READER_OCR_SCALE", 2.0)
        self.ocr_language = os.environ.get("DOC_READER_OCR_LANGUAGE", "eng")

        # Logging goes to stderr, stdout belongs to the stdio transport
        log_level = os.environ.get("LOG_LEVEL", "INFO").upper()
        logging.basicConfig(
            level=getattr(logging, log_level, logging.INFO),
            format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
        )

    def __repr__(self):
        return (
            f"Config(\n"
            f"  dotenv_path={self.dotenv_path},\n"
            f"  chunk_size={self.chunk_size},\n"
            f"  csv_rows_per_chunk={self.csv_rows_per_chunk},\n"
            f"  snippet_padding={self.snippet_padding},\n"
            f"  full_read_default_chunks={self.full_read_default_chunks},\n"
            f"  full_read_max_chunks={self.full_read_max_chunks},\n"
            f"  ocr_max_pages={self.ocr_max_pages},\n"
            f"  ocr_scale={self.ocr_scale},\n"
            f"  ocr_language={self.ocr_language}\n"
            f")"
        )


def get_config(dotenv_path: Optional[str] = None, reload: bool = False) -> Config:
    """
    Get global configuration instance.

    Args:
        dotenv_path: Path to .env file (only used on first call or if reload=True)
        reload: Force reload configuration from .env file

    Returns:
        Config instance
    """
    global _config

    if _config is None or reload:
        _config = Config(dotenv_path=dotenv_path)

    return _config

"""
File handler for I/O operations.

Handles reading, writing, and persisting generated articles. Finished
articles land under ``final/``; articles that failed the quality gate
land under ``review/`` with their partial content kept for editing.
"""

import json
import re
from datetime import datetime
from pathlib import Path
from typing import Any

from content_hub.utils.logger import get_logger


logger = get_logger(__name__)


class FileHandler:
    """Handler for file I/O operations."""

    @staticmethod
    def read_file(file_path: Path) -> str:
        """
        Read file contents.

        Raises:
            FileNotFoundError: If file doesn't exist
        """
        if not file_path.exists():
            raise FileNotFoundError(f"File not found: {file_path}")

        return file_path.read_text(encoding="utf-8")

    @staticmethod
    def write_file(file_path: Path, content: str) -> None:
        """Write content to file, creating parent directories."""
        logger.debug(f"Writing to file: {file_path}")
        file_path.parent.mkdir(parents=True, exist_ok=True)
        file_path.write_text(content, encoding="utf-8")
        logger.debug(f"Wrote {len(content)} characters to {file_path}")

    @staticmethod
    def read_json(file_path: Path) -> Any:
        """Read and parse a JSON file."""
        return json.loads(FileHandler.read_file(file_path))

    @staticmethod
    def write_json(file_path: Path, data: Any, indent: int = 2) -> None:
        """Write data to a JSON file."""
        content = json.dumps(data, indent=indent, ensure_ascii=False, default=str)
        FileHandler.write_file(file_path, content)

    @staticmethod
    def slugify(text: str, max_length: int = 80) -> str:
        """
        Convert text to a filesystem-safe slug.

        Args:
            text: Text to slugify
            max_length: Maximum length of the slug

        Returns:
            Slugified string
        """
        slug = re.sub(r"[^\w\s-]", "", text.lower())
        slug = re.sub(r"[-\s]+", "-", slug)
        slug = slug.strip("-")
        return slug[:max_length] or "untitled"

    @staticmethod
    def save_article(
        output_dir: Path,
        slug: str,
        html: str,
        metadata: dict[str, Any],
        needs_review: bool = False,
    ) -> dict[str, Path]:
        """
        Save an article's HTML body and metadata.

        Args:
            output_dir: Base output directory
            slug: Article slug (used as the file stem)
            html: Article HTML body
            metadata: Remaining article fields (title, meta, schema, ...)
            needs_review: Write under ``review/`` instead of ``final/``

        Returns:
            Dict with the ``html`` and ``metadata`` paths written
        """
        folder = output_dir / ("review" if needs_review else "final")
        safe_name = FileHandler.slugify(slug)
        paths = {
            "html": folder / f"{safe_name}.html",
            "metadata": folder / f"{safe_name}.json",
        }

        FileHandler.write_file(paths["html"], html)
        FileHandler.write_json(
            paths["metadata"],
            {**metadata, "saved_at": datetime.now().isoformat()},
        )

        logger.info(f"Saved article '{safe_name}' to {folder}")
        return paths

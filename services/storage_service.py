"""
Storage Service - Download directory management.

This module provides utilities for placing exported workbooks in the
configured download directory under unique names, and for removing
partial files after a failed export.
"""

import logging
import re
import uuid
from pathlib import Path

logger = logging.getLogger(__name__)

# Default download directory
DEFAULT_DOWNLOAD_PATH = 'download/'

# Characters that cannot appear in a filename on common filesystems
_UNSAFE_FILENAME_CHARS = re.compile(r'[\\/:*?"<>|\x00-\x1f]')


class StorageService:
    """
    Framework-agnostic storage service for exported files.

    The download directory is created on demand, not at construction.
    """

    def __init__(self, download_path: str = DEFAULT_DOWNLOAD_PATH):
        """
        Initialize storage service.

        Args:
            download_path: Directory that receives exported files (default: 'download/')
        """
        self.download_path = download_path

    def _ensure_directory_exists(self):
        """Ensure the download directory exists."""
        Path(self.download_path).mkdir(parents=True, exist_ok=True)
        logger.debug(f"Storage directory ensured: {self.download_path}")

    def encoding_filename(self, name: str, extension: str = '.xlsx') -> str:
        """
        Build a unique filename for an export.

        Args:
            name: Base name chosen by the caller (usually the sheet name)
            extension: File extension including the dot

        Returns:
            Filename of the form '<uuid4>_<name><extension>'
        """
        safe_name = _UNSAFE_FILENAME_CHARS.sub('_', name)
        return f"{uuid.uuid4()}_{safe_name}{extension}"

    def get_absolute_file(self, filename: str) -> str:
        """
        Resolve a filename inside the download directory.

        Creates the directory if it does not exist yet.

        Args:
            filename: Bare filename from encoding_filename()

        Returns:
            Path to the file as a string
        """
        self._ensure_directory_exists()
        return str(Path(self.download_path) / filename)

    def delete_file(self, file_path: str) -> bool:
        """
        Delete a file from storage.

        Args:
            file_path: Path to file to delete

        Returns:
            True if file was deleted, False if file didn't exist
        """
        path = Path(file_path)

        if path.exists():
            path.unlink()
            logger.info(f"Deleted file: {file_path}")
            return True
        else:
            logger.warning(f"File not found for deletion: {file_path}")
            return False

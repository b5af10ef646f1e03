"""
Log Repository - manages loading and caching of processed flight logs.

Reads blackbox CSV files from a folder. Files are indexed on scan and only
parsed when first requested.
"""

import hashlib
import logging
from pathlib import Path
from typing import Optional

from flightlog.models.telemetry import LogListing, ProcessedLog
from flightlog.services.csv_loader import parse_log_file


logger = logging.getLogger(__name__)


class LogRepository:
    """
    Repository for processed flight logs.

    Caches parsed logs in memory; a log is re-parsed only after the folder
    is changed or the cache cleared.
    """

    def __init__(self, data_folder: Optional[Path] = None):
        """
        Initialize the repository.

        Args:
            data_folder: Folder containing CSV logs. If None, must be set later.
        """
        self._data_folder: Optional[Path] = data_folder
        self._cache: dict[str, ProcessedLog] = {}
        self._index: dict[str, Path] = {}  # id -> filepath mapping

        if data_folder is not None:
            self.scan_folder(data_folder)

    @property
    def data_folder(self) -> Optional[Path]:
        return self._data_folder

    @property
    def log_count(self) -> int:
        return len(self._index)

    def set_data_folder(self, folder: Path) -> int:
        """
        Set the data folder and scan for CSV logs.

        Returns:
            Number of CSV files found
        """
        self._data_folder = folder
        self._cache.clear()
        self._index.clear()
        return self.scan_folder(folder)

    def scan_folder(self, folder: Path) -> int:
        """
        Scan a folder for CSV logs and add them to the index.

        Returns:
            Number of CSV files found
        """
        if not folder.exists():
            logger.warning(f"Data folder does not exist: {folder}")
            return 0

        count = 0
        for csv_file in sorted(folder.glob("*.csv")):
            if csv_file.is_file():
                log_id = self._filepath_to_id(csv_file)
                self._index[log_id] = csv_file
                count += 1
                logger.debug(f"Indexed log: {log_id} -> {csv_file.name}")

        logger.info(f"Scanned {count} CSV files in {folder}")
        return count

    def list_logs(self) -> list[LogListing]:
        """List all indexed logs that can be parsed, sorted by name."""
        listings = []
        for log_id in list(self._index):
            log = self.get_log(log_id)
            if log is not None:
                listings.append(LogListing.from_log(log))

        listings.sort(key=lambda listing: listing.name)
        return listings

    def get_log(self, log_id: str) -> Optional[ProcessedLog]:
        """
        Get a processed log by ID.

        Returns:
            ProcessedLog if found and parseable, None otherwise
        """
        if log_id in self._cache:
            return self._cache[log_id]

        filepath = self._index.get(log_id)
        if filepath is None:
            return None

        try:
            return self._load_log(log_id, filepath)
        except (OSError, ValueError) as e:
            logger.error(f"Failed to load log {log_id} ({filepath.name}): {e}")
            return None

    def clear_cache(self) -> None:
        """Clear the in-memory cache."""
        self._cache.clear()
        logger.info("Log cache cleared")

    def _load_log(self, log_id: str, filepath: Path) -> ProcessedLog:
        log = parse_log_file(filepath)
        # Keep the indexed id even if the file changed since the scan
        log.id = log_id
        self._cache[log_id] = log
        logger.debug(f"Loaded and cached log: {log_id}")
        return log

    def _filepath_to_id(self, filepath: Path) -> str:
        """Consistent ID from filename, size and mtime."""
        stat = filepath.stat()
        id_string = f"{filepath.name}_{stat.st_size}_{stat.st_mtime}"
        return hashlib.sha256(id_string.encode()).hexdigest()[:16]


# Global repository instance (set up by app initialization)
_repository: Optional[LogRepository] = None


def get_repository() -> LogRepository:
    """Get the global repository instance."""
    global _repository
    if _repository is None:
        _repository = LogRepository()
    return _repository


def init_repository(data_folder: Path) -> LogRepository:
    """Initialize the global repository with a data folder."""
    global _repository
    _repository = LogRepository(data_folder)
    return _repository

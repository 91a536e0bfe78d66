"""
Feed snapshot writer.

Persists the result of an aggregation cycle as the JSON document the
site's /feeds consumer reads. Uses write-to-temp-then-rename so readers
never see a half-written file.
"""
import json
import shutil
import logging
from pathlib import Path
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from tnfeeds.aggregator import AggregationResult

logger = logging.getLogger(__name__)


class FeedWriter:
    """Writes and reads the aggregated feed snapshot."""

    def __init__(self, output_file: Path):
        """
        Initialize feed writer.

        Args:
            output_file: Path to the JSON snapshot
        """
        self.output_file = Path(output_file)

    def build_document(self, result: AggregationResult, now: Optional[datetime] = None) -> Dict[str, Any]:
        """Snapshot document for a cycle result."""
        now = now or datetime.now(timezone.utc)
        return {
            "success": True,
            "fallback": result.fallback,
            "generatedAt": now.isoformat(),
            "count": len(result.articles),
            "failedSources": list(result.failed),
            "articles": [article.to_dict() for article in result.articles],
        }

    def write(self, result: AggregationResult, now: Optional[datetime] = None) -> Path:
        """
        Save the snapshot atomically.

        Returns:
            Path written

        Raises:
            OSError: If write fails (after logging the error)
        """
        document = self.build_document(result, now)

        # Ensure parent directory exists
        self.output_file.parent.mkdir(parents=True, exist_ok=True)

        temp_file = self.output_file.with_suffix(".json.tmp")
        try:
            with open(temp_file, "w", encoding="utf-8") as f:
                json.dump(document, f, indent=2, ensure_ascii=False)
            # Atomic on POSIX
            temp_file.replace(self.output_file)
        except OSError as e:
            logger.error(f"Failed to write feed snapshot: {e}")
            if temp_file.exists():
                try:
                    temp_file.unlink()
                except OSError:
                    pass
            raise

        logger.info(f"Wrote {document['count']} articles to {self.output_file}")
        return self.output_file

    def read(self) -> Optional[Dict[str, Any]]:
        """
        Load the last snapshot.

        Returns:
            Snapshot document, or None if missing or corrupted
        """
        if not self.output_file.exists():
            return None

        try:
            with open(self.output_file, "r", encoding="utf-8") as f:
                return json.load(f)
        except json.JSONDecodeError as e:
            # Backup corrupted file so the next write doesn't destroy it
            backup_path = self.output_file.with_suffix(".json.corrupted")
            logger.error(f"Feed snapshot corrupted: {e}. Backing up to {backup_path}")
            try:
                shutil.copy2(self.output_file, backup_path)
            except OSError as backup_error:
                logger.warning(f"Failed to backup corrupted snapshot: {backup_error}")
            return None

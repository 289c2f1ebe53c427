"""
Storage utility.

File I/O helpers for generated analytics reports.
"""

import json
import os
import logging
from typing import Dict, List, Optional

logger = logging.getLogger(__name__)


class StorageManager:
    """
    Manages file I/O for report persistence.

    Handles:
    - Reports (output/reports/<name>.json)
    """

    def __init__(self, output_root: str):
        """
        Initialize storage manager.

        Args:
            output_root: Root output directory (e.g., /path/to/output)
        """
        self.output_root = output_root
        self.reports_dir = os.path.join(output_root, "reports")

        os.makedirs(self.reports_dir, exist_ok=True)

        logger.info(f"Initialized StorageManager with output_root={output_root}")

    def report_path(self, name: str) -> str:
        return os.path.join(self.reports_dir, f"{name}.json")

    def save_report(self, name: str, data: Dict) -> str:
        """
        Save a report.

        Args:
            name: Report name, e.g. "comparison_2024-06-30"
            data: JSON-serializable report

        Returns:
            Path of the written file
        """
        filepath = self.report_path(name)

        try:
            with open(filepath, 'w') as f:
                json.dump(data, f, indent=2)
            logger.info(f"Saved report to {filepath}")
            return filepath
        except (OSError, TypeError, ValueError) as e:
            logger.error(f"Failed to save report {name}: {e}")
            raise

    def load_report(self, name: str) -> Optional[Dict]:
        """
        Load a report.

        Returns:
            Report dict, or None if the file doesn't exist or is unreadable
        """
        filepath = self.report_path(name)

        if not os.path.exists(filepath):
            logger.debug(f"No report found for {name}")
            return None

        try:
            with open(filepath, 'r') as f:
                return json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.error(f"Failed to load report {name}: {e}")
            return None

    def list_reports(self) -> List[str]:
        """
        Names of all saved reports.

        Returns:
            Sorted list of report names
        """
        names = []
        for filename in os.listdir(self.reports_dir):
            if filename.endswith('.json'):
                names.append(filename[:-len('.json')])

        return sorted(names)

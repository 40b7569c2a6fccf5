import asyncio
import json
import logging
import os
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)

DATA_DIR_ENV = "FOERDERCHECK_DATA_DIR"
DEFAULT_DATA_DIR = "data/applications"

# form ids read by a validation run, one JSON file per form
FORM_IDS = ("hauptantrag", "einkommenserklaerung", "selbstauskunft", "selbsthilfe")


def data_dir() -> str:
    return os.environ.get(DATA_DIR_ENV, DEFAULT_DATA_DIR)


class JsonSnapshotStore:
    """Read form snapshots stored as ``<root>/<subject_id>/<form_id>.json``."""

    def __init__(self, root: Optional[str] = None):
        self.root = root or data_dir()

    def path_for(self, form_id: str, subject_id: str) -> str:
        return os.path.join(self.root, subject_id, f"{form_id}.json")

    def _read(self, form_id: str, subject_id: str) -> Optional[Dict[str, Any]]:
        path = self.path_for(form_id, subject_id)
        if not os.path.exists(path):
            logger.info("no %s snapshot for %s", form_id, subject_id)
            return None
        with open(path, "r", encoding="utf-8") as f:
            return json.load(f)

    async def fetch(self, form_id: str, subject_id: str) -> Optional[Dict[str, Any]]:
        return await asyncio.to_thread(self._read, form_id, subject_id)

    def subjects(self):
        """Subject ids with a snapshot directory, sorted."""
        if not os.path.isdir(self.root):
            return []
        return sorted(d for d in os.listdir(self.root) if os.path.isdir(os.path.join(self.root, d)))

from __future__ import annotations

import json
import logging
import re
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from report_canvas import __version__
from report_canvas.services.storage import StorageBackend
from report_canvas.validation.workbook_validation import validate_workbook_import_dict

logger = logging.getLogger(__name__)

WORKBOOK_FILE = "workbook.json"

_ID_PATTERN = re.compile(r"^[A-Za-z0-9_-]+$")


def generate_workbook_id() -> str:
    return f"wb-{uuid.uuid4().hex[:12]}"


def now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass
class SavedWorkbook:
    """
    The document written to <workbook_id>/workbook.json.

    - state: ReportState.to_dict() output (workbook, filters, cross-filter, selection)
    """
    workbook_id: str
    name: str
    state: Dict[str, Any]
    app_version: str = __version__
    saved_at: str = field(default_factory=now_iso)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "workbook_id": self.workbook_id,
            "name": self.name,
            "app_version": self.app_version,
            "saved_at": self.saved_at,
            "state": self.state,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any], workbook_id: str) -> SavedWorkbook:
        return cls(
            workbook_id=str(data.get("workbook_id") or workbook_id),
            name=str(data.get("name") or workbook_id),
            state=validate_workbook_import_dict(data),
            app_version=str(data.get("app_version") or "unknown"),
            saved_at=str(data.get("saved_at") or now_iso()),
        )


class WorkbookService:
    """
    Saves and loads report workbooks through a {@link StorageBackend}.
    One folder per workbook id, holding a single JSON document.
    """

    def __init__(self, storage: StorageBackend):
        self.storage = storage

    @staticmethod
    def _path(workbook_id: str) -> str:
        if not _ID_PATTERN.match(workbook_id or ""):
            raise ValueError(f"Invalid workbook id: {workbook_id!r}")
        return f"{workbook_id}/{WORKBOOK_FILE}"

    def save(self, state: Dict[str, Any], *, name: str, workbook_id: Optional[str] = None) -> SavedWorkbook:
        """
        Persist a serialised ReportState. A new id is generated unless one is given,
        in which case the existing workbook is overwritten.
        """
        doc = SavedWorkbook(
            workbook_id=workbook_id or generate_workbook_id(),
            name=name.strip() or "Untitled report",
            state=state,
        )
        path = self._path(doc.workbook_id)
        try:
            self.storage.write_bytes(path, json.dumps(doc.to_dict(), indent=2).encode("utf-8"))
        except OSError:
            logger.exception("Failed to persist workbook %s", doc.workbook_id)
            raise
        logger.info("Workbook saved", extra={"workbook_id": doc.workbook_id, "workbook_name": doc.name})
        return doc

    def load(self, workbook_id: str) -> Optional[SavedWorkbook]:
        """
        Load a workbook. Returns None if it does not exist or is not valid JSON.
        :raises ValidationError: if the JSON does not describe a workbook
        """
        path = self._path(workbook_id)
        if not self.storage.exists(path):
            return None
        try:
            data = json.loads(self.storage.read_bytes(path))
        except (OSError, json.JSONDecodeError):
            logger.exception("Failed to load workbook %s", workbook_id)
            return None
        return SavedWorkbook.from_dict(data, workbook_id)

    def list_ids(self) -> List[str]:
        return [d for d in self.storage.list_dirs() if self.storage.exists(f"{d}/{WORKBOOK_FILE}")]

    def list_workbooks(self) -> List[Dict[str, str]]:
        """[{"workbook_id", "name", "saved_at"}] for the load dropdown; unreadable entries are skipped."""
        entries: List[Dict[str, str]] = []
        for workbook_id in self.list_ids():
            try:
                data = json.loads(self.storage.read_bytes(self._path(workbook_id)))
            except (OSError, json.JSONDecodeError):
                logger.warning("Skipping unreadable workbook", extra={"workbook_id": workbook_id})
                continue
            entries.append({
                "workbook_id": workbook_id,
                "name": str(data.get("name") or workbook_id),
                "saved_at": str(data.get("saved_at") or ""),
            })
        return entries

    def delete(self, workbook_id: str) -> bool:
        self._path(workbook_id)  # validates the id
        removed = self.storage.delete_tree(workbook_id)
        if removed:
            logger.info("Workbook deleted", extra={"workbook_id": workbook_id})
        return removed

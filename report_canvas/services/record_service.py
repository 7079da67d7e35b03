from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

import pandas as pd

from report_canvas.core.dataset import RecordSet
from report_canvas.core.exceptions import RecordSourceError

logger = logging.getLogger(__name__)


def frame_to_records(df: pd.DataFrame) -> List[Dict[str, Any]]:
    """
    Flatten a DataFrame into plain record dicts: missing cells become None and
    numpy scalars become Python scalars, so records serialise and compare
    like the JSON they came from.
    """
    clean = df.astype(object).where(df.notna(), None)
    return clean.to_dict(orient="records")


def read_records(path: Path) -> List[Dict[str, Any]]:
    """
    Read a CSV or JSON (list of objects) record file.
    :raises RecordSourceError: unknown extension, unreadable or malformed file
    """
    suffix = path.suffix.lower()
    try:
        if suffix == ".csv":
            df = pd.read_csv(path)
        elif suffix == ".json":
            df = pd.read_json(path, orient="records", convert_dates=False)
        else:
            raise RecordSourceError(f"Unsupported record file type '{suffix}' ({path})")
    except (OSError, ValueError) as e:
        raise RecordSourceError(f"Could not read records from {path}: {e}") from e
    return frame_to_records(df)


class RecordSource:
    """
    Supplies the materialised record set.

    Keeps the last successfully loaded {@link RecordSet}: a failed reload logs
    the error and keeps serving the previous records (empty if there never
    were any).
    """

    def __init__(self, path: Optional[Path]):
        self.path = Path(path) if path is not None else None
        self._last: Optional[RecordSet] = None

    @property
    def records(self) -> RecordSet:
        if self._last is None:
            return self.reload()
        return self._last

    def reload(self) -> RecordSet:
        if self.path is None:
            logger.warning("No data_file configured; serving an empty record set")
            self._last = RecordSet.empty()
            return self._last
        try:
            records = read_records(self.path)
        except RecordSourceError:
            logger.exception("Record load failed; keeping last known records", extra={"path": str(self.path)})
            if self._last is None:
                self._last = RecordSet.empty()
            return self._last

        self._last = RecordSet(records, source=str(self.path))
        logger.info("Records loaded", extra={"path": str(self.path), "n_records": len(self._last)})
        return self._last

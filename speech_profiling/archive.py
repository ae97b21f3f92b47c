"""
Archive Module

JSON-file storage for finished session reports. Entries keep insertion
order; each save or delete rewrites the whole document.
"""

import json
import os
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List

import config
from speech_profiling.export import NumpyEncoder
from speech_profiling.report import SessionReport, SourceKind, make_report_id


@dataclass(frozen=True)
class ArchiveEntry:
    """A stored report and its position in the archive."""
    index: int
    report: SessionReport


class ReportArchive:
    """
    Persistent, ordered collection of SessionReports.

    CONTRACT:
    - Entries are created only by save() and removed only by delete()
    - Stored reports are never modified
    - Every mutation is a read-modify-write of the file, replaced atomically

    Parameters:
        path: JSON file holding the archive (created on first save)
    """

    def __init__(self, path) -> None:
        self.path = Path(path)
        self._reports: List[SessionReport] = self.load_all()

    def __len__(self) -> int:
        return len(self._reports)

    def load_all(self) -> List[SessionReport]:
        """
        Read every stored report from disk, in insertion order.

        Raises:
            ValueError: If the file is not a valid archive document
        """
        if not self.path.exists():
            return []

        with open(self.path) as f:
            try:
                document = json.load(f)
            except json.JSONDecodeError as e:
                raise ValueError(f"Archive {self.path} is not valid JSON: {e}") from e

        if isinstance(document, list):
            records = document
        elif isinstance(document, dict) and 'entries' in document:
            records = document['entries']
        else:
            raise ValueError(f"Archive {self.path} has no 'entries' list")

        return [SessionReport.from_dict(record) for record in records]

    def list(self) -> List[ArchiveEntry]:
        return [ArchiveEntry(index=i, report=r) for i, r in enumerate(self._reports)]

    def ids(self) -> List[str]:
        return [r.id for r in self._reports]

    def get(self, index: int) -> SessionReport:
        """
        Raises:
            IndexError: If index is out of range
        """
        self._check_index(index)
        return self._reports[index]

    def next_id(self, source_kind: SourceKind) -> str:
        """Id the next report of this source kind would receive."""
        return make_report_id(source_kind, self.ids())

    def save(self, report: SessionReport) -> str:
        """
        Append a report and persist the archive.

        Returns:
            The stored report's id
        """
        reports = self.load_all()
        reports.append(report)
        self._write(reports)
        self._reports = reports
        return report.id

    def delete(self, index: int) -> SessionReport:
        """
        Remove the entry at ``index`` and persist the archive.

        Returns:
            The removed report

        Raises:
            IndexError: If index is out of range
        """
        reports = self.load_all()
        self._reports = reports
        self._check_index(index)
        removed = reports.pop(index)
        self._write(reports)
        return removed

    def _check_index(self, index: int) -> None:
        if not (0 <= index < len(self._reports)):
            raise IndexError(f"Archive index {index} out of range (0..{len(self._reports) - 1})")

    def _write(self, reports: List[SessionReport]) -> None:
        document: Dict = {
            'schema_version': config.SCHEMA_VERSION,
            'entries': [r.to_dict() for r in reports],
        }
        self.path.parent.mkdir(parents=True, exist_ok=True)

        fd, tmp_path = tempfile.mkstemp(dir=self.path.parent, suffix='.tmp')
        try:
            with os.fdopen(fd, 'w') as f:
                json.dump(document, f, indent=2, cls=NumpyEncoder)
            os.replace(tmp_path, self.path)
        except BaseException:
            if os.path.exists(tmp_path):
                os.remove(tmp_path)
            raise

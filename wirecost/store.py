"""
Sheet-shaped record store.

Each sheet is an append-only table with an ordered header row. Rows go in
as {header: value} mappings and come back as {header: str} — every cell is
text, exactly as the spreadsheet the costing data came from stored it.
The first header is the row key (e.g. "Costing ID"); keys are unique per sheet.

Two implementations:
- SqlRecordStore — the real one, on top of a SQLAlchemy session
- InMemoryRecordStore — for scripts and tests
"""

import json
import logging
from abc import ABC, abstractmethod
from typing import Dict, List, Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from . import models

logger = logging.getLogger(__name__)


class RecordStoreError(Exception):
    """Store could not complete the read or write."""


class SheetNotFoundError(RecordStoreError):
    def __init__(self, sheet_name: str):
        super().__init__(
            f"Sheet {sheet_name} does not exist. Initialize it before reading or appending."
        )
        self.sheet_name = sheet_name


class DuplicateRowError(RecordStoreError):
    def __init__(self, sheet_name: str, row_key: str):
        super().__init__(f"Row {row_key} already exists in sheet {sheet_name}")
        self.sheet_name = sheet_name
        self.row_key = row_key


class HeaderConflictError(RecordStoreError):
    """Sheet already holds rows under a different header row."""


def format_cell(value) -> str:
    """Stringify one cell: None -> '', lists/dicts -> JSON text, anything else -> str."""
    if value is None:
        return ""
    if isinstance(value, (list, dict)):
        return json.dumps(value)
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


class RecordStore(ABC):
    """Append-only sheet store interface."""

    @abstractmethod
    def sheet_exists(self, sheet_name: str) -> bool:
        pass

    @abstractmethod
    def initialize_sheet(self, sheet_name: str, headers: List[str]) -> bool:
        """Create the sheet. Returns True if created or re-headed, False if already in place."""
        pass

    @abstractmethod
    def get_sheet_headers(self, sheet_name: str) -> List[str]:
        pass

    @abstractmethod
    def read_all_rows(self, sheet_name: str) -> List[Dict[str, str]]:
        pass

    @abstractmethod
    def append_row(self, sheet_name: str, row_data: dict) -> Dict[str, str]:
        """Append one row. Returns the row as stored (all cells text)."""
        pass

    # --- shared helpers ---

    def _row_values(self, headers: List[str], row_data: dict) -> List[str]:
        return [format_cell(row_data.get(header)) for header in headers]

    def _row_dict(self, headers: List[str], values: List[str]) -> Dict[str, str]:
        return {
            header: (values[i] if i < len(values) and values[i] is not None else "")
            for i, header in enumerate(headers)
        }

    def _row_key(self, values: List[str]) -> Optional[str]:
        if not values or values[0] == "":
            return None
        return values[0]


class SqlRecordStore(RecordStore):
    """Sheets and rows in the sheets / sheet_rows tables."""

    def __init__(self, db: Session):
        self.db = db

    def _get_sheet(self, sheet_name: str) -> Optional[models.Sheet]:
        try:
            return self.db.query(models.Sheet).filter(models.Sheet.name == sheet_name).first()
        except SQLAlchemyError as e:
            raise RecordStoreError(f"Error reading sheet {sheet_name}: {e}") from e

    def sheet_exists(self, sheet_name: str) -> bool:
        return self._get_sheet(sheet_name) is not None

    def initialize_sheet(self, sheet_name: str, headers: List[str]) -> bool:
        headers = list(headers)
        sheet = self._get_sheet(sheet_name)
        try:
            if sheet is None:
                self.db.add(models.Sheet(name=sheet_name, headers_json=headers))
                self.db.commit()
                logger.info("Initialized sheet %s with %d headers", sheet_name, len(headers))
                return True

            if list(sheet.headers_json or []) == headers:
                return False

            row_count = self.db.query(models.SheetRow).filter(
                models.SheetRow.sheet_name == sheet_name
            ).count()
            if row_count:
                raise HeaderConflictError(
                    f"Sheet {sheet_name} already has {row_count} rows under different headers"
                )
            sheet.headers_json = headers
            self.db.commit()
            logger.info("Replaced headers on empty sheet %s", sheet_name)
            return True
        except SQLAlchemyError as e:
            self.db.rollback()
            raise RecordStoreError(f"Error initializing sheet {sheet_name}: {e}") from e

    def get_sheet_headers(self, sheet_name: str) -> List[str]:
        sheet = self._get_sheet(sheet_name)
        if sheet is None:
            raise SheetNotFoundError(sheet_name)
        return list(sheet.headers_json or [])

    def read_all_rows(self, sheet_name: str) -> List[Dict[str, str]]:
        headers = self.get_sheet_headers(sheet_name)
        try:
            rows = self.db.query(models.SheetRow).filter(
                models.SheetRow.sheet_name == sheet_name
            ).order_by(models.SheetRow.id).all()
        except SQLAlchemyError as e:
            raise RecordStoreError(f"Error getting data from sheet {sheet_name}: {e}") from e
        return [self._row_dict(headers, row.values_json or []) for row in rows]

    def append_row(self, sheet_name: str, row_data: dict) -> Dict[str, str]:
        headers = self.get_sheet_headers(sheet_name)
        if not headers:
            raise RecordStoreError(f"No headers available for sheet {sheet_name}")

        values = self._row_values(headers, row_data)
        row_key = self._row_key(values)
        try:
            if row_key is not None:
                existing = self.db.query(models.SheetRow).filter(
                    models.SheetRow.sheet_name == sheet_name,
                    models.SheetRow.row_key == row_key,
                ).first()
                if existing:
                    raise DuplicateRowError(sheet_name, row_key)
            self.db.add(models.SheetRow(sheet_name=sheet_name, row_key=row_key, values_json=values))
            self.db.commit()
        except IntegrityError as e:
            # Lost a race with a concurrent append of the same key
            self.db.rollback()
            raise DuplicateRowError(sheet_name, row_key) from e
        except SQLAlchemyError as e:
            self.db.rollback()
            raise RecordStoreError(f"Error appending row to sheet {sheet_name}: {e}") from e
        return self._row_dict(headers, values)


class InMemoryRecordStore(RecordStore):
    """Dict-backed store with the same semantics as SqlRecordStore."""

    def __init__(self):
        self._sheets: Dict[str, dict] = {}

    def sheet_exists(self, sheet_name: str) -> bool:
        return sheet_name in self._sheets

    def initialize_sheet(self, sheet_name: str, headers: List[str]) -> bool:
        headers = list(headers)
        sheet = self._sheets.get(sheet_name)
        if sheet is None:
            self._sheets[sheet_name] = {"headers": headers, "rows": []}
            return True
        if sheet["headers"] == headers:
            return False
        if sheet["rows"]:
            raise HeaderConflictError(
                f"Sheet {sheet_name} already has {len(sheet['rows'])} rows under different headers"
            )
        sheet["headers"] = headers
        return True

    def get_sheet_headers(self, sheet_name: str) -> List[str]:
        if sheet_name not in self._sheets:
            raise SheetNotFoundError(sheet_name)
        return list(self._sheets[sheet_name]["headers"])

    def read_all_rows(self, sheet_name: str) -> List[Dict[str, str]]:
        headers = self.get_sheet_headers(sheet_name)
        return [self._row_dict(headers, values) for values in self._sheets[sheet_name]["rows"]]

    def append_row(self, sheet_name: str, row_data: dict) -> Dict[str, str]:
        headers = self.get_sheet_headers(sheet_name)
        if not headers:
            raise RecordStoreError(f"No headers available for sheet {sheet_name}")
        values = self._row_values(headers, row_data)
        row_key = self._row_key(values)
        rows = self._sheets[sheet_name]["rows"]
        if row_key is not None and any(self._row_key(r) == row_key for r in rows):
            raise DuplicateRowError(sheet_name, row_key)
        rows.append(values)
        return self._row_dict(headers, values)

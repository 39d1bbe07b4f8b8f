"""
ReportService - reporting rows, CSV import/export, hierarchies and data-quality checks
over the stored entities
"""

import logging
from typing import Any, Dict, List, Optional, Sequence

from repositories.entity_repository import EntityRepository
from services.common.exceptions import LedgerUnavailableError
from services.common.result import ErrorCode, Result
from services.contact_hierarchy_service import build_reporting_hierarchy
from services.csv_export_service import (
    CSV_LIST_SEPARATOR,
    export_contacts_csv,
    export_rows_csv,
    parse_contacts_csv,
)
from services.data_quality_service import find_reference_issues
from services.row_flattener import LIST_SEPARATOR, ROW_COLUMNS, CombinedRow, flatten

logger = logging.getLogger(__name__)


class ReportService:
    """Views over accounts, contacts and tasks, and contact CSV import"""

    def __init__(self, entity_repository: EntityRepository):
        self.entity_repository = entity_repository

    def get_rows(self, account_id: Optional[str] = None,
                 list_separator: str = LIST_SEPARATOR) -> List[CombinedRow]:
        accounts = self.entity_repository.get_accounts()
        if account_id:
            accounts = [a for a in accounts if a.id == account_id]
        return flatten(accounts, self.entity_repository.get_contacts(), list_separator)

    def get_rows_result(self, account_id: Optional[str] = None) -> Result[List[Dict[str, Any]]]:
        try:
            rows = self.get_rows(account_id)
        except LedgerUnavailableError as e:
            logger.error(f"Failed to load reporting rows: {e}")
            return Result.failure(str(e), code=ErrorCode.STORE_UNAVAILABLE)
        return Result.success([row.to_dict() for row in rows], metadata={"count": len(rows)})

    def export_csv(self, columns: Optional[Sequence[str]] = None) -> Result[str]:
        """
        Flattened rows as CSV text.

        Unknown column names fail with INVALID_COLUMNS.
        """
        if columns:
            unknown = [c for c in columns if c not in ROW_COLUMNS]
            if unknown:
                return Result.failure(
                    f"Unknown columns: {', '.join(unknown)}",
                    code=ErrorCode.INVALID_COLUMNS,
                )
        try:
            rows = self.get_rows(list_separator=CSV_LIST_SEPARATOR)
        except LedgerUnavailableError as e:
            logger.error(f"Export failed: {e}")
            return Result.failure(str(e), code=ErrorCode.STORE_UNAVAILABLE)
        return Result.success(export_rows_csv(rows, columns), metadata={"count": len(rows)})

    def get_hierarchy(self, account_id: str) -> Result[List[Dict[str, Any]]]:
        try:
            account = self.entity_repository.get_account(account_id)
            if account is None:
                return Result.failure(f"Account {account_id} not found", code=ErrorCode.NOT_FOUND)
            contacts = self.entity_repository.get_contacts_for_account(account_id)
        except LedgerUnavailableError as e:
            logger.error(f"Failed to load hierarchy for {account_id}: {e}")
            return Result.failure(str(e), code=ErrorCode.STORE_UNAVAILABLE)
        forest = build_reporting_hierarchy(account_id, contacts)
        return Result.success([node.to_dict() for node in forest])

    def get_data_quality_issues(self) -> Result[List[Dict[str, str]]]:
        try:
            issues = find_reference_issues(
                self.entity_repository.get_accounts(),
                self.entity_repository.get_contacts(),
                self.entity_repository.get_tasks(),
            )
        except LedgerUnavailableError as e:
            logger.error(f"Failed to run data-quality checks: {e}")
            return Result.failure(str(e), code=ErrorCode.STORE_UNAVAILABLE)
        return Result.success([issue.to_dict() for issue in issues], metadata={"count": len(issues)})

    def export_contacts_csv(self) -> Result[str]:
        """Every stored contact in the contact import layout"""
        try:
            contacts = self.entity_repository.get_contacts()
        except LedgerUnavailableError as e:
            logger.error(f"Contact export failed: {e}")
            return Result.failure(str(e), code=ErrorCode.STORE_UNAVAILABLE)
        csv_text = export_contacts_csv(contact.attributes for contact in contacts)
        return Result.success(csv_text, metadata={"count": len(contacts)})

    def import_contacts_csv(self, text: str) -> Result[Dict[str, int]]:
        """
        Upsert contacts from CSV text.

        Nothing is written when any row is invalid.
        """
        try:
            contacts = parse_contacts_csv(text)
        except ValueError as e:
            return Result.failure(str(e), code=ErrorCode.VALIDATION_ERROR)
        try:
            counts = self.entity_repository.upsert_contacts(contacts)
        except LedgerUnavailableError as e:
            logger.error(f"Contact import failed: {e}")
            return Result.failure(str(e), code=ErrorCode.STORE_UNAVAILABLE)
        return Result.success(counts, metadata={"count": len(contacts)})

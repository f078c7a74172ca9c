"""
-------------------------------------------------------------------------
System: Stalo (Budget Allocation & Payroll Tracker)
Client: Finance & Operations Department
Team Lead: Jamil Shah
Developers: Ali Asghar, Akhtar Munir and Zarif Khan
Description: Centralized logging for auditable Stalo operations.
-------------------------------------------------------------------------
"""
import logging
from datetime import date
from typing import Iterable, Optional

logger = logging.getLogger('stalo')


class StaloLogger:
    """Centralized logging for auditable operations"""

    @staticmethod
    def log_role_changed(user, old_role: str, new_role: str, changed_by: str):
        """Log a system user's role change"""
        logger.warning(
            f"Role changed: {user.email_address} | "
            f"From: {old_role} | To: {new_role} | "
            f"Changed by: {changed_by}",
            extra={
                'system_user_id': str(user.pk),
                'old_role': old_role,
                'new_role': new_role,
                'changed_by': changed_by,
            }
        )

    @staticmethod
    def log_system_user_deleted(user, deleted_by: str):
        """Log removal of a system user"""
        logger.warning(
            f"System user deleted: {user.email_address} | "
            f"Role: {user.role} | Deleted by: {deleted_by}",
            extra={
                'system_user_id': str(user.pk),
                'deleted_by': deleted_by,
            }
        )

    @staticmethod
    def log_allocation(allocation, action: str, actor: Optional[str] = None):
        """Log allocation create/delete"""
        logger.info(
            f"Allocation {action}: {allocation.resource.name} -> "
            f"{allocation.position.position_name} | "
            f"Project: {allocation.project.name} | "
            f"Month: {allocation.month_year:%Y-%m} | "
            f"By: {actor or '-'}",
            extra={
                'allocation_id': str(allocation.pk),
                'position_id': str(allocation.position_id),
                'resource_id': str(allocation.resource_id),
            }
        )

    @staticmethod
    def log_payroll_lock(month: Optional[date], count: int, locked: bool, actor: Optional[str] = None):
        """Log payroll lock/unlock"""
        logger.info(
            f"Payroll {'locked' if locked else 'unlocked'}: "
            f"{count} record(s)"
            f"{f' for {month:%Y-%m}' if month else ''} | "
            f"By: {actor or '-'}",
            extra={
                'month': month.isoformat() if month else None,
                'count': count,
                'locked': locked,
            }
        )

    @staticmethod
    def log_budget_saved(version, records: int, modified_by: str, mode: str = 'replace'):
        """Log budget data save"""
        logger.info(
            f"Budget data saved ({mode}): {version.job_no} / {version.version_name} | "
            f"Records: {records} | By: {modified_by}",
            extra={
                'version_id': version.pk,
                'job_no': version.job_no,
                'records': records,
            }
        )

    @staticmethod
    def log_import(kind: str, created: int, updated: int, errors: Iterable, actor: Optional[str] = None):
        """Log a spreadsheet import"""
        errors = list(errors)
        log = logger.warning if errors else logger.info
        log(
            f"{kind} import: {created} created, {updated} updated, "
            f"{len(errors)} error(s) | By: {actor or '-'}",
            extra={
                'kind': kind,
                'created_count': created,
                'updated_count': updated,
                'errors': len(errors),
            }
        )

    @staticmethod
    def log_journal_posted(journal_code: str, lines: int, failures: int, actor: Optional[str] = None):
        """Log Business Central journal posting"""
        log = logger.warning if failures else logger.info
        log(
            f"Journal lines posted to {journal_code}: {lines} line(s), "
            f"{failures} failure(s) | By: {actor or '-'}",
            extra={
                'journal': journal_code,
                'lines': lines,
                'failures': failures,
            }
        )

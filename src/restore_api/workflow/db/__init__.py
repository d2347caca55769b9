"""
Workflow DB Module

Azure Table Storage access for restore requests.
"""

from restore_api.workflow.db.repository_restore import RestoreTableRepository
from restore_api.workflow.db.table_store import RestoreTableStore

__all__ = [
    "RestoreTableRepository",
    "RestoreTableStore",
]

"""
Application Selection

Tracks which applications are selected for migration and how the
application list is sorted.
"""

from typing import Iterable
from dataclasses import dataclass

from databridge.contracts import (
    ApplicationBulkSelectionRequest,
    ApplicationListRequest,
    SortOrder,
)


class ApplicationSelection:
    """
    Ordered set of selected application IDs.

    Example:
        >>> selection = ApplicationSelection()
        >>> selection.toggle_page(["app-1", "app-2"])
        >>> selection.ids
        ['app-1', 'app-2']
    """

    def __init__(self, ids: Iterable[str] | None = None):
        self._ids: list[str] = []
        for app_id in ids or []:
            if app_id not in self._ids:
                self._ids.append(app_id)

    @property
    def ids(self) -> list[str]:
        return list(self._ids)

    def __len__(self) -> int:
        return len(self._ids)

    def __contains__(self, app_id: object) -> bool:
        return app_id in self._ids

    def toggle(self, app_id: str) -> bool:
        """Flip one application. Returns True if it is now selected."""
        if app_id in self._ids:
            self._ids.remove(app_id)
            return False
        self._ids.append(app_id)
        return True

    def toggle_page(self, page_ids: Iterable[str]) -> None:
        """
        Select or deselect a whole page.

        If every ID on the page is already selected they are all removed;
        otherwise the missing ones are added.
        """
        page_ids = list(page_ids)
        if not page_ids:
            return

        if all(app_id in self._ids for app_id in page_ids):
            self._ids = [app_id for app_id in self._ids if app_id not in page_ids]
        else:
            for app_id in page_ids:
                if app_id not in self._ids:
                    self._ids.append(app_id)

    def clear(self) -> None:
        self._ids = []

    def to_request(self, connection_profile_id: str) -> ApplicationBulkSelectionRequest:
        """Build the selection request. An empty selection is rejected."""
        if not self._ids:
            raise ValueError("No applications selected")
        return ApplicationBulkSelectionRequest(
            connection_profile_id=connection_profile_id,
            application_ids=self.ids,
            select_all=False,
        )


@dataclass
class SortState:
    """Column sort of the application list."""

    sort_by: str = "application_name"
    sort_order: SortOrder = SortOrder.ASC

    def toggle(self, column: str) -> None:
        """Same column flips the order; a new column starts ascending."""
        if self.sort_by == column:
            self.sort_order = SortOrder.DESC if self.sort_order == SortOrder.ASC else SortOrder.ASC
        else:
            self.sort_by = column
            self.sort_order = SortOrder.ASC

    def to_request(
        self,
        connection_profile_id: str,
        page: int = 1,
        page_size: int = 50,
        search_term: str | None = None,
    ) -> ApplicationListRequest:
        """Build a list request. Blank search terms are left out."""
        data = {
            "connection_profile_id": connection_profile_id,
            "page": page,
            "page_size": page_size,
            "sort_by": self.sort_by,
            "sort_order": self.sort_order,
        }
        if search_term:
            data["search_term"] = search_term
        return ApplicationListRequest(**data)

"""Domain layer definitions."""

from .collections import FetchState, ListOptions, MutationRequest, OrderBy
from .listing import (
    ACTIONS_COLUMN,
    ALL_VALUES,
    EMPTY_FILTER_LABEL,
    ColumnDescriptor,
    ConfirmPending,
    DeleteState,
    FilterOption,
    HeaderCell,
    ListState,
    NoPendingDelete,
    RowCapabilities,
    SortConfig,
    TableRow,
    TableView,
)

__all__ = [
    "ACTIONS_COLUMN",
    "ALL_VALUES",
    "EMPTY_FILTER_LABEL",
    "ColumnDescriptor",
    "ConfirmPending",
    "DeleteState",
    "FetchState",
    "FilterOption",
    "HeaderCell",
    "ListOptions",
    "ListState",
    "MutationRequest",
    "NoPendingDelete",
    "OrderBy",
    "RowCapabilities",
    "SortConfig",
    "TableRow",
    "TableView",
]

"""Application services."""

from .accessor import RemoteCollectionAccessor
from .controller import EntityListController
from .screens import (
    ConsoleService,
    ListQuery,
    ScreenDefinition,
    UnknownScreenError,
    configure_console_service,
    get_console_service,
    load_screens,
    reset_console_state,
)

__all__ = [
    "ConsoleService",
    "EntityListController",
    "ListQuery",
    "RemoteCollectionAccessor",
    "ScreenDefinition",
    "UnknownScreenError",
    "configure_console_service",
    "get_console_service",
    "load_screens",
    "reset_console_state",
]

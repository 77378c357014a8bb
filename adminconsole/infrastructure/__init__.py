"""Infrastructure layer exports."""

from .cache import QueryCache
from .export_sinks import DirectoryExportSink, ExportSink
from .rest_store import RestCollectionStore
from .store import CollectionStore, InMemoryCollectionStore

__all__ = [
    "CollectionStore",
    "DirectoryExportSink",
    "ExportSink",
    "InMemoryCollectionStore",
    "QueryCache",
    "RestCollectionStore",
]

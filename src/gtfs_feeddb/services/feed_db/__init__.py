"""Multi-feed GTFS storage on a relational backend."""

from gtfs_feeddb.services.feed_db.backends import Backend, PostgresBackend, SqliteBackend, get_backend
from gtfs_feeddb.services.feed_db.bulk_loader import BulkLoader
from gtfs_feeddb.services.feed_db.collection import EntityCollection, EntityStream
from gtfs_feeddb.services.feed_db.descriptors import DESCRIPTORS, EntityDescriptor
from gtfs_feeddb.services.feed_db.feed_store import FeedStore, FeedView
from gtfs_feeddb.services.feed_db.maintenance import TableRebuilder
from gtfs_feeddb.services.feed_db.schema import SchemaManager

__all__ = [
    "DESCRIPTORS",
    "Backend",
    "BulkLoader",
    "EntityCollection",
    "EntityDescriptor",
    "EntityStream",
    "FeedStore",
    "FeedView",
    "PostgresBackend",
    "SchemaManager",
    "SqliteBackend",
    "TableRebuilder",
    "get_backend",
]

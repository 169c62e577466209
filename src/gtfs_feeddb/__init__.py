"""GTFS Feed DB: keep many GTFS feeds side by side in one SQL database."""

from gtfs_feeddb.models import FeedInfo, GtfsFeed
from gtfs_feeddb.services.feed_db import FeedStore, FeedView

__all__ = ["FeedInfo", "FeedStore", "FeedView", "GtfsFeed"]

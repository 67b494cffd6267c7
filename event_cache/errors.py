"""Exceptions raised by the schedule cache and its collaborators."""


class ScheduleCacheError(Exception):
    """Base class for schedule cache errors."""


class MalformedRecordError(ScheduleCacheError, ValueError):
    """A persisted text record could not be decoded."""


class EventNotFoundError(ScheduleCacheError, LookupError):
    """An event identity is not present in the all-events index."""

    def __init__(self, pk: int):
        super().__init__(f"event {pk} is not loaded")
        self.pk = pk


class FeedUnavailableError(ScheduleCacheError):
    """The remote feed could not be reached."""


class MalformedFeedError(ScheduleCacheError, ValueError):
    """The remote feed answered with a payload that failed validation."""


class PersistenceError(ScheduleCacheError):
    """The record store rejected a read or write."""

"""Custom exception hierarchy for igsnap."""


class IgsnapError(Exception):
    """Base exception for all igsnap errors."""


class InvalidInputError(IgsnapError):
    """Username missing or not a valid Instagram handle."""


class NotConfiguredError(IgsnapError):
    """A required credential or setting is absent."""


class TransientFetchError(IgsnapError):
    """Remote dataset could not be fetched; worth retrying."""


class RemoteJobError(IgsnapError):
    """Remote actor run could not be started or did not produce a dataset."""


class RelocationError(IgsnapError):
    """Media asset could not be copied into the object store."""


class PersistenceError(IgsnapError):
    """Snapshot store read or write failed."""

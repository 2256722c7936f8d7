"""Custom exception classes shared by the store, the cache and the shell."""


class AirdropException(Exception):
    """
    Base exception class for all AirDrop-related errors.
    """
    pass


class StorageFullError(AirdropException):
    """
    Raised when the underlying key-value store reports its quota is exceeded.
    """
    pass


class PayloadDecodeError(AirdropException):
    """
    Raised when file content cannot be encoded to, or decoded from, a payload.
    """
    pass


class CorruptRecordError(AirdropException):
    """
    Raised when a persisted bundle record cannot be parsed or validated.
    """
    pass


class IdentifierExhaustedError(AirdropException):
    """
    Raised when no unused bundle identifier could be drawn.
    """
    pass


class EmptySelectionError(AirdropException):
    """
    Raised when a share is requested with no files selected.
    """
    pass


class ShareFailedError(AirdropException):
    """
    Raised when none of the selected files could be encoded.
    """
    pass


class BundleItemNotFoundError(AirdropException):
    """
    Raised when a requested file index is not part of the opened bundle.
    """
    pass


class NetworkFailureError(AirdropException):
    """
    Raised when a network fetch fails at the transport level.
    """
    pass


class InstallFailedError(AirdropException):
    """
    Raised when a resource cache version fails to precache its manifest.
    """
    pass

"""Custom exception classes for the drop server."""


class DropException(Exception):
    """
    Base exception class for all drop server errors.
    """
    pass


class InvalidArgumentError(DropException):
    """
    Raised when request input is missing or malformed.
    """
    pass


class NotConfiguredError(DropException):
    """
    Raised when a storage operation is attempted before storage is set.
    """
    pass


class ForbiddenError(DropException):
    """
    Raised when a remote viewer attempts an operator-only operation.
    """
    pass


class StorageError(DropException):
    """
    Raised when the filesystem fails underneath a storage operation.
    """
    pass


class NotFoundError(DropException):
    """
    Raised when a requested file does not exist in storage.
    """
    pass


class BridgeUnavailableError(DropException):
    """
    Raised when the bridge is used without a reachable public tunnel URL.
    """
    pass

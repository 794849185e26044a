"""
Error taxonomy.

Every failure the manager can report is one of five families:

- FetchError: remote manifest or package code could not be retrieved
- LoadError: downloaded package code could not be turned into a module
- StorageError: a document or cache file could not be written
- StateError: the requested transition is not valid for the package's state
- ModuleFault: package code raised from one of its own hooks

Components raise these; the lifecycle controller catches them at its boundary
and hands them back inside an OperationResult.
"""


class PowerSpoonsError(Exception):
    """Base exception for all manager errors."""

    pass


# Fetch errors


class FetchError(PowerSpoonsError):
    """Base exception for network retrieval errors."""

    pass


class HttpError(FetchError):
    """Raised when the server answers with a status other than 200."""

    def __init__(self, status: int, url: str = ""):
        self.status = status
        self.url = url
        super().__init__(f"HTTP {status}")


class InvalidManifest(FetchError):
    """Raised when the manifest body is not a JSON object of the expected shape."""

    pass


class EmptyResponse(FetchError):
    """Raised when the server returns an empty body."""

    pass


class NetworkError(FetchError):
    """Raised when the request could not complete (connection, timeout)."""

    pass


# Load errors


class LoadError(PowerSpoonsError):
    """Base exception for package code loading errors."""

    def __init__(self, package_id: str, message: str):
        self.package_id = package_id
        super().__init__(message)


class CompileError(LoadError):
    """Raised when package source is not valid Python."""

    pass


class ExecError(LoadError):
    """Raised when the package body or its factory raises."""

    pass


class NotAFactory(LoadError):
    """Raised when the package does not expose a callable factory."""

    pass


class InvalidModule(LoadError):
    """Raised when the factory result does not satisfy the module contract."""

    pass


# Storage errors


class StorageError(PowerSpoonsError):
    """Base exception for local persistence errors."""

    def __init__(self, path, message: str):
        self.path = path
        super().__init__(message)


class WriteFailed(StorageError):
    """Raised when a document cannot be encoded or its directory ensured."""

    pass


class OpenFailed(StorageError):
    """Raised when the target file cannot be opened for writing."""

    pass


# State errors


class StateError(PowerSpoonsError):
    """Base exception for invalid lifecycle transitions."""

    def __init__(self, package_id: str, message: str):
        self.package_id = package_id
        super().__init__(message)


class UnknownPackage(StateError):
    """Raised when no manifest definition exists for the package id."""

    def __init__(self, package_id: str):
        super().__init__(package_id, f"Package '{package_id}' not found in manifest")


class NotInstalled(StateError):
    """Raised when the operation requires an installed package."""

    def __init__(self, package_id: str):
        super().__init__(package_id, f"Package '{package_id}' is not installed")


class NotCached(StateError):
    """Raised when the package's code is missing from the cache."""

    def __init__(self, package_id: str):
        super().__init__(
            package_id, f"Package '{package_id}' code not cached. Try reinstalling."
        )


class OperationInProgress(StateError):
    """Raised when a network-bound operation on the package is already pending."""

    def __init__(self, package_id: str, operation: str = ""):
        self.operation = operation
        suffix = f" ({operation})" if operation else ""
        super().__init__(
            package_id, f"Another operation on '{package_id}' is in progress{suffix}"
        )


# Runtime faults


class ModuleFault(PowerSpoonsError):
    """Raised (and caught) when a package's own start/stop/menu call raises."""

    def __init__(self, package_id: str, hook: str, cause: BaseException):
        self.package_id = package_id
        self.hook = hook
        self.cause = cause
        super().__init__(f"Package '{package_id}' {hook}() failed: {cause}")

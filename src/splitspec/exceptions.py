"""Exception hierarchy for splitspec.

All exceptions inherit from :class:`SplitspecError`, which carries an
``exit_code`` attribute mapped to a constant from :mod:`splitspec.exit_codes`.
The top-level error handler in :func:`splitspec.app.main` catches
``SplitspecError`` and exits with the appropriate code, while unexpected
exceptions produce a crash log and exit with :data:`EXIT_GENERIC_FAILURE`.

Subclass hierarchy::

    SplitspecError (exit 1)
    +-- InvalidUsageError          (exit 2)
    +-- StorageUnavailableError    (exit 3)
    +-- DocumentNotFoundError      (exit 4)
    |   +-- EndpointFileNotFoundError
    +-- MethodNotFoundError        (exit 5)
    +-- MalformedDocumentError     (exit 7)
    +-- ConfigError                (exit 1)

Schema depth and circular-reference cut-offs are deliberately absent: the
tree builder truncates silently and only logs them.
"""

from splitspec.exit_codes import (
    EXIT_GENERIC_FAILURE,
    EXIT_INVALID_USAGE,
    EXIT_MALFORMED_DOCUMENT,
    EXIT_METHOD_NOT_FOUND,
    EXIT_NOT_FOUND,
    EXIT_STORAGE_UNAVAILABLE,
)


class SplitspecError(Exception):
    """Base exception for all splitspec errors.

    Every subclass sets a class-level ``exit_code`` corresponding to one of
    the constants in :mod:`splitspec.exit_codes`. The entry point catches
    this exception type and calls ``sys.exit(exc.exit_code)``.

    Args:
        message: Human-readable error description printed to stderr.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class InvalidUsageError(SplitspecError):
    """Raised for invalid CLI arguments (unknown project, unknown endpoint)."""

    exit_code = EXIT_INVALID_USAGE


class StorageUnavailableError(SplitspecError):
    """Raised when the workspace root is missing or is not a directory."""

    exit_code = EXIT_STORAGE_UNAVAILABLE


class DocumentNotFoundError(SplitspecError):
    """Raised when a root spec, path-item or schema file cannot be located.

    Only fatal when the file is the primary target of a call. Nested ``$ref``
    targets that are missing are reported by the resolver as unresolved
    instead.
    """

    exit_code = EXIT_NOT_FOUND


class EndpointFileNotFoundError(DocumentNotFoundError):
    """Raised when the path-item file requested by ``parse_endpoint`` is missing."""


class MethodNotFoundError(SplitspecError):
    """Raised when a path-item file has no operation for the requested HTTP method."""

    exit_code = EXIT_METHOD_NOT_FOUND


class MalformedDocumentError(SplitspecError):
    """Raised when a document that must be a YAML mapping does not parse as one."""

    exit_code = EXIT_MALFORMED_DOCUMENT


class ConfigError(SplitspecError):
    """Raised for configuration problems (invalid JSON, bad values, unknown keys)."""

    exit_code = EXIT_GENERIC_FAILURE

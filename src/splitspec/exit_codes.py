"""Numeric process exit codes following `clig.dev <https://clig.dev/>`_ conventions.

Each constant maps to a specific error category and is referenced by the
corresponding :class:`~splitspec.exceptions.SplitspecError` subclass.
Shell wrappers can inspect the exit code to tell a missing file from a
missing operation without parsing stderr.

Example::

    $ splitspec show /users trace
    $ echo $?
    5   # EXIT_METHOD_NOT_FOUND -- the path-item file has no 'trace' block
"""

EXIT_SUCCESS = 0
"""The command completed successfully."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred."""

EXIT_INVALID_USAGE = 2
"""The command was invoked with invalid arguments or missing required parameters."""

EXIT_STORAGE_UNAVAILABLE = 3
"""The workspace root could not be determined or is not a directory."""

EXIT_NOT_FOUND = 4
"""A root spec, path-item or schema file that was the primary target is missing."""

EXIT_METHOD_NOT_FOUND = 5
"""The requested HTTP method has no operation block in the path-item file."""

EXIT_MALFORMED_DOCUMENT = 7
"""A document that must be a YAML mapping could not be parsed as one."""

"""Built-in CLI sub-commands for splitspec.

* :mod:`~splitspec.commands.explore` -- ``projects``, ``endpoints`` and
  ``show``, the read-only views over a workspace.
* :mod:`~splitspec.commands.config` -- view and modify global settings.

``explore`` exports plain callback functions registered directly on the root
app; ``config`` exports a :class:`typer.Typer` sub-application.
"""

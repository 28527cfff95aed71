"""splitspec -- Explore Redocly-style split OpenAPI workspaces.

A split spec spreads one OpenAPI document across many small YAML files:
``redocly.yaml`` names the API projects, each project's ``openapi.yaml`` maps
URL templates to path-item files, and path-item files ``$ref`` schema files
for their request and response bodies. This package indexes those endpoints
cheaply and, on demand, resolves one endpoint's schemas into a bounded,
cycle-safe tree of typed fields.

Typical workflow::

    splitspec projects                 # list APIs named in redocly.yaml
    splitspec endpoints -p public      # index paths -> files -> methods
    splitspec show /users get          # full field tree for one operation

Modules:
    app: Typer application factory and CLI entry point.
    models: Pydantic models shared across the entire package.
    config: XDG-aware configuration and precedence resolution.
    exceptions: Exception hierarchy with exit-code mapping.
    exit_codes: Numeric exit codes following clig.dev conventions.
    output: stdout/stderr formatting system with Rich support.
    wire: JSON-ready encoding of parsed endpoints for UI consumers.
    parser: Indexing, ``$ref`` resolution and field-tree construction.
"""

__version__ = "0.1.0"

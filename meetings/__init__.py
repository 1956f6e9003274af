"""Meeting availability and booking service."""

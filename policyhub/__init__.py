"""PolicyHub package."""

__all__ = [
    "auth",
    "claims",
    "cli",
    "config",
    "dashboard",
    "errors",
    "logging_setup",
    "preflight",
    "schemas",
    "web_app",
]

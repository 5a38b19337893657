"""Exceptions raised by the documentation builder.

Schema conversion problems are never raised: they are reported as
omissions on the registration result. The exceptions below cover caller
mistakes that should stop a build.
"""


class ApiDocError(Exception):
    """Base class for documentation builder errors."""


class DuplicateRouteError(ApiDocError):
    """A (path, method) pair was registered twice on a strict builder."""

    def __init__(self, path: str, method: str):
        self.path = path
        self.method = method
        super().__init__(f"{method.upper()} {path} is already documented")


class SchemaInjectionError(ApiDocError, ValueError):
    """File fields were injected into a schema that is not an object."""


class TargetResolutionError(ApiDocError):
    """A ``module:attribute`` target could not be resolved to a builder."""

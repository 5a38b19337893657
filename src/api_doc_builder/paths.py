"""Route path templates: ``/items/:id`` in, ``/items/{id}`` out."""

import re

_EXPRESS_PARAM = re.compile(r":([A-Za-z0-9_]+)")
_OPENAPI_PARAM = re.compile(r"\{([A-Za-z0-9_]+)\}")


def translate_path(path: str) -> str:
    """Convert ``:name`` placeholders to OpenAPI ``{name}`` placeholders."""
    return _EXPRESS_PARAM.sub(r"{\1}", path)


def path_parameters(path: str) -> list[str]:
    """Return the placeholder names of a translated path, in order."""
    return _OPENAPI_PARAM.findall(path)

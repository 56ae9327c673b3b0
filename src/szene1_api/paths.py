"""Resolution of API method references into section/method pairs."""

from collections.abc import Sequence

from .errors import MalformedPathError

PATH_SEPARATOR = "/"


def resolve_path(path: str | Sequence[str]) -> tuple[str, str]:
    """Normalize an API method reference.

    Accepts ``"section/method"`` (surrounding slashes are trimmed) or a
    two-element ``(section, method)`` sequence.

    Args:
        path: The method reference.

    Returns:
        Tuple of (section, method).

    Raises:
        MalformedPathError: If the reference is not exactly one section and
            one method.
    """
    if isinstance(path, str):
        parts = path.strip(PATH_SEPARATOR).split(PATH_SEPARATOR)
    elif isinstance(path, (tuple, list)):
        parts = list(path)
    else:
        msg = f"Not a valid format for an API method: {path!r}"
        raise MalformedPathError(msg)

    if len(parts) != 2:  # noqa: PLR2004
        msg = f"API method must be 'section/method', got {path!r}"
        raise MalformedPathError(msg)

    section, method = parts
    if not isinstance(section, str) or not isinstance(method, str):
        msg = f"Section and method must be strings, got {path!r}"
        raise MalformedPathError(msg)
    if not section or not method or PATH_SEPARATOR in section + method:
        msg = f"Section and method must be non-empty names, got {path!r}"
        raise MalformedPathError(msg)

    return section, method

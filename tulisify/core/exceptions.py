"""
Application exceptions rendered by the handlers in tulisify.main
"""

from typing import Dict, Iterable, List


class ValidationFailed(Exception):
    """Field-level validation errors, returned as HTTP 422."""

    def __init__(self, errors: Dict[str, List[str]], message: str = "Validation failed"):
        super().__init__(message)
        self.errors = errors
        self.message = message


class StorageError(RuntimeError):
    """A blob could not be written, read or removed."""


def collect_field_errors(errors: Iterable[dict]) -> Dict[str, List[str]]:
    """Group pydantic/FastAPI error dicts by field name."""
    out: Dict[str, List[str]] = {}
    for err in errors:
        loc = [str(part) for part in err.get("loc", ()) if not isinstance(part, int)]
        field = loc[-1] if loc else "__root__"
        if err.get("type") == "missing":
            message = f"The {field} field is required."
        else:
            message = str(err.get("msg", "Invalid value."))
            # pydantic prefixes custom ValueError messages
            if message.startswith("Value error, "):
                message = message[len("Value error, "):]
        out.setdefault(field, []).append(message)
    return out


def merge_errors(*groups: Dict[str, List[str]]) -> Dict[str, List[str]]:
    merged: Dict[str, List[str]] = {}
    for group in groups:
        for field, messages in group.items():
            merged.setdefault(field, []).extend(messages)
    return merged

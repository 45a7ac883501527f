"""Defensive navigation of descriptor field trees.

Descriptor fields are raw AWS API shapes. Rule predicates use these helpers
instead of indexing directly so that an absent field surfaces as a typed
FieldMissingError (an ERROR verdict) rather than a bare KeyError.

Fetchers record API calls that failed under ``FetchErrors``, keyed by the
top-level field the call would have produced (``"*"`` when the whole resource
could not be described). A field listed there is reported as missing with
the recorded reason, even by presence checks that would otherwise treat an
absent field as non-compliant.
"""

import json
from collections.abc import Mapping
from typing import Any
from urllib.parse import unquote

from cloudsec_compliance.errors import FieldMissingError

FETCH_ERRORS_KEY = "FetchErrors"
ALL_FIELDS = "*"

_MISSING = object()


def _walk(fields: Mapping[str, Any], path: str) -> Any:
    node: Any = fields
    for part in path.split("."):
        if not isinstance(node, Mapping) or part not in node:
            return _MISSING
        node = node[part]
    return node


def fetch_error(fields: Mapping[str, Any], path: str) -> str | None:
    """Return the recorded fetch error for the path's top-level field, if any."""
    errors = fields.get(FETCH_ERRORS_KEY)
    if not isinstance(errors, Mapping):
        return None
    top_level = path.split(".", 1)[0]
    return errors.get(top_level) or errors.get(ALL_FIELDS)


def require_field(fields: Mapping[str, Any], path: str) -> Any:
    """Return the value at a dotted path, raising if any segment is absent.

    A present key holding ``None`` counts as absent.

    Args:
        fields: Descriptor field tree.
        path: Dotted key path, e.g. ``resourcesVpcConfig.endpointPrivateAccess``.

    Returns:
        The value at the path.

    Raises:
        FieldMissingError: If the path does not resolve.
    """
    value = _walk(fields, path)
    if value is _MISSING or value is None:
        raise FieldMissingError(path, fetch_error(fields, path))
    return value


def optional_field(fields: Mapping[str, Any], path: str, default: Any = None) -> Any:
    """Return the value at a dotted path, or ``default`` if it does not resolve."""
    value = _walk(fields, path)
    if value is _MISSING or value is None:
        return default
    return value


def field_present(fields: Mapping[str, Any], path: str) -> bool:
    """Return whether a non-empty value exists at the path.

    Raises:
        FieldMissingError: If the field is absent because its API call failed.
    """
    value = optional_field(fields, path)
    if value:
        return True
    reason = fetch_error(fields, path)
    if reason:
        raise FieldMissingError(path, reason)
    return False


def require_list(fields: Mapping[str, Any], path: str) -> list[Any]:
    """Return the list at a dotted path.

    Raises:
        FieldMissingError: If the path is absent or does not hold a list.
    """
    value = require_field(fields, path)
    if not isinstance(value, (list, tuple)):
        raise FieldMissingError(path)
    return list(value)


def as_list(value: Any) -> list[Any]:
    """Normalize the IAM "string or list of strings" convention to a list."""
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        return list(value)
    return [value]


def load_policy_document(document: Any) -> Mapping[str, Any]:
    """Return an IAM policy document as a mapping.

    boto3 normally decodes policy documents, but raw API responses carry them
    as URL-encoded JSON strings.

    Raises:
        ValueError: If the document is neither a mapping nor decodable JSON.
    """
    if isinstance(document, Mapping):
        return document
    if isinstance(document, str):
        text = document if document.lstrip().startswith("{") else unquote(document)
        parsed = json.loads(text)
        if isinstance(parsed, Mapping):
            return parsed
    raise ValueError(f"Unsupported policy document type: {type(document).__name__}")


def policy_statements(document: Any) -> list[Mapping[str, Any]]:
    """Return the statements of a policy document as a list of mappings."""
    statements = as_list(load_policy_document(document).get("Statement"))
    return [s for s in statements if isinstance(s, Mapping)]

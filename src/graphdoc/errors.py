# Copyright 2026 GraphDoc Contributors
# SPDX-License-Identifier: Apache-2.0

"""Error types raised or reported by the document engine."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from graphdoc.document.document import Document

# ###############
# Public Interface
# ###############


class GraphDocError(Exception):
    """Base class for every error produced by graphdoc."""


class SchemaDefinitionError(GraphDocError):
    """Raised when a schema definition is malformed (bad path, reserved name, invalid validator)."""


class StrictModeError(GraphDocError):
    """Raised when a document in ``strict="throw"`` mode is given a path the schema does not declare."""

    def __init__(self, path: str) -> None:
        super().__init__(f"Field `{path}` is not in schema.")
        self.path = path


class CastError(GraphDocError):
    """Raised when a value cannot be coerced to the declared type of a path.

    Attributes:
        type: Name of the target type (e.g. ``"number"``).
        value: The value that failed to cast.
    """

    def __init__(self, type: str, value: Any) -> None:
        super().__init__(f'Cast to {type} failed for value "{value}"')
        self.type = type
        self.value = value


class ValidatorError(GraphDocError):
    """A single failed constraint on one path.

    Attributes:
        path: The path whose validator rejected the value.
        kind: The validator kind (``"required"``, ``"enum"``, ...) or a user message.
        value: The rejected value, when known.
    """

    def __init__(self, path: str, kind: str | None = None, value: Any = None) -> None:
        label = f'"{kind}" ' if kind else ""
        super().__init__(f"Validator {label}failed for path {path}")
        self.path = path
        self.kind = kind
        self.value = value

    def __str__(self) -> str:
        return self.args[0]


class ValidationError(GraphDocError):
    """Aggregate of every :class:`ValidatorError` from one ``validate()`` call.

    The ``errors`` mapping is shared with the owning document's ``errors``
    attribute, so invalidations recorded after creation are visible from both.
    """

    def __init__(self, document: Document | None = None) -> None:
        super().__init__("Validation failed")
        self.errors: dict[str, ValidatorError] = {}
        if document is not None:
            document.errors = self.errors

    def __str__(self) -> str:
        details = ", ".join(str(err) for err in self.errors.values())
        return f"ValidationError: {details}" if details else "ValidationError"

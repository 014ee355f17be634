# Copyright 2026 GraphDoc Contributors
# SPDX-License-Identifier: Apache-2.0

"""Change-tracked documents and their per-path state."""

from graphdoc.document.document import DirtyPath, Document
from graphdoc.document.state import STATE_NAMES, PathStateSet

__all__ = [
    "DirtyPath",
    "Document",
    "PathStateSet",
    "STATE_NAMES",
]

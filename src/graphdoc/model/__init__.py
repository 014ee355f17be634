# Copyright 2026 GraphDoc Contributors
# SPDX-License-Identifier: Apache-2.0

"""Model compilation: descriptors that pair a schema with its hook pipeline."""

from graphdoc.model.descriptor import (
    ModelDescriptor,
    check_for_existing_errors,
    compile_model,
    validation,
)

__all__ = [
    "ModelDescriptor",
    "check_for_existing_errors",
    "compile_model",
    "validation",
]

# Copyright 2026 GraphDoc Contributors
# SPDX-License-Identifier: Apache-2.0

"""Sphinx configuration for GraphDoc documentation."""

project = "GraphDoc"
author = "GraphDoc Contributors"
release = "0.1.0"

extensions: list[str] = ["sphinx.ext.autodoc", "sphinx.ext.napoleon"]

html_theme = "alabaster"

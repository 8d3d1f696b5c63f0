import os
import sys

# Put project root on sys.path so autodoc can import the package if needed
sys.path.insert(0, os.path.abspath("../.."))

project = "shoesign"
author = "shoesign developers"

extensions = [
    "autoapi.extension",
    "sphinx.ext.doctest",
    "sphinx.ext.napoleon",
]
templates_path = []
exclude_patterns = []

# Fall back to a bundled theme when the book theme isn't installed.
try:
    import importlib.util

    if importlib.util.find_spec("sphinx_book_theme") is not None:
        html_theme = "sphinx_book_theme"
    else:
        html_theme = "alabaster"
except ImportError:
    html_theme = "alabaster"
html_theme_options = {}

master_doc = "index"

# ---------------------------------------------------------------------------
# sphinx-autoapi: generate API reference for the `shoesign` package
# ---------------------------------------------------------------------------
autoapi_type = "python"
autoapi_dirs = ["../../shoesign"]

autoapi_ignore = [
    "**/docs/**",
    "**/tests/**",
    "**/.venv/**",
    "**/__pycache__/**",
]

autodoc_typehints = "description"

autoapi_options = [
    "members",
    "undoc-members",
    "show-inheritance",
    "show-module-summary",
]

autoapi_python_class_content = "both"

"""skis: a single-user, local-first issue tracker with convention-based project discovery."""

import logging
from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("skis")
except PackageNotFoundError:
    __version__ = "0.0.0-dev"

from skis.core import SkisDB, find_skis_root, init_store
from skis.models import Comment, Issue, IssueFilter, IssueLink, Label

# Library logging stays silent until setup_logging() attaches the file handler.
logging.getLogger("skis").addHandler(logging.NullHandler())

__all__ = [
    "Comment",
    "Issue",
    "IssueFilter",
    "IssueLink",
    "Label",
    "SkisDB",
    "__version__",
    "find_skis_root",
    "init_store",
]

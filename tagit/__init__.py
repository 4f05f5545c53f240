"""
tagit: tag files and find them with boolean tag queries.

Quick Start:
    from tagit import Tagger

    tg = Tagger()  # uses ~/.tagit/
    tg.tag("notes/heap.md", ["#heap", "#tree"])
    results = tg.find("#heap & (#tree | #list)")

CLI Usage:
    tagit tag notes/heap.md "#heap, #tree"
    tagit find "#heap & #tree"
    tagit tags --json

Default Store:
    ~/.tagit/ (created automatically).
    Override with TAGIT_STORE_PATH or explicit path argument.

The store is initialized automatically on first use. Configuration is persisted
in a TOML file within the store directory.
"""

from .api import Tagger, file_exists
from .errors import PersistenceError, QuerySyntaxError, TagitError, ValidationError
from .query import TagQuery, compile_query
from .tag_store import TagStore
from .types import TaggedFile, TagGroup

__version__ = "0.1.0"
__all__ = [
    "Tagger",
    "TagStore",
    "TagQuery",
    "TaggedFile",
    "TagGroup",
    "compile_query",
    "file_exists",
    "TagitError",
    "ValidationError",
    "PersistenceError",
    "QuerySyntaxError",
]

"""
Data types and validation for file tags.
"""

import re
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Iterable

from .errors import ValidationError


# Characters that structure a tag query; a tag containing them could not
# be named in a query, so they are rejected along with whitespace
QUERY_RESERVED_CHARS = frozenset("&|()")

_TAG_INVALID_RE = re.compile(r'[\s&|()]')

MAX_ID_LENGTH = 4096
MAX_TAG_LENGTH = 256

# IDs: anything printable; control chars and DEL are blocked
_ID_BLOCKED_RE = re.compile(r'[\x00-\x1f\x7f]')

# URI scheme per RFC 3986: scheme = ALPHA *( ALPHA / DIGIT / "+" / "-" / "." )
# Single-letter schemes are excluded so Windows drive letters stay paths.
# A scheme must be followed by "/" (file:///x, vscode-remote://h/x) unless it
# is one of the opaque schemes below; "notes:draft.md" is a relative path.
_URI_SCHEME_RE = re.compile(r'^([a-zA-Z][a-zA-Z0-9+.-]+):(/)?')
_OPAQUE_SCHEMES = frozenset({"untitled", "urn", "mailto", "data"})


def is_valid_tag(tag: str) -> bool:
    """Check a single tag name: non-empty, no whitespace, no query operators."""
    if not isinstance(tag, str) or not tag or len(tag) > MAX_TAG_LENGTH:
        return False
    return _TAG_INVALID_RE.search(tag) is None


def validate_tags(tags: Iterable[str]) -> list[str]:
    """Validate tag names and collapse duplicates, keeping first-seen order.

    Raises:
        ValidationError: listing every invalid entry; the whole input is
            rejected if any entry is invalid.
        TypeError: if ``tags`` is a single string rather than a collection
    """
    require_tag_collection(tags)
    tags = list(tags)
    invalid = [t for t in tags if not is_valid_tag(t)]
    if invalid:
        raise ValidationError(invalid)
    return dedupe_tags(tags)


def require_tag_collection(tags) -> None:
    """Reject a bare string passed where a collection of tags is expected."""
    if isinstance(tags, str):
        raise TypeError(
            f"Tags must be a collection of names, not a string: {tags!r}"
        )


def dedupe_tags(tags: Iterable[str]) -> list[str]:
    """Remove duplicate tags, keeping the first occurrence of each."""
    return list(dict.fromkeys(tags))


def parse_tag_input(text: str) -> list[str]:
    """Split comma-separated tag input ("#stack, #heap") into tag names.

    Surrounding whitespace is stripped and empty entries are dropped.
    Entries with inner whitespace are kept so validation can report them.
    """
    return [part.strip() for part in text.split(",") if part.strip()]


def validate_id(id: str) -> None:
    """Validate a file identity: length and no control characters."""
    if not id or len(id) > MAX_ID_LENGTH:
        raise ValueError(f"ID must be 1-{MAX_ID_LENGTH} characters")
    if _ID_BLOCKED_RE.search(id):
        raise ValueError(f"ID contains invalid characters: {id!r}")


def is_uri(id: str) -> bool:
    """True if the identity already carries a URI scheme (file:, https:, ...)."""
    m = _URI_SCHEME_RE.match(id)
    if m is None:
        return False
    return m.group(2) is not None or m.group(1).lower() in _OPAQUE_SCHEMES


def normalize_id(id: str) -> str:
    """Validate a file identity and convert plain paths to file:// URIs.

    URIs are returned unchanged. Anything else is treated as a file-system
    path, made absolute and expressed as a ``file://`` URI so the same file
    always maps to the same key.

    Raises ValueError for invalid IDs.
    """
    validate_id(id)
    if is_uri(id):
        return id
    return Path(id).expanduser().absolute().as_uri()


@dataclass(frozen=True)
class TaggedFile:
    """
    A file and its tags, as shown when browsing.

    Attributes:
        id: File identity (URI)
        tags: Tag names, duplicates removed
    """
    id: str
    tags: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        """Serialize to JSON-ready dict."""
        return asdict(self)

    def __str__(self) -> str:
        return f"{self.id}: {', '.join(self.tags)}"


@dataclass(frozen=True)
class TagGroup:
    """A tag and the files carrying it."""
    tag: str
    ids: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        """Serialize to JSON-ready dict."""
        return asdict(self)

"""Shared constants for federated search: payload field allow-lists and limits."""

from enum import StrEnum

# Probed in order; the first present list wins. Closed on purpose: a payload
# that uses none of these yields zero results instead of a guess.
RESULT_ARRAY_FIELDS: tuple[str, ...] = (
    "results",
    "items",
    "articles",
    "papers",
    "stories",
    "posts",
    "videos",
)

TITLE_FIELDS: tuple[str, ...] = ("title", "name")

SNIPPET_FIELDS: tuple[str, ...] = (
    "snippet",
    "abstract",
    "abstract_text",
    "summary",
    "description",
    "text",
    "body",
    "selftext",
)

URL_FIELDS: tuple[str, ...] = (
    "url",
    "html_url",
    "link",
    "pdf_url",
    "web_url",
    "permalink",
)

TIMESTAMP_FIELDS: tuple[str, ...] = (
    "timestamp",
    "published",
    "published_at",
    "created_at",
    "date",
    "time",
)

TOTAL_COUNT_FIELDS: tuple[str, ...] = ("total_results", "total_count", "totalCount")

DEFAULT_ID_FIELDS: tuple[str, ...] = ("id", "pmid", "doi", "link", "url")

SNIPPET_MAX_CHARS = 300

# difflib.SequenceMatcher ratio at or above which two titles are duplicates
FUZZY_TITLE_THRESHOLD = 0.9

# Epoch values above this are taken as milliseconds
EPOCH_MILLIS_CUTOFF = 10**11

AD_HOC_PROFILE_NAME = "ad-hoc"


class AdapterKind(StrEnum):
    """Adapter transports understood by the adapters file."""

    MCP = "mcp"
    HTTP = "http"

"""Pattern table for the smart resolver.

Each entry maps one recognizable input shape (URL, identifier, shorthand)
onto an adapter operation. The table is built once at import, sorted by
descending priority with declaration order kept for ties, and never
mutated afterwards. Adding a shape means adding an entry here.
"""

import re
from dataclasses import dataclass

from arivu.contracts.federated_v1 import PatternInfo


@dataclass(frozen=True)
class InputPattern:
    """One routing rule: regex with named groups -> adapter operation."""

    id: str
    adapter: str
    operation: str
    pattern: re.Pattern[str]
    # (capture group, argument name), applied in order
    arg_mapping: tuple[tuple[str, str], ...]
    priority: int
    description: str
    example: str = ""

    def info(self) -> PatternInfo:
        return PatternInfo(
            id=self.id,
            adapter=self.adapter,
            operation=self.operation,
            priority=self.priority,
            description=self.description,
            example=self.example,
        )


def _p(
    id: str,
    adapter: str,
    operation: str,
    regex: str,
    arg_mapping: tuple[tuple[str, str], ...],
    priority: int,
    description: str,
    example: str,
) -> InputPattern:
    return InputPattern(
        id=id,
        adapter=adapter,
        operation=operation,
        pattern=re.compile(regex),
        arg_mapping=arg_mapping,
        priority=priority,
        description=description,
        example=example,
    )


# Hosts never match inside a longer hostname or path: "netflix.com" is not "x.com".
_URL = r"(?<![\w./-])(?:https?://)?"
_YOUTUBE_ID = r"(?P<video_id>[a-zA-Z0-9_-]{11})"
_GITHUB_OWNER_REPO = r"(?P<owner>[a-zA-Z0-9_-]+)/(?P<repo>[a-zA-Z0-9_.-]+)"

_DECLARED: tuple[InputPattern, ...] = (
    # YouTube
    _p(
        "youtube_url_watch", "youtube", "get_video_details",
        _URL + r"(?:www\.)?youtube\.com/watch\?v=" + _YOUTUBE_ID,
        (("video_id", "video_id"),), 100,
        "YouTube video URL (youtube.com/watch?v=...)",
        "https://www.youtube.com/watch?v=dQw4w9WgXcQ",
    ),
    _p(
        "youtube_url_short", "youtube", "get_video_details",
        _URL + r"youtu\.be/" + _YOUTUBE_ID,
        (("video_id", "video_id"),), 100,
        "YouTube short URL (youtu.be/...)",
        "https://youtu.be/dQw4w9WgXcQ",
    ),
    _p(
        "youtube_url_embed", "youtube", "get_video_details",
        _URL + r"(?:www\.)?youtube\.com/embed/" + _YOUTUBE_ID,
        (("video_id", "video_id"),), 100,
        "YouTube embed URL",
        "https://www.youtube.com/embed/dQw4w9WgXcQ",
    ),
    _p(
        "youtube_video_id", "youtube", "get_video_details",
        r"^" + _YOUTUBE_ID + r"$",
        (("video_id", "video_id"),), 10,
        "YouTube video ID (11 characters)",
        "dQw4w9WgXcQ",
    ),
    _p(
        "youtube_playlist", "youtube", "get_playlist",
        _URL + r"(?:www\.)?youtube\.com/playlist\?list=(?P<playlist_id>[a-zA-Z0-9_-]+)",
        (("playlist_id", "playlist_id"),), 100,
        "YouTube playlist URL",
        "https://www.youtube.com/playlist?list=PLrAXtmErZgOeiKm4sgNOknGvNjby9efdf",
    ),
    _p(
        "youtube_channel", "youtube", "get_channel",
        _URL + r"(?:www\.)?youtube\.com/(?:@|channel/)(?P<channel_id>[a-zA-Z0-9_-]+)",
        (("channel_id", "channel_id"),), 100,
        "YouTube channel URL",
        "https://www.youtube.com/@veritasium",
    ),
    # Hacker News
    _p(
        "hackernews_url", "hackernews", "get_post",
        _URL + r"news\.ycombinator\.com/item\?id=(?P<item_id>\d+)",
        (("item_id", "id"),), 100,
        "Hacker News item URL",
        "https://news.ycombinator.com/item?id=38500000",
    ),
    _p(
        "hackernews_id", "hackernews", "get_post",
        r"^(?:hn:|HN:)?(?P<item_id>\d{7,9})$",
        (("item_id", "id"),), 50,
        "Hacker News item ID (7-9 digits, optionally prefixed with hn:)",
        "hn:38500000",
    ),
    # arXiv
    _p(
        "arxiv_url", "arxiv", "get",
        _URL + r"arxiv\.org/(?:abs|pdf)/(?P<arxiv_id>\d{4}\.\d{4,5}(?:v\d+)?)",
        (("arxiv_id", "id"),), 100,
        "arXiv paper URL",
        "https://arxiv.org/abs/2301.07041",
    ),
    _p(
        "arxiv_id", "arxiv", "get",
        r"^(?:arXiv:|arxiv:)?(?P<arxiv_id>\d{4}\.\d{4,5}(?:v\d+)?)$",
        (("arxiv_id", "id"),), 90,
        "arXiv paper ID (e.g. 2301.07041 or arXiv:2301.07041)",
        "arXiv:2301.07041",
    ),
    _p(
        "arxiv_old_id", "arxiv", "get",
        r"^(?:arXiv:|arxiv:)?(?P<arxiv_id>[a-z-]+/\d{7})$",
        (("arxiv_id", "id"),), 90,
        "arXiv old-style ID (e.g. hep-th/9901001)",
        "hep-th/9901001",
    ),
    # PubMed
    _p(
        "pubmed_url", "pubmed", "get_article",
        _URL + r"(?:www\.)?(?:ncbi\.nlm\.nih\.gov/pubmed/|pubmed\.ncbi\.nlm\.nih\.gov/)(?P<pmid>\d+)",
        (("pmid", "pmid"),), 100,
        "PubMed article URL",
        "https://pubmed.ncbi.nlm.nih.gov/12345678",
    ),
    _p(
        "pubmed_id", "pubmed", "get_article",
        r"^(?:PMID:|pmid:|PubMed:)?(?P<pmid>\d{7,8})$",
        (("pmid", "pmid"),), 80,
        "PubMed ID (7-8 digits, optionally prefixed with PMID:)",
        "PMID:12345678",
    ),
    # DOI and Semantic Scholar
    _p(
        "doi_url", "semantic-scholar", "get_paper",
        _URL + r"(?:dx\.)?doi\.org/(?P<doi>10\.\d{4,}/[^\s]+)",
        (("doi", "paper_id"),), 100,
        "DOI URL (doi.org/...)",
        "https://doi.org/10.1038/nature12373",
    ),
    _p(
        "doi_bare", "semantic-scholar", "get_paper",
        r"^(?:doi:|DOI:)?(?P<doi>10\.\d{4,}/[^\s]+)$",
        (("doi", "paper_id"),), 90,
        "DOI (e.g. 10.1234/example)",
        "10.1038/nature12373",
    ),
    _p(
        "semantic_scholar_url", "semantic-scholar", "get_paper",
        _URL + r"(?:www\.)?semanticscholar\.org/paper/[^/]+/(?P<paper_id>[a-f0-9]{40})",
        (("paper_id", "paper_id"),), 100,
        "Semantic Scholar paper URL",
        "https://www.semanticscholar.org/paper/Attention-Is-All-You-Need/"
        "204e3073870fae3d05bcbc2f6a8e263d9b72e776",
    ),
    # bioRxiv / medRxiv
    _p(
        "biorxiv_url", "biorxiv", "get_preprint_by_doi",
        _URL + r"(?:www\.)?(?P<server>biorxiv|medrxiv)\.org/content/"
        r"(?P<doi>10\.1101/(?:\d{4}\.\d{2}\.\d{2}\.)?\d{6,})",
        (("doi", "doi"), ("server", "server")), 100,
        "bioRxiv or medRxiv preprint URL",
        "https://www.biorxiv.org/content/10.1101/2023.01.15.524140v1",
    ),
    _p(
        "biorxiv_doi", "biorxiv", "get_preprint_by_doi",
        r"^(?P<server>biorxiv|medrxiv):(?P<doi>10\.1101/\S+)$",
        (("doi", "doi"), ("server", "server")), 95,
        "bioRxiv or medRxiv DOI (biorxiv:10.1101/...)",
        "medrxiv:10.1101/2020.03.19.20039131",
    ),
    # Wikipedia
    _p(
        "wikipedia_url", "wikipedia", "get_page",
        _URL + r"(?P<lang>[a-z]{2})\.wikipedia\.org/wiki/(?P<title>[^\s?#]+)",
        (("title", "title"),), 100,
        "Wikipedia article URL",
        "https://en.wikipedia.org/wiki/Rust_(programming_language)",
    ),
    # GitHub
    _p(
        "github_repo_url", "github", "get_repository",
        _URL + r"github\.com/" + _GITHUB_OWNER_REPO + r"/?$",
        (("owner", "owner"), ("repo", "repo")), 100,
        "GitHub repository URL",
        "https://github.com/rust-lang/rust",
    ),
    _p(
        "github_issue_url", "github", "get_issue",
        _URL + r"github\.com/" + _GITHUB_OWNER_REPO + r"/issues/(?P<issue_number>\d+)",
        (("owner", "owner"), ("repo", "repo"), ("issue_number", "issue_number")), 100,
        "GitHub issue URL",
        "https://github.com/rust-lang/rust/issues/12345",
    ),
    _p(
        "github_pr_url", "github", "get_pull_request",
        _URL + r"github\.com/" + _GITHUB_OWNER_REPO + r"/pull/(?P<pr_number>\d+)",
        (("owner", "owner"), ("repo", "repo"), ("pr_number", "pr_number")), 100,
        "GitHub pull request URL",
        "https://github.com/rust-lang/rust/pull/12345",
    ),
    _p(
        "github_repo_shorthand", "github", "get_repository",
        r"^" + _GITHUB_OWNER_REPO + r"$",
        (("owner", "owner"), ("repo", "repo")), 50,
        "GitHub repository shorthand (owner/repo)",
        "rust-lang/rust",
    ),
    # Reddit
    _p(
        "reddit_post_url", "reddit", "get_post",
        _URL + r"(?:www\.)?reddit\.com/r/(?P<subreddit>[a-zA-Z0-9_]+)/comments/(?P<post_id>[a-z0-9]+)",
        (("subreddit", "subreddit"), ("post_id", "post_id")), 100,
        "Reddit post URL",
        "https://www.reddit.com/r/rust/comments/abc123",
    ),
    _p(
        "reddit_subreddit_url", "reddit", "get_subreddit",
        _URL + r"(?:www\.)?reddit\.com/r/(?P<subreddit>[a-zA-Z0-9_]+)/?$",
        (("subreddit", "subreddit"),), 100,
        "Reddit subreddit URL",
        "https://www.reddit.com/r/rust",
    ),
    _p(
        "reddit_subreddit_shorthand", "reddit", "get_subreddit",
        r"^r/(?P<subreddit>[a-zA-Z0-9_]+)$",
        (("subreddit", "subreddit"),), 80,
        "Reddit subreddit shorthand (r/name)",
        "r/rust",
    ),
    # X / Twitter
    _p(
        "twitter_tweet_url", "x", "get_tweet",
        _URL + r"(?:www\.)?(?:twitter\.com|x\.com)/(?P<username>[a-zA-Z0-9_]+)/status/(?P<tweet_id>\d+)",
        (("tweet_id", "tweet_id"),), 100,
        "X/Twitter tweet URL",
        "https://x.com/rustlang/status/1234567890",
    ),
    _p(
        "twitter_profile_url", "x", "get_profile",
        _URL + r"(?:www\.)?(?:twitter\.com|x\.com)/(?P<username>[a-zA-Z0-9_]+)/?$",
        (("username", "username"),), 90,
        "X/Twitter profile URL",
        "https://x.com/rustlang",
    ),
    _p(
        "twitter_handle", "x", "get_profile",
        r"^@(?P<username>[a-zA-Z0-9_]+)$",
        (("username", "username"),), 80,
        "X/Twitter handle (@username)",
        "@rustlang",
    ),
    # Discord
    _p(
        "discord_channel_url", "discord", "read_messages",
        _URL + r"(?:www\.|ptb\.|canary\.)?discord(?:app)?\.com/channels/(?P<guild_id>\d+)/(?P<channel_id>\d+)",
        (("channel_id", "channel_id"),), 100,
        "Discord channel URL",
        "https://discord.com/channels/273534239310479360/273541522815713281",
    ),
    # RSS / Atom
    _p(
        "rss_feed_url", "rss", "get_feed",
        r"^(?P<url>https?://\S+?(?:/feed/?|/rss/?|\.rss|\.atom|/atom\.xml|/feed\.xml|/rss\.xml|/index\.xml))$",
        (("url", "url"),), 60,
        "RSS or Atom feed URL",
        "https://blog.rust-lang.org/feed.xml",
    ),
    # Catch-all
    _p(
        "web_url", "web", "fetch",
        r"^(?P<url>https?://[^\s]+)$",
        (("url", "url"),), 1,
        "Generic web URL",
        "https://example.com/page",
    ),
)

# sorted() is stable: equal priorities keep declaration order.
PATTERN_TABLE: tuple[InputPattern, ...] = tuple(
    sorted(_DECLARED, key=lambda p: -p.priority)
)

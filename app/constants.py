# app/constants.py
"""
Centralized magic constants organized by domain.

All hardcoded numbers/strings used throughout the codebase should be
defined here with documentation explaining their purpose.
"""


class TaskNames:
    """Task identifiers as sent by the browser in the `tasks` object."""

    HEADLINES = "headlines"
    SOCIAL = "social"
    COPY_EDIT = "copyEdit"
    CLAIM_FLAG = "claimFlag"
    FACT_CHECK = "factCheck"

    ALL = (HEADLINES, SOCIAL, COPY_EDIT, CLAIM_FLAG, FACT_CHECK)


class SocialPlatforms:
    """Platforms that get their own social-post generation call."""

    SUBSTACK = "substack"
    TWITTER = "twitter"
    INSTAGRAM = "instagram"

    ALL = (SUBSTACK, TWITTER, INSTAGRAM)


class OutputTokens:
    """Max output tokens requested per model call."""

    HEADLINES = 2048
    SOCIAL = 2048
    COPY_EDIT_CHUNK = 8192              # Marked chunk + issue list
    CLAIM_FLAG_CHUNK = 8192
    CLAIM_EXTRACTION = 4096             # JSON array of claims for one chunk
    VERIFICATION_CHUNK = 8192
    FACT_CHECK_SINGLE_SHOT = 16384      # Whole article in one call


class PipelineDefaults:
    """Default values for the long-document pipeline."""

    PARAGRAPH_SEPARATOR = "\n\n"
    CHUNK_MAX_CHARS = 4000

    # Dispatcher batch sizes (None = everything at once)
    EDIT_BATCH_SIZE = 3
    SEARCH_BATCH_SIZE = 10
    EXTRACTION_BATCH_SIZE = None

    # Claim handling
    CLAIM_CONFIRM_THRESHOLD = 25
    CLAIM_SIMILARITY_THRESHOLD = 0.6
    CLAIM_MIN_WORD_LENGTH = 4           # Tokens shorter than this are ignored for dedupe

    # Evidence relevance
    RELEVANCE_WORD_MIN_LENGTH = 5       # Claim words shorter than this don't count
    RELEVANCE_MIN_WORD_MATCHES = 2
    RELEVANCE_PREFIX_CHARS = 30
    RELEVANCE_MIN_MATCHES = 3
    RELEVANCE_FALLBACK_CAP = 40

    # Evidence formatting
    SNIPPET_MAX_CHARS = 300


class MarkerTags:
    """Inline marker tags and list headers the models are asked to emit."""

    ISSUE = "ISSUE"
    CLAIM = "CLAIM"
    ISSUES_HEADER = "---ISSUES---"
    CLAIMS_HEADER = "---CLAIMS---"

    VERIFIED = "VERIFIED"
    INCORRECT = "INCORRECT"
    QUESTIONABLE = "QUESTIONABLE"
    CHECK_CURRENT = "CHECK_CURRENT"

    MISSING_RATIONALE = "No explanation was returned for this flag."


class StyleGuides:
    """Style guide file names (without .txt) keyed by the response field."""

    FILES = {
        "headlines": "headlines",
        "socialMedia": "social-media",
        "copyEdit": "copy-edit",
        "claimFlag": "claim-flag",
        "factCheck": "fact-check",
    }


class CacheConfig:
    """Cache TTL and size constants."""

    STYLE_GUIDE_TTL_SECONDS = 300       # 5 minutes
    STYLE_GUIDE_MAX_ENTRIES = 16


class DocumentFetch:
    """Limits for fetching Google Docs and Substack posts."""

    TIMEOUT_SECONDS = 20
    MIN_CONTENT_CHARS = 100

from __future__ import annotations

HISTORY_SIZE = 10
MIN_VOLUME = 0
MAX_VOLUME = 100
HEALTH_CHECK_QUERY = "ytsearch:test"
HEALTH_CHECK_TIMEOUT = 10.0

# noinspection SpellCheckingInspection
TRACKING_PARAMETERS = frozenset(
    {
        "si",
        "feature",
        "pp",
        "fbclid",
        "gclid",
        "igshid",
        "ref",
        "ref_src",
        "nd",
        "utm_source",
        "utm_medium",
        "utm_campaign",
        "utm_term",
        "utm_content",
    }
)

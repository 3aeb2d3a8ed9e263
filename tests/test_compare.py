import datetime as dt
from zoneinfo import ZoneInfo

from seo_audit.compare import (
    MISSING_TAG_SENTINEL,
    compare_canonical,
    compare_h1,
    compare_robots,
    compare_tags,
    format_timestamp,
    tokenize_robots,
)
from seo_audit.schemas import AuditRecord, ExtractedTags

BANGKOK = ZoneInfo("Asia/Bangkok")


def test_tokenize_robots_normalises_spacing_case_and_duplicates():
    assert tokenize_robots("  NoIndex ,   nofollow\tnoarchive,,noindex ") == [
        "noindex",
        "nofollow",
        "noarchive",
    ]
    assert tokenize_robots("") == []


def test_robots_comparison_ignores_order_and_duplicates():
    diff = compare_robots("noindex, nofollow", "nofollow,noindex,nofollow")

    assert diff.missing == ()
    assert diff.extra == ()
    assert diff.matched


def test_robots_comparison_reports_asymmetric_differences():
    diff = compare_robots("noindex, nofollow", "noindex")
    assert diff.missing == ("nofollow",)
    assert diff.extra == ()

    diff = compare_robots("index", "noarchive, index, nosnippet")
    assert diff.missing == ()
    assert diff.extra == ("noarchive", "nosnippet")


def test_absent_robots_compares_as_sentinel():
    diff = compare_robots("", None)

    assert diff.missing == ()
    assert diff.extra == (MISSING_TAG_SENTINEL,)


def test_canonical_exact_match_after_trim():
    assert compare_canonical(" https://x.com/a ", "https://x.com/a").missing == ()
    assert compare_canonical("https://x.com/a", "https://x.com/b").missing == ("https://x.com/b",)


def test_absent_canonical_reports_sentinel():
    assert compare_canonical("https://x.com/a", None).missing == (MISSING_TAG_SENTINEL,)


def test_h1_flags_expected_text_when_found():
    assert compare_h1("Welcome", ["Welcome Home"]).missing == ("Welcome",)
    assert compare_h1("WELCOME", ["other", "welcome home"]).missing == ("WELCOME",)
    assert compare_h1("Goodbye", ["Welcome Home"]).missing == ()
    assert compare_h1(None, ["Welcome Home"]).missing == ()
    assert compare_h1("Welcome", []).missing == ()


def test_format_timestamp_uses_twelve_hour_clock_in_zone():
    moment = dt.datetime(2024, 1, 5, 8, 4, 9, tzinfo=dt.timezone.utc)
    assert format_timestamp(moment, BANGKOK) == "1/5/2024, 3:04:09 PM"

    midnight = dt.datetime(2024, 1, 4, 17, 0, 0, tzinfo=dt.timezone.utc)
    assert format_timestamp(midnight, BANGKOK) == "1/5/2024, 12:00:00 AM"


def test_compare_tags_end_to_end_scenario():
    record = AuditRecord(
        url="https://ex.com",
        expected_title="",
        expected_canonical="https://ex.com/canon",
        expected_robots="noindex, nofollow",
        expected_h1="Welcome",
    )
    tags = ExtractedTags(
        robots="nofollow",
        canonical="https://ex.com/canon",
        title=None,
        h1s=("Welcome Home",),
    )
    fetched_at = dt.datetime(2024, 6, 1, 12, 0, 0, tzinfo=dt.timezone.utc)

    result = compare_tags(record, tags, fetched_at, BANGKOK)

    assert result.url == "https://ex.com"
    assert result.robots.missing == ("noindex",)
    assert result.robots.extra == ()
    assert result.canonical.missing == ()
    assert result.h1.missing == ("Welcome",)
    assert result.timestamp == "6/1/2024, 7:00:00 PM"
    assert result.ok

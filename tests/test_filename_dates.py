from datetime import datetime

from stampfix.schemas.media import MatchResult, NamingPattern
from stampfix.services.matcher import describe, match_filename
from stampfix.services.reconcile import candidate_timestamp


def test_filename_patterns():
    m = match_filename("IMG_20240710_200842.jpg")
    assert m.pattern is NamingPattern.IMG_WITH_TIME
    assert (m.date, m.time) == ("20240710", "200842")

    m = match_filename("VID_20240710_200842123.mp4")
    assert m.pattern is NamingPattern.VID_WITH_TIME
    assert (m.date, m.time) == ("20240710", "200842")

    m = match_filename("IMG-20210601-WA0001.jpg")
    assert m.pattern is NamingPattern.IMG_DATE_ONLY
    assert (m.date, m.time) == ("20210601", None)

    m = match_filename("Screenshot_20240710-200842_Chrome.jpg")
    assert m.pattern is NamingPattern.SCREENSHOT
    assert (m.date, m.time) == ("20240710", "200842")


def test_suffixes_after_time_are_allowed():
    m = match_filename("IMG_20230115_143000_1.jpg")
    assert (m.date, m.time) == ("20230115", "143000")
    assert match_filename("IMG-20210601-WA0001~2.jpg").date == "20210601"


def test_extracted_digits_round_trip_to_filename():
    names = [
        "IMG_20230115_143000_1.jpg",
        "VID_19991231_235959.mp4",
        "IMG-20210601-WA0042.jpg",
        "Screenshot_20200229-000001.jpg",
    ]
    for name in names:
        m = match_filename(name)
        assert m.date in name
        if m.time is not None:
            assert f"{m.date}_{m.time}" in name or f"{m.date}-{m.time}" in name
        ts = candidate_timestamp(m)
        assert ts.strftime("%Y%m%d") == m.date
        if m.time is not None:
            assert ts.strftime("%H%M%S") == m.time


def test_case_sensitive_and_extension_bound():
    assert match_filename("img_20240710_200842.jpg") is None
    assert match_filename("IMG_20240710_200842.JPG") is None
    assert match_filename("VID_20240710_200842.mov") is None
    assert match_filename("IMG_20240710_200842.jpg.bak") is None
    assert match_filename("screenshot_20240710-200842.jpg") is None


def test_unrecognized_names_do_not_match():
    for name in ["PXL_20240710_200842123.jpg", "DSC01234.JPG", "IMG_2024_200842.jpg",
                 "WhatsApp Image 2024-07-10 at 20.08.42.jpeg", "notes.txt"]:
        assert match_filename(name) is None


def test_candidate_uses_midnight_for_date_only():
    m = match_filename("IMG-20210601-WA0001.jpg")
    assert candidate_timestamp(m) == datetime(2021, 6, 1, 0, 0, 0)


def test_candidate_none_for_impossible_digits():
    m = match_filename("IMG_20231345_143000.jpg")
    assert m is not None
    assert candidate_timestamp(m) is None
    m = match_filename("VID_20230115_256000.mp4")
    assert candidate_timestamp(m) is None


def test_candidate_none_for_unknown_date():
    m = MatchResult(filename="IMG_x.jpg", pattern=NamingPattern.IMG_WITH_TIME)
    assert candidate_timestamp(m) is None
    assert describe(m.date) == "unknown"
    assert describe("20240710") == "20240710"

from __future__ import annotations

import pytest

from src.utils.sanitize import sanitize_number, sanitize_string, split_list, to_int


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("shoes", "shoes"),
        ("  red shoes  ", "red shoes"),
        ("<b>shoes</b>", "shoes"),
        ("<script>alert(1)</script>hi", "alert(1)hi"),
        ("abc <unclosed tag", "abc"),
        ('say "hi"', "say &#34;hi&#34;"),
        ("men's", "men&#39;s"),
        ("tab\there\x00", "tabhere"),
        ("   ", ""),
        ("<br>", ""),
        (None, ""),
    ],
)
def test_sanitize_string(raw, expected):
    assert sanitize_string(raw) == expected


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("12", "12"),
        ("12abc", "12"),
        ("-5", "-5"),
        ("5-3", "53"),
        ("10.50", "10.50"),
        ("1.2.3", "1.23"),
        ("abc", ""),
        ("-", ""),
        (".", ""),
        ("", ""),
        (None, ""),
        (42, "42"),
    ],
)
def test_sanitize_number(raw, expected):
    assert sanitize_number(raw) == expected


def test_to_int():
    assert to_int("20") == 20
    assert to_int("2.7") == 2
    assert to_int("-3") == -3
    assert to_int("x") is None
    assert to_int("") is None
    assert to_int(None) is None


def test_to_int_keeps_integer_part_verbatim():
    assert to_int(".5") == 0
    assert to_int("-.5") == 0
    assert to_int("-12.9") == -12
    assert to_int("12345678901234567891") == 12345678901234567891
    assert to_int("9" * 400) == int("9" * 400)


def test_split_list_drops_empty_items():
    assert split_list("product, ,page,") == ["product", "page"]
    assert split_list("1,abc,2", sanitize_number) == ["1", "2"]


def test_split_list_empty_is_legal():
    assert split_list("") == []
    assert split_list(None) == []
    assert split_list("<b></b>,<i></i>") == []

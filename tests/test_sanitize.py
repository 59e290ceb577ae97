"""Tests for filename sanitizing."""
import os

import pytest

from tgsalvage.services.sanitize import MAX_FILENAME_LENGTH, RESERVED_NAMES, sanitize

ADVERSARIAL = [
    "",
    ".",
    "..",
    "...",
    "   ",
    "../../etc/passwd",
    "..\\..\\windows\\system32",
    "/absolute/path.txt",
    "a:b*c?d\"e<f>g|h",
    "null\x00byte.txt",
    "tab\tand\nnewline\r.txt",
    "\x7fdel",
    "CON",
    "con.txt",
    "lpt9.log",
    "Com1",
    "x" * 1000,
    "y" * 500 + ".jpeg",
    "z." + "e" * 400,
    "trailing dots...",
    "abc .",
    ". hidden",
    " . . ",
    " spaced out ",
    "résumé 2024.pdf",
    "文件.docx",
]


class TestSanitize:
    """Rules applied to untrusted names."""

    def test_empty_gets_placeholder(self):
        assert sanitize("") == "empty_filename"

    def test_path_traversal_is_flattened(self):
        assert sanitize("../../etc/passwd") == "_.._etc_passwd"
        assert sanitize("..\\..\\boot.ini") == "_.._boot.ini"

    def test_windows_characters_replaced(self):
        assert sanitize('a:b*c?d"e<f>g|h') == "a_b_c_d'e_f_g_h"

    def test_control_characters_removed(self):
        assert sanitize("na\x00me\x1f\x7f.txt") == "name.txt"

    def test_whitespace_and_dots_trimmed(self):
        assert sanitize("  .hidden.  ") == "hidden"
        assert sanitize("report.pdf...") == "report.pdf"

    @pytest.mark.parametrize("raw, expected", [
        ("abc .", "abc"),
        (". hidden", "hidden"),
        ("report .pdf .", "report .pdf"),
        (". . name . .", "name"),
    ])
    def test_mixed_dots_and_spaces_trimmed(self, raw, expected):
        assert sanitize(raw) == expected

    @pytest.mark.parametrize("raw", [".", "..", "...", "   ", "\x00\x01"])
    def test_nothing_left_gets_unique_placeholder(self, raw):
        assert sanitize(raw).startswith("sanitized_file_")

    def test_long_name_keeps_extension(self):
        result = sanitize("a" * 300 + ".mp4")
        assert len(result) == MAX_FILENAME_LENGTH
        assert result == "a" * 216 + ".mp4"

    def test_long_name_without_extension_is_cut(self):
        assert sanitize("b" * 300) == "b" * MAX_FILENAME_LENGTH

    def test_huge_extension_is_hard_cut(self):
        result = sanitize("x." + "y" * 300)
        assert len(result) == MAX_FILENAME_LENGTH
        assert result.startswith("x.y")

    @pytest.mark.parametrize("raw, expected", [
        ("CON", "_CON"),
        ("con.txt", "_con.txt"),
        ("Lpt1.log", "_Lpt1.log"),
        ("nul", "_nul"),
    ])
    def test_reserved_names_prefixed(self, raw, expected):
        assert sanitize(raw) == expected

    @pytest.mark.parametrize("raw", ["COM10.txt", "CON.tar.gz", "console.log", "PRNT"])
    def test_almost_reserved_names_untouched(self, raw):
        assert sanitize(raw) == raw

    def test_unicode_kept(self):
        assert sanitize("résumé 2024.pdf") == "résumé 2024.pdf"


class TestSanitizeProperties:
    """Guarantees over a corpus of hostile inputs."""

    @pytest.mark.parametrize("raw", ADVERSARIAL)
    def test_result_is_safe(self, raw):
        result = sanitize(raw)
        assert result
        assert "/" not in result and "\\" not in result
        assert not any(ord(c) < 0x20 or ord(c) == 0x7F for c in result)
        assert len(result) <= MAX_FILENAME_LENGTH
        stem, _ = os.path.splitext(result)
        assert stem.upper() not in RESERVED_NAMES
        assert result not in (".", "..")
        assert result == result.strip(" .")

    @pytest.mark.parametrize("raw", [
        "photo.jpg",
        "../../etc/passwd",
        'a:b*c?d"e<f>g|h',
        "  padded name.txt  ",
        "y" * 500 + ".jpeg",
        "x" * 1000,
        "abc .",
        ". hidden",
        "report .pdf .",
        "文件.docx",
    ])
    def test_idempotent(self, raw):
        once = sanitize(raw)
        assert sanitize(once) == once

"""Tests for the string-value sanitizer."""

import json
import random

import pytest

from asset_recovery.recovery.sanitizer import sanitize, sanitize_value


class TestDegrees:
    def test_braced_superscript(self):
        assert sanitize_value(r"Uses 360^{\circ} rotation") == "Uses 360 degrees rotation"

    def test_dollar_delimited(self):
        assert sanitize_value(r"Tilt $45^\circ$ max") == "Tilt 45 degrees max"

    def test_bare_circ(self):
        assert sanitize_value(r"angle 90\circ") == "angle 90 degrees"

    def test_bare_circ_keeps_following_dollar(self):
        assert sanitize_value(r"tilt 45\circ $5 extra") == "tilt 45 degrees $5 extra"

    def test_unmatched_opening_dollar_kept(self):
        assert sanitize_value(r"cost $45^\circ") == "cost $45 degrees"

    def test_already_escaped_backslash(self):
        assert sanitize_value(r"rotate 180^{\\circ}") == "rotate 180 degrees"

    def test_decimal(self):
        assert sanitize_value(r"12.5^\circ pitch") == "12.5 degrees pitch"

    def test_math_wrapped_after_numeral(self):
        assert sanitize_value(r"5$\circ$ slope") == "5 degrees slope"


class TestEscapes:
    def test_invalid_escape_doubled(self):
        assert sanitize_value(r"C:\path\x") == r"C:\\path\\x"

    def test_valid_escapes_untouched(self):
        content = r"line\nnext \"quoted\" \\ \/ \u00e9"
        assert sanitize_value(content) == content

    def test_escaped_backslash_then_letter_not_reescaped(self):
        assert sanitize_value(r"a\\x") == r"a\\x"

    def test_short_unicode_escape_doubled(self):
        assert sanitize_value(r"\u12") == r"\\u12"

    def test_trailing_lone_backslash(self):
        assert sanitize_value("ends with \\") == "ends with \\\\"

    def test_literal_control_characters(self):
        assert sanitize_value("a\nb\rc\td\fe\bf") == r"a\nb\rc\td\fe\bf"

    def test_other_control_character(self):
        assert sanitize_value("bell\x07") == r"bell\u0007"

    def test_escaped_newline_not_double_escaped(self):
        assert sanitize_value(r"already\nescaped") == r"already\nescaped"


class TestMathSpans:
    def test_latex_span_unwrapped(self):
        assert sanitize_value(r"area $x^2$ m") == "area x^2 m"

    def test_latex_command_backslash_doubled(self):
        # \theta would otherwise read as a tab escape.
        assert sanitize_value(r"angle $\theta_1$") == r"angle \\theta_1"

    def test_display_math_unwrapped(self):
        assert sanitize_value("area $$x^2$$ m") == "area x^2 m"

    def test_display_math_with_braces(self):
        assert sanitize_value("$$a{{b$$") == "a{{b"

    def test_currency_left_alone(self):
        assert sanitize_value("budget $500 to $800") == "budget $500 to $800"


class TestSanitizeDocument:
    def test_keys_untouched(self):
        text = '{"bad\\key": "value\\q"}'
        assert sanitize(text) == '{"bad\\key": "value\\\\q"}'

    def test_punctuation_untouched(self):
        text = '{"assets": [{"asset_name": "A", "tags": ["X"]}]}'
        assert sanitize(text) == text

    def test_scenario_degrees_parses(self):
        text = r'{"assets": [{"asset_name": "C", "specifications": "Uses 360^{\circ} rotation"}]}'
        cleaned = json.loads(sanitize(text))
        spec = cleaned["assets"][0]["specifications"]
        assert "360 degrees" in spec
        assert "\\circ" not in spec

    def test_raw_newline_in_value_parses(self):
        text = '{"assets": [{"asset_name": "A", "specifications": "two\nlines"}]}'
        cleaned = json.loads(sanitize(text))
        assert cleaned["assets"][0]["specifications"] == "two\nlines"

    def test_unterminated_value_sanitized(self):
        text = '{"spec": "cut\toff'
        assert sanitize(text) == '{"spec": "cut\\toff'


IDEMPOTENCE_CASES = [
    "",
    '{"a": "plain"}',
    r'{"a": "Uses 360^{\circ} rotation"}',
    r'{"a": "C:\path\x and \\ and \n"}',
    '{"a": "raw\nnewline\tand tab"}',
    r'{"a": "math $\theta + x^2$ and $5 and $6"}',
    r'{"a": "5$\circ$ and $\circ$ alone"}',
    r'{"a": "\u00e9 \u12 \\\circ"}',
    '{"a": "unterminated \\',
    r'{"a": ["x\y", "$a_1$"], "b": {"c": "\q"}}',
    r'{"a": "$p$q^2$r$ $a^1$$b$"}',
    '{"a": "area $$x^2$$ m"}',
    '{"a": "$$^^c $$"}',
    r'{"a": "\$$a{{\i$$,"}',
    '{"a": ":^c$$\n$$,i "}',
    r'{"a": "tilt 45\circ $5 extra"}',
]


class TestIdempotence:
    @pytest.mark.parametrize("text", IDEMPOTENCE_CASES)
    def test_sanitize_twice_equals_once(self, text):
        once = sanitize(text)
        assert sanitize(once) == once

    def test_random_values(self):
        pieces = [
            "$", "$$", "\\", "\\\\", "\\circ", "^", "_", "{", "}", "\\u00e9",
            "\\u1", "\n", "\t", "\x01", "5", "12.5", " ", "a", "i", "c", ",",
            ":", "[", "]", '"', "\\n", "\\t",
        ]
        rng = random.Random(1729)
        for _ in range(3000):
            value = "".join(rng.choice(pieces) for _ in range(rng.randint(0, 14)))
            for text in (value, '{"k": "' + value + '"}'):
                once = sanitize(text)
                assert sanitize(once) == once, repr(text)

"""
Tests for the damage estimator (mantissa x 10^exponent).
"""

import pytest

from stormie.damage import estimate_damage, is_valid_exponent, resolve_exponent
from stormie.errors import InvalidExponentError


class TestResolveExponent:

    @pytest.mark.parametrize("code,expected", [
        ("h", 2), ("H", 2),
        ("k", 3), ("K", 3),
        ("m", 6), ("M", 6),
        ("b", 9), ("B", 9),
    ])
    def test_letters(self, code, expected):
        assert resolve_exponent(code) == expected

    @pytest.mark.parametrize("code", ["", "-", "?", "+", None, "  "])
    def test_neutral_codes(self, code):
        assert resolve_exponent(code) == 0

    @pytest.mark.parametrize("code,expected", [("0", 0), ("5", 5), ("8", 8), ("2.5", 2.5)])
    def test_numeric_codes(self, code, expected):
        assert resolve_exponent(code) == expected

    def test_surrounding_whitespace_ignored(self):
        assert resolve_exponent(" K ") == 3

    @pytest.mark.parametrize("code", ["Q", "KK", "x", "nan", "inf", "1K", "1e400", "400", "999"])
    def test_unknown_codes_fail(self, code):
        with pytest.raises(InvalidExponentError) as exc:
            resolve_exponent(code)
        assert exc.value.code == code

    def test_error_is_a_value_error(self):
        with pytest.raises(ValueError):
            resolve_exponent("Q")


class TestEstimateDamage:

    def test_thousands(self):
        assert estimate_damage(3, "K") == 3000

    def test_blank_code_multiplies_by_one(self):
        assert estimate_damage(5, "") == 5

    def test_billions(self):
        assert estimate_damage(1.5, "B") == 1_500_000_000

    def test_hundreds_and_millions(self):
        assert estimate_damage(2, "h") == 200
        assert estimate_damage(1, "m") == 1_000_000

    def test_numeric_code(self):
        assert estimate_damage(2, "5") == 200_000

    def test_zero_mantissa(self):
        assert estimate_damage(0, "B") == 0

    def test_missing_mantissa_is_zero(self):
        assert estimate_damage(None, "K") == 0

    @pytest.mark.parametrize("mantissa", [0, 1, 2.5, None])
    def test_invalid_code_fails_for_any_mantissa(self, mantissa):
        with pytest.raises(InvalidExponentError):
            estimate_damage(mantissa, "Q")


class TestIsValidExponent:

    def test_valid_and_invalid(self):
        assert is_valid_exponent("K")
        assert is_valid_exponent("")
        assert not is_valid_exponent("Q")


class TestOutOfRange:
    """Codes or pairs whose dollar amount does not fit in a float."""

    @pytest.mark.parametrize("mantissa", [0, 1, None])
    def test_huge_numeric_code_is_invalid(self, mantissa):
        with pytest.raises(InvalidExponentError) as exc:
            estimate_damage(mantissa, "400")
        assert exc.value.code == "400"

    def test_exponent_notation_beyond_float_range(self):
        with pytest.raises(InvalidExponentError):
            estimate_damage(0, "1e400")

    def test_product_overflow_is_invalid(self):
        with pytest.raises(InvalidExponentError):
            estimate_damage(1e300, "300")

    def test_large_but_finite_code(self):
        assert estimate_damage(1, "300") == pytest.approx(1e300)

    def test_negative_code_underflows_to_zero(self):
        assert estimate_damage(5, "-400") == 0

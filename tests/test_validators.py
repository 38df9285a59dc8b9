"""
Tests for shared validators, codes and pricing
"""

import pytest

from villacare.shared.codes import generate_onboarding_token, generate_referral_code, slug_base, slug_candidate
from villacare.shared.pricing import priced_services, service_quote
from villacare.shared.validators import validate_email, validate_phone, validate_time


class TestValidatePhone:
    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("+34 612 345 678", "+34612345678"),
            ("612345678", "+34612345678"),
            ("0044 7700 900123", "+447700900123"),
            ("+1 (415) 555-0100", "+14155550100"),
        ],
    )
    def test_normalizes(self, raw, expected):
        assert validate_phone(raw) == expected

    @pytest.mark.parametrize("raw", ["12345", "7700900123", "+1234567"])
    def test_rejects(self, raw):
        with pytest.raises(ValueError):
            validate_phone(raw)

    def test_empty_passes_through(self):
        assert validate_phone(None) is None


class TestValidateEmail:
    def test_lowercases(self):
        assert validate_email("  Maria@Example.COM ") == "maria@example.com"

    def test_rejects_garbage(self):
        with pytest.raises(ValueError):
            validate_email("maria@")


class TestValidateTime:
    @pytest.mark.parametrize("value", ["00:00", "09:30", "23:59"])
    def test_accepts(self, value):
        assert validate_time(value) == value

    @pytest.mark.parametrize("value", ["9:30", "24:00", "12:60", "noon", ""])
    def test_rejects(self, value):
        with pytest.raises(ValueError):
            validate_time(value)


class TestCodes:
    def test_slug_base_uses_first_name(self):
        assert slug_base("María-José López") == "marajos"

    def test_first_candidate_is_bare(self):
        assert slug_candidate("Maria Lopez", 0) == "maria"

    def test_later_candidates_have_numeric_suffix(self):
        slug = slug_candidate("Maria Lopez", 3)
        assert slug.startswith("maria")
        assert 0 <= int(slug[len("maria"):]) <= 999

    def test_empty_name_falls_back(self):
        assert slug_candidate("", 0) == "cleaner"

    def test_referral_code_shape(self):
        code = generate_referral_code("Oliver Smith")
        assert code.startswith("OLIV")
        assert len(code) == 11

    def test_onboarding_token(self):
        token = generate_onboarding_token()
        assert len(token) == 64
        assert token != generate_onboarding_token()


class TestPricing:
    def test_quote(self):
        assert service_quote(18.5, "deep") == (92.5, 5)

    def test_unknown_service(self):
        with pytest.raises(KeyError):
            service_quote(20, "spa")

    def test_catalog(self):
        assert [(s["type"], s["price"]) for s in priced_services(20)] == [
            ("regular", 60),
            ("deep", 100),
            ("arrival", 80),
        ]

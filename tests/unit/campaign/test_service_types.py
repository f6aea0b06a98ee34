"""
Unit Tests for the Service-Type Resolver

Canonical pass-through, alias lookup, "all" and empty input handling.
"""

import logging

import pytest

import sys
import os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), "../../.."))

from microservices.campaign_service.service_types import (
    ALL_SERVICE_TYPES,
    CANONICAL_CODES,
    SERVICE_TYPE_ALIASES,
    describe_resolution,
    is_canonical,
    list_service_types,
    resolve_service_type_code,
    service_type_label,
)

RESOLVER_LOGGER = "microservices.campaign_service.service_types"


class TestResolveServiceTypeCode:
    """resolve_service_type_code"""

    @pytest.mark.parametrize("code", sorted(CANONICAL_CODES))
    def test_canonical_codes_pass_through(self, code):
        assert resolve_service_type_code(code) == code

    @pytest.mark.parametrize(
        "raw,expected",
        [
            ("naver-traffic", "ntraffic"),
            ("navertraffic", "ntraffic"),
            ("NaverTraffic", "ntraffic"),
            ("  naver-shopping ", "nshopping"),
            ("coupang", "CoupangTraffic"),
            ("COUPANGTRAFFIC", "CoupangTraffic"),
            ("naver-place-save", "nplace-save"),
            ("naver-place-rank", "nplacerank"),
        ],
    )
    def test_aliases_resolve(self, raw, expected):
        assert resolve_service_type_code(raw) == expected

    @pytest.mark.parametrize("raw", ["all", "ALL", "All", " all "])
    def test_all_means_no_filter(self, raw):
        assert resolve_service_type_code(raw) == ALL_SERVICE_TYPES

    def test_canonical_match_is_case_sensitive(self):
        # "coupangtraffic" is not canonical but its alias is
        assert "coupangtraffic" not in CANONICAL_CODES
        assert resolve_service_type_code("coupangtraffic") == "CoupangTraffic"

    @pytest.mark.parametrize("raw", ["", "   ", None])
    def test_empty_input_returns_empty_and_warns(self, raw, caplog):
        with caplog.at_level(logging.WARNING, logger=RESOLVER_LOGGER):
            assert resolve_service_type_code(raw) == ""

        assert any(r.levelno == logging.WARNING for r in caplog.records)

    def test_unmapped_returns_normalized_and_warns(self, caplog):
        with caplog.at_level(logging.WARNING, logger=RESOLVER_LOGGER):
            result = resolve_service_type_code("  Kakao-Traffic ")

        assert result == "kakao-traffic"
        assert any("Kakao-Traffic" in r.getMessage() for r in caplog.records)

    def test_every_alias_targets_a_canonical_code(self):
        for alias, code in SERVICE_TYPE_ALIASES.items():
            assert alias == alias.lower()
            assert code in CANONICAL_CODES


class TestCatalogHelpers:
    """Catalog lookups"""

    def test_is_canonical(self):
        assert is_canonical("ntraffic")
        assert not is_canonical("all")
        assert not is_canonical("")
        assert not is_canonical(None)

    def test_label_accepts_aliases(self):
        assert service_type_label("naver-traffic") == "Naver Traffic"
        assert service_type_label("unknown-type") == "unknown-type"

    def test_catalog_lists_every_code_once(self):
        codes = [info.code for info in list_service_types()]

        assert len(codes) == len(set(codes))
        assert set(codes) == set(CANONICAL_CODES)

    def test_ranking_types_are_flagged(self):
        ranking = {info.code for info in list_service_types() if info.ranking}
        assert {"nshopping", "nrank", "nplacerank", "CoupangTraffic"} == ranking

    def test_describe_resolution(self):
        resolution = describe_resolution("coupang")

        assert resolution.raw == "coupang"
        assert resolution.resolved == "CoupangTraffic"
        assert resolution.canonical is True

        assert describe_resolution("ALL").canonical is False

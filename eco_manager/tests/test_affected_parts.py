"""
Tests for AffectedPartsResolver and the affected-IPN text helpers.
Lookups are plain functions or MagicMocks; no database.
"""

import threading
import time
from unittest.mock import MagicMock

import pytest

from eco_manager.core.affected_parts import (
    NOT_FOUND_REASON,
    AffectedPartsResolver,
    ResolvedPart,
    UnresolvedPart,
    format_affected_ipns,
    parse_affected_ipns,
)
from eco_manager.core.exceptions import PartNotFound, StoreError
from eco_manager.core.record_store import PartMetadata

CATALOG = {
    "IPN-001": "10k Resistor",
    "IPN-002": "100nF Capacitor",
    "IPN-003": "MCU STM32",
}


def _lookup(ipn: str) -> PartMetadata:
    if ipn not in CATALOG:
        raise PartNotFound(ipn)
    return PartMetadata(ipn=ipn, description=CATALOG[ipn])


# ---------------------------------------------------------------------------
# Resolver
# ---------------------------------------------------------------------------

class TestResolver:

    def test_mixed_found_and_missing_preserves_order(self):
        result = AffectedPartsResolver(_lookup).resolve(["IPN-001", "IPN-999"])
        assert result == [
            ResolvedPart("IPN-001", "10k Resistor"),
            UnresolvedPart("IPN-999", NOT_FOUND_REASON),
        ]
        assert result[1].reason == "Part not found in system"

    def test_empty_input_makes_no_lookups(self):
        lookup = MagicMock()
        assert AffectedPartsResolver(lookup).resolve([]) == []
        lookup.assert_not_called()

    def test_one_outcome_per_reference_including_duplicates(self):
        ipns = ["IPN-002", "IPN-001", "IPN-002", "NOPE"]
        result = AffectedPartsResolver(_lookup).resolve(ipns)
        assert [r.ipn for r in result] == ipns
        assert [r.is_resolved for r in result] == [True, True, True, False]

    def test_slow_lookups_do_not_reorder_results(self):
        # Earlier items finish last; output must still follow input order
        delays = {"IPN-001": 0.05, "IPN-002": 0.02, "IPN-003": 0.0}

        def slow_lookup(ipn):
            time.sleep(delays[ipn])
            return _lookup(ipn)

        result = AffectedPartsResolver(slow_lookup, max_workers=3).resolve(list(delays))
        assert [r.description for r in result] == [
            "10k Resistor", "100nF Capacitor", "MCU STM32",
        ]

    def test_lookups_run_concurrently(self):
        barrier = threading.Barrier(3, timeout=2)

        def waiting_lookup(ipn):
            barrier.wait()   # deadlocks (BrokenBarrierError) if run one by one
            return _lookup(ipn)

        result = AffectedPartsResolver(waiting_lookup, max_workers=3).resolve(
            ["IPN-001", "IPN-002", "IPN-003"]
        )
        assert all(r.is_resolved for r in result)

    def test_unexpected_error_only_marks_its_own_reference(self):
        def flaky_lookup(ipn):
            if ipn == "IPN-002":
                raise StoreError("connection reset")
            return _lookup(ipn)

        result = AffectedPartsResolver(flaky_lookup).resolve(["IPN-001", "IPN-002", "IPN-003"])
        assert result[0] == ResolvedPart("IPN-001", "10k Resistor")
        assert isinstance(result[1], UnresolvedPart)
        assert "connection reset" in result[1].reason
        assert result[2] == ResolvedPart("IPN-003", "MCU STM32")

    def test_custom_not_found_reason_is_kept(self):
        def lookup(ipn):
            raise PartNotFound(ipn, reason="Part is obsolete")

        result = AffectedPartsResolver(lookup).resolve(["IPN-050"])
        assert result == [UnresolvedPart("IPN-050", "Part is obsolete")]

    def test_each_reference_looked_up_once(self):
        lookup = MagicMock(side_effect=_lookup)
        AffectedPartsResolver(lookup).resolve(["IPN-001", "IPN-003"])
        assert lookup.call_count == 2

    def test_zero_workers_is_clamped(self):
        result = AffectedPartsResolver(_lookup, max_workers=0).resolve(["IPN-001"])
        assert result == [ResolvedPart("IPN-001", "10k Resistor")]


# ---------------------------------------------------------------------------
# parse / format
# ---------------------------------------------------------------------------

class TestParseAffectedIpns:

    @pytest.mark.parametrize("raw", [None, "", "   ", "[]"])
    def test_empty_forms(self, raw):
        assert parse_affected_ipns(raw) == []

    def test_json_array(self):
        assert parse_affected_ipns('["IPN-001", "IPN-002"]') == ["IPN-001", "IPN-002"]

    def test_comma_list_is_trimmed(self):
        assert parse_affected_ipns(" IPN-001 , ,IPN-002,") == ["IPN-001", "IPN-002"]

    def test_iterable(self):
        assert parse_affected_ipns(("IPN-003", " ", "IPN-001")) == ["IPN-003", "IPN-001"]

    def test_malformed_json_falls_back_to_commas(self):
        assert parse_affected_ipns('["IPN-001", "IPN-002"') == ["IPN-001", "IPN-002"]

    def test_duplicates_kept(self):
        assert parse_affected_ipns("IPN-001,IPN-001") == ["IPN-001", "IPN-001"]


class TestFormatAffectedIpns:

    def test_json_array_output(self):
        assert format_affected_ipns(["IPN-001", " IPN-002 "]) == '["IPN-001", "IPN-002"]'

    def test_empty_list_is_empty_string(self):
        assert format_affected_ipns([]) == ""
        assert format_affected_ipns(["", "  "]) == ""

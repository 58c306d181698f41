"""
Tests for the Vault Event Decoder.

============================================================
PURPOSE
============================================================
The PM2 log interleaves vault events with unrelated output.

TEST PRINCIPLES:
- Anything that is not a vault event decodes to None
- Nothing raises, whatever the input
- Decoded events keep their full payload

============================================================
"""

import json

import pytest

from data_ingestion.decoder import VaultEventDecoder
from data_ingestion.types import DomainEvent, VaultEventName
from tests.helpers import EVENT_TIME, STRATEGY, VAULT, make_log_line


@pytest.fixture
def decoder():
    return VaultEventDecoder()


# ============================================================
# ACCEPTED LINES
# ============================================================

class TestDecodeValid:
    """Tests for lines carrying a vault event."""

    def test_strategy_deposit_line(self, decoder):
        """The sample listener line decodes to a DomainEvent."""
        line = make_log_line("depositStrategyEvent", {
            "vault": VAULT,
            "strategy": STRATEGY,
            "vaultAmountAssetDeposited": 0,
            "vaultAssetTotalValueBefore": 106101123730,
            "vaultAssetTotalValueAfter": 106101500326,
        })

        event = decoder.decode(line)

        assert isinstance(event, DomainEvent)
        assert event.event_name == "depositStrategyEvent"
        assert event.kind == VaultEventName.DEPOSIT_STRATEGY
        assert event.entity_key == VAULT
        assert event.vault == VAULT
        assert event.timestamp == EVENT_TIME
        assert event.payload["vaultAssetTotalValueBefore"] == 106101123730
        assert event.text("strategy") == STRATEGY

    def test_unknown_kind_still_decodes(self, decoder):
        """Kind filtering belongs to the classifier, not the decoder."""
        event = decoder.decode(make_log_line("someFutureEvent", {"vault": VAULT}))

        assert event is not None
        assert event.kind is None

    def test_surrounding_whitespace(self, decoder):
        line = "  " + make_log_line("depositVaultEvent", {"vault": VAULT}) + "\r\n"
        assert decoder.decode(line) is not None

    def test_custom_service_name(self):
        decoder = VaultEventDecoder(expected_service="other-listener")
        line = make_log_line("depositVaultEvent", {"vault": VAULT}, service="other-listener")

        assert decoder.decode(line) is not None

    @pytest.mark.parametrize("metadata", [
        {"time": 1717302014162},
        {"slot": "344046326x"},
        {"signature": 12},
        {"programId": {"key": "vVoLTR"}},
    ])
    def test_listener_metadata_shape_is_ignored(self, decoder, metadata):
        """Fields the service never reads cannot reject an event."""
        envelope = json.loads(make_log_line("depositVaultEvent", {"vault": VAULT}))
        inner = json.loads(envelope["message"])
        inner.update(metadata)
        envelope["message"] = json.dumps(inner)

        event = decoder.decode(json.dumps(envelope))

        assert event is not None
        assert event.vault == VAULT

    def test_numeric_time_falls_back_to_empty(self, decoder):
        envelope = json.loads(make_log_line("depositVaultEvent", {"vault": VAULT}))
        inner = json.loads(envelope["message"])
        del inner["timestamp"]
        inner["time"] = 1717302014162
        envelope["message"] = json.dumps(inner)

        event = decoder.decode(json.dumps(envelope))

        assert event.timestamp == ""

    def test_payload_is_read_only(self, decoder):
        event = decoder.decode(make_log_line("depositVaultEvent", {"vault": VAULT, "user": "u"}))

        with pytest.raises(TypeError):
            event.payload["user"] = "someone else"


# ============================================================
# REJECTED LINES
# ============================================================

class TestDecodeRejected:
    """Tests for lines that are not vault events."""

    @pytest.mark.parametrize("line", [
        "",
        "   ",
        "Starting to watch log file",
        "{not json",
        "[1, 2, 3]",
        json.dumps({"timestamp": "x"}),
        json.dumps({"message": "plain text output"}),
        json.dumps({"message": json.dumps({"service": "voltr-vault-listener"})}),
    ])
    def test_non_event_lines(self, decoder, line):
        assert decoder.decode(line) is None

    def test_foreign_service(self, decoder):
        line = make_log_line("depositVaultEvent", {"vault": VAULT}, service="some-other-service")
        assert decoder.decode(line) is None

    def test_missing_event_data(self, decoder):
        assert decoder.decode(make_log_line("depositVaultEvent", None)) is None

    def test_missing_vault(self, decoder):
        line = make_log_line("depositVaultEvent", {"userAmountAssetDeposited": 10})
        assert decoder.decode(line) is None

    def test_empty_vault(self, decoder):
        assert decoder.decode(make_log_line("depositVaultEvent", {"vault": ""})) is None


# ============================================================
# COUNTERS
# ============================================================

class TestDecoderStats:
    """Tests for decoder counters."""

    def test_counts(self, decoder):
        decoder.decode(make_log_line("depositVaultEvent", {"vault": VAULT}))
        decoder.decode("garbage")
        decoder.decode(make_log_line("depositVaultEvent", {"vault": VAULT}, service="x"))

        stats = decoder.stats()

        assert stats["lines_seen"] == 3
        assert stats["events_decoded"] == 1
        assert stats["lines_rejected"] == 1
        assert stats["events_foreign"] == 1

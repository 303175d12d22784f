"""
Hostname Prober Tests

Tests for candidate selection, conflict handling and confirmation.
"""

import asyncio
import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent))

from mdns_responder.core.message import (
    DNSHeader,
    DNSMessage,
    DNSRecordType,
    DNSResourceRecord,
    IPProtocol,
    create_a_record,
    create_aaaa_record,
)
from mdns_responder.core.prober import HostnameProber, ProberState

GROUPS = {IPProtocol.IPV4: "224.0.0.251", IPProtocol.IPV6: "ff02::fb"}
TIMEOUT = 0.05


def make_response(*records, qr=True) -> DNSMessage:
    header = DNSHeader(transaction_id=0, flags=0, qr=qr, aa=True)
    return DNSMessage(header=header, answers=list(records), address="192.168.1.50")


class ProberHarness:
    """Collects probes and confirmation events from a prober"""

    def __init__(self, timeout=TIMEOUT):
        self.sent = []
        self.confirmed = []
        self.prober = HostnameProber(
            send=self.sent.append,
            groups=GROUPS,
            port=5353,
            confirmation_timeout=timeout,
            on_confirmed=self.confirmed.append,
        )


class TestProbing:
    """Test the Idle -> Probing transition"""

    @pytest.mark.asyncio
    async def test_start_sends_probe_on_both_families(self):
        """Test start picks base.local. and probes both groups"""
        harness = ProberHarness()

        harness.prober.start("host")

        assert harness.prober.state is ProberState.PROBING
        assert harness.prober.hostname == "host.local."
        assert harness.prober.suffix == 1
        assert len(harness.sent) == 2

        by_protocol = {m.protocol: m for m in harness.sent}
        assert by_protocol[IPProtocol.IPV4].address == "224.0.0.251"
        assert by_protocol[IPProtocol.IPV6].address == "ff02::fb"
        for message in harness.sent:
            assert message.is_query()
            assert message.port == 5353
            assert message.questions[0].name == "host.local."
            assert message.questions[0].qtype == DNSRecordType.A

        harness.prober.cancel()

    @pytest.mark.asyncio
    async def test_start_only_from_idle(self):
        """Test a second start does not reset an active probe"""
        harness = ProberHarness()
        harness.prober.start("host")
        harness.prober.handle_response(
            make_response(create_a_record("host.local.", "10.0.0.9", 120))
        )

        harness.prober.start("host")

        assert harness.prober.hostname == "host-1.local."
        assert harness.prober.suffix == 2
        harness.prober.cancel()


class TestConfirmation:
    """Test the Probing -> Confirmed transition"""

    @pytest.mark.asyncio
    async def test_confirms_without_conflict(self):
        """Test silence for the probe window confirms host.local."""
        harness = ProberHarness()

        harness.prober.start("host")
        await asyncio.sleep(TIMEOUT * 4)

        assert harness.confirmed == ["host.local."]
        assert harness.prober.confirmed
        assert harness.prober.state is ProberState.CONFIRMED

    @pytest.mark.asyncio
    async def test_confirmation_fires_once(self):
        """Test later responses and starts never re-confirm"""
        harness = ProberHarness()
        harness.prober.start("host")
        await asyncio.sleep(TIMEOUT * 4)

        retried = harness.prober.handle_response(
            make_response(create_a_record("host.local.", "10.0.0.9", 120))
        )
        harness.prober.start("host")
        await asyncio.sleep(TIMEOUT * 4)

        assert retried is False
        assert harness.confirmed == ["host.local."]
        assert harness.prober.hostname == "host.local."
        assert len(harness.sent) == 2

    @pytest.mark.asyncio
    async def test_not_confirmed_before_timeout(self):
        """Test nothing is confirmed while the timer is pending"""
        harness = ProberHarness(timeout=5.0)

        harness.prober.start("host")
        await asyncio.sleep(0.01)

        assert harness.confirmed == []
        assert not harness.prober.confirmed
        harness.prober.cancel()


class TestConflicts:
    """Test the Probing -> Probing retry"""

    @pytest.mark.asyncio
    async def test_conflict_moves_to_next_candidate(self):
        """Test an A response for host.local. TTL 120 moves to host-1.local."""
        harness = ProberHarness(timeout=5.0)
        harness.prober.start("host")
        first_timer = harness.prober._timer

        retried = harness.prober.handle_response(
            make_response(create_a_record("host.local.", "192.168.1.50", 120))
        )

        assert retried is True
        assert harness.prober.hostname == "host-1.local."
        assert harness.prober.suffix == 2
        assert len(harness.sent) == 4
        assert {m.questions[0].name for m in harness.sent[2:]} == {"host-1.local."}
        assert first_timer.cancelled()
        assert harness.prober._timer is not None
        assert harness.prober._timer is not first_timer
        harness.prober.cancel()

    @pytest.mark.asyncio
    async def test_conflict_then_confirm(self):
        """Test the renamed candidate is what gets confirmed"""
        harness = ProberHarness()
        harness.prober.start("host")
        harness.prober.handle_response(
            make_response(create_aaaa_record("host.local.", "fe80::2", 120))
        )

        await asyncio.sleep(TIMEOUT * 4)

        assert harness.confirmed == ["host-1.local."]

    @pytest.mark.asyncio
    async def test_suffix_strictly_increases(self):
        """Test repeated conflicts walk host-1, host-2, host-3"""
        harness = ProberHarness(timeout=5.0)
        harness.prober.start("host")

        names = []
        suffixes = [harness.prober.suffix]
        for _ in range(3):
            current = harness.prober.hostname
            harness.prober.handle_response(
                make_response(create_a_record(current, "10.0.0.9", 120))
            )
            names.append(harness.prober.hostname)
            suffixes.append(harness.prober.suffix)

        assert names == ["host-1.local.", "host-2.local.", "host-3.local."]
        assert suffixes == sorted(set(suffixes))
        assert harness.prober.conflicts == 3
        harness.prober.cancel()

    @pytest.mark.asyncio
    async def test_only_first_matching_record_counts(self):
        """Test a message claiming two candidates only advances once"""
        harness = ProberHarness(timeout=5.0)
        harness.prober.start("host")

        harness.prober.handle_response(
            make_response(
                create_a_record("host.local.", "10.0.0.9", 120),
                create_a_record("host-1.local.", "10.0.0.9", 120),
                create_aaaa_record("host.local.", "fe80::9", 120),
            )
        )

        assert harness.prober.hostname == "host-1.local."
        assert harness.prober.suffix == 2
        assert len(harness.sent) == 4
        harness.prober.cancel()

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "record",
        [
            create_a_record("other.local.", "10.0.0.9", 120),
            create_a_record("host.local.", "10.0.0.9", 0),
            DNSResourceRecord(
                name="host.local.", rtype=DNSRecordType.TXT, rclass=1, ttl=120, rdata=b""
            ),
        ],
        ids=["other-name", "zero-ttl", "txt-record"],
    )
    async def test_irrelevant_records_ignored(self, record):
        """Test records that do not claim the candidate never retry"""
        harness = ProberHarness(timeout=5.0)
        harness.prober.start("host")

        retried = harness.prober.handle_response(make_response(record))

        assert retried is False
        assert harness.prober.hostname == "host.local."
        assert harness.prober.suffix == 1
        assert len(harness.sent) == 2
        harness.prober.cancel()

    @pytest.mark.asyncio
    async def test_queries_are_not_conflicts(self):
        """Test a query carrying a matching record is ignored"""
        harness = ProberHarness(timeout=5.0)
        harness.prober.start("host")

        retried = harness.prober.handle_response(
            make_response(create_a_record("host.local.", "10.0.0.9", 120), qr=False)
        )

        assert retried is False
        assert harness.prober.hostname == "host.local."
        harness.prober.cancel()

    def test_response_while_idle(self):
        """Test responses before probing starts change nothing"""
        harness = ProberHarness()

        retried = harness.prober.handle_response(
            make_response(create_a_record("host.local.", "10.0.0.9", 120))
        )

        assert retried is False
        assert harness.prober.state is ProberState.IDLE
        assert harness.sent == []

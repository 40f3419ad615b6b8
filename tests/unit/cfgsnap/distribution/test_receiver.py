"""Tests for SnapshotReceiver acceptance rules."""

from __future__ import annotations

import json
import logging

import flatbuffers
import pytest

from cfgsnap.distribution.models import Accepted, Rejected
from cfgsnap.distribution.receiver import MAX_SAFE_VERSION, SnapshotReceiver
from cfgsnap.snapshot.builder import build_snapshot


def _payload(version, instruments, etf=(), options=(), limits=()) -> bytes:
    return build_snapshot(version, instruments, list(etf), list(options), list(limits), clock=lambda: 1)


def _empty_root() -> bytes:
    builder = flatbuffers.Builder(64)
    builder.StartObject(6)
    builder.Finish(builder.EndObject())
    return bytes(builder.Output())


class TestAccept:
    def test_valid_snapshot(self, instrument_rows, etf_rows, option_rows, limit_rows):
        payload = _payload(9, instrument_rows, etf_rows, option_rows, limit_rows)
        verdict = SnapshotReceiver().accept(payload)

        assert isinstance(verdict, Accepted)
        assert verdict.version == 9
        assert verdict.counts.describe() == "inst=3 etf=1 opt=1 limits=2"

    def test_largest_safe_version(self, instrument_rows):
        verdict = SnapshotReceiver().accept(_payload(MAX_SAFE_VERSION, instrument_rows))
        assert isinstance(verdict, Accepted)

    def test_other_lists_may_be_empty(self, instrument_rows):
        verdict = SnapshotReceiver().accept(_payload(1, instrument_rows))
        assert isinstance(verdict, Accepted)
        assert verdict.counts.etf == 0


class TestReject:
    def test_no_instruments(self, limit_rows):
        verdict = SnapshotReceiver().accept(_payload(3, [], limits=limit_rows))
        assert isinstance(verdict, Rejected)
        assert verdict.reason == "Snapshot has no instruments"
        assert verdict.version == 3
        assert not verdict.malformed

    def test_version_zero(self):
        verdict = SnapshotReceiver().accept(_empty_root())
        assert isinstance(verdict, Rejected)
        assert verdict.reason == "Version 0 is not a usable snapshot version"
        assert not verdict.malformed

    def test_version_beyond_double_precision(self, instrument_rows):
        verdict = SnapshotReceiver().accept(_payload(MAX_SAFE_VERSION + 1, instrument_rows))
        assert isinstance(verdict, Rejected)
        assert "not a usable snapshot version" in verdict.reason

    @pytest.mark.parametrize("payload", [b"", b"garbage", b"\xff" * 32])
    def test_malformed(self, payload):
        verdict = SnapshotReceiver().accept(payload)
        assert isinstance(verdict, Rejected)
        assert verdict.malformed
        assert verdict.reason.startswith("Malformed payload: ")
        assert verdict.version is None


class TestAudit:
    def _entries(self, caplog):
        return [json.loads(r.getMessage()) for r in caplog.records if r.name == "cfgsnap.audit"]

    def test_acceptance_is_audited(self, instrument_rows, caplog):
        with caplog.at_level(logging.INFO, logger="cfgsnap.audit"):
            SnapshotReceiver().accept(_payload(4, instrument_rows))
        (entry,) = self._entries(caplog)
        assert entry["event"] == "snapshot.accepted"
        assert entry["service"] == "engine-control"
        assert entry["version"] == 4
        assert entry["instruments"] == 3

    def test_rejection_is_audited(self, caplog):
        with caplog.at_level(logging.INFO, logger="cfgsnap.audit"):
            SnapshotReceiver().accept(b"")
        (entry,) = self._entries(caplog)
        assert entry["event"] == "snapshot.rejected"
        assert "version" not in entry
        assert entry["reason"].startswith("Malformed payload")

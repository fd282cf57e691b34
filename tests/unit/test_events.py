from __future__ import annotations

import json

import pytest

from token_ledger.errors import StorageError
from token_ledger.events import (Approval, EventLog, EventSink, Transfer,
                                 decode_event, encode_event)

A = b"\x01" * 32
B = b"\x02" * 32


def test_event_log_is_a_sink():
    assert isinstance(EventLog(), EventSink)


def test_event_log_snapshots_and_filters():
    log = EventLog()
    log.emit(Transfer(from_=None, to=A, value=5))
    snap = log.events
    log.emit(Approval(owner=A, spender=B, value=2))
    assert len(snap) == 1
    assert len(log) == 2
    assert log.of_type(Approval) == [Approval(owner=A, spender=B, value=2)]
    assert log.last() == Approval(owner=A, spender=B, value=2)
    assert list(log) == list(log.events)
    log.clear()
    assert log.last() is None


def test_event_log_receipts_follow_emission_order():
    log = EventLog()
    assert log.to_receipt() == []
    log.emit(Transfer(from_=None, to=A, value=5))
    log.emit(Approval(owner=A, spender=B, value=2))
    receipts = log.to_receipt()
    assert receipts == [encode_event(e) for e in log.events]
    assert [decode_event(r) for r in receipts] == list(log.events)
    json.dumps(receipts)


def test_mint_transfer_receipt_encoding():
    enc = encode_event(Transfer(from_=None, to=A, value=100))
    assert enc == {
        "name": "0x" + b"Transfer".hex(),
        "args": [
            {"k": "from", "t": "n", "v": None},
            {"k": "to", "t": "b", "v": "0x" + A.hex()},
            {"k": "value", "t": "i", "v": 100},
        ],
        "topics": [None, "0x" + A.hex()],
    }
    json.dumps(enc)


def test_approval_topics():
    enc = encode_event(Approval(owner=A, spender=B, value=1))
    assert enc["name"] == "0x" + b"Approval".hex()
    assert enc["topics"] == ["0x" + A.hex(), "0x" + B.hex()]


def test_decode_restores_event():
    ev = Transfer(from_=A, to=B, value=2**127)
    assert decode_event(json.loads(json.dumps(encode_event(ev)))) == ev


def test_decode_rejects_unknown_name():
    with pytest.raises(StorageError):
        decode_event({"name": "0x" + b"Mint".hex(), "args": []})


def test_events_are_immutable():
    ev = Approval(owner=A, spender=B, value=1)
    with pytest.raises(Exception):
        ev.value = 2  # type: ignore[misc]

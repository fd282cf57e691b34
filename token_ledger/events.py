from __future__ import annotations

"""
token_ledger.events: domain events and the event-sink collaborator.

Two events exist:

    Transfer { from: Optional[AccountId], to: Optional[AccountId], value }
    Approval { owner: AccountId, spender: AccountId, value }

`from`/`to` and `owner`/`spender` are topics (indexed fields). `from` is None
only for the construction-time Transfer that creates the supply.

Delivery is somebody else's job: the engine hands events to anything with an
`emit(event)` method. `EventLog` is the in-memory, inspectable sink used by
tests and the harness.

Receipt form
------------
`encode_event` turns an event into the canonical JSON-safe shape:

    {
      "name": "0x" + hex(name bytes),
      "args": [{"k": key, "t": tag, "v": value}, ...],
      "topics": ["0x..." | None, ...]
    }

with t="b" for bytes (0x-hex), t="i" for ints and t="n" for an absent
optional account.
"""

from dataclasses import dataclass
from typing import (Any, ClassVar, Dict, Iterator, List, Mapping, Optional,
                    Protocol, Sequence, Tuple, Type, TypeVar, Union,
                    runtime_checkable)

from .errors import StorageError


@dataclass(frozen=True)
class Transfer:
    NAME: ClassVar[bytes] = b"Transfer"
    TOPICS: ClassVar[Tuple[str, ...]] = ("from", "to")

    from_: Optional[bytes]
    to: Optional[bytes]
    value: int

    def args(self) -> Dict[str, Any]:
        return {"from": self.from_, "to": self.to, "value": self.value}


@dataclass(frozen=True)
class Approval:
    NAME: ClassVar[bytes] = b"Approval"
    TOPICS: ClassVar[Tuple[str, ...]] = ("owner", "spender")

    owner: bytes
    spender: bytes
    value: int

    def args(self) -> Dict[str, Any]:
        return {"owner": self.owner, "spender": self.spender, "value": self.value}


Event = Union[Transfer, Approval]
E = TypeVar("E", Transfer, Approval)

_BY_NAME: Dict[bytes, Type[Any]] = {Transfer.NAME: Transfer, Approval.NAME: Approval}


@runtime_checkable
class EventSink(Protocol):
    def emit(self, event: Event) -> None: ...


class EventLog:
    """Append-only in-memory sink. Reads return snapshots."""

    def __init__(self) -> None:
        self._events: List[Event] = []

    def emit(self, event: Event) -> None:
        self._events.append(event)

    @property
    def events(self) -> Tuple[Event, ...]:
        return tuple(self._events)

    def of_type(self, kind: Type[E]) -> List[E]:
        return [e for e in self._events if isinstance(e, kind)]

    def last(self) -> Optional[Event]:
        return self._events[-1] if self._events else None

    def clear(self) -> None:
        self._events.clear()

    def to_receipt(self) -> List[Dict[str, Any]]:
        return [encode_event(e) for e in self._events]

    def __len__(self) -> int:
        return len(self._events)

    def __iter__(self) -> Iterator[Event]:
        return iter(tuple(self._events))


# --------------------------- canonical encoding ---------------------------


def _hex_or_none(v: Optional[bytes]) -> Optional[str]:
    return None if v is None else "0x" + bytes(v).hex()


def encode_event(event: Event) -> Dict[str, Any]:
    enc_args: List[Dict[str, Any]] = []
    for k, v in event.args().items():
        if v is None:
            enc_args.append({"k": k, "t": "n", "v": None})
        elif isinstance(v, (bytes, bytearray)):
            enc_args.append({"k": k, "t": "b", "v": _hex_or_none(v)})
        else:
            enc_args.append({"k": k, "t": "i", "v": int(v)})
    args = event.args()
    return {
        "name": "0x" + event.NAME.hex(),
        "args": enc_args,
        "topics": [_hex_or_none(args[t]) for t in event.TOPICS],
    }


def _decode_arg(entry: Mapping[str, Any]) -> Any:
    tag = entry.get("t")
    if tag == "n":
        return None
    if tag == "b":
        return bytes.fromhex(str(entry["v"])[2:])
    if tag == "i":
        return int(entry["v"])
    raise StorageError("unknown event arg tag", tag=tag)


def decode_event(doc: Mapping[str, Any]) -> Event:
    """Inverse of `encode_event`; used by persistent sinks."""
    name = bytes.fromhex(str(doc["name"])[2:])
    cls = _BY_NAME.get(name)
    if cls is None:
        raise StorageError("unknown event name", name=name)
    raw: Sequence[Mapping[str, Any]] = doc.get("args", ())
    values = {str(a["k"]): _decode_arg(a) for a in raw}
    if cls is Transfer:
        return Transfer(from_=values.get("from"), to=values.get("to"), value=values["value"])
    return Approval(owner=values["owner"], spender=values["spender"], value=values["value"])


__all__ = [
    "Transfer",
    "Approval",
    "Event",
    "EventSink",
    "EventLog",
    "encode_event",
    "decode_event",
]

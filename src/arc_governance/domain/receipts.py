from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any


@dataclass(slots=True, frozen=True)
class TransactionEvent:
    name: str
    args: Mapping[str, Any] = field(default_factory=dict)
    address: str | None = None
    log_index: int | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "args", MappingProxyType(dict(self.args)))


@dataclass(slots=True, frozen=True)
class TransactionReceipt:
    transaction_hash: str
    logs: tuple[TransactionEvent, ...] = ()
    block_number: int | None = None
    gas_used: int | None = None

    def events_named(self, event_name: str | None) -> tuple[TransactionEvent, ...]:
        if event_name is None:
            return self.logs
        return tuple(event for event in self.logs if event.name == event_name)

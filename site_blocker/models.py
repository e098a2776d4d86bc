#!/usr/bin/env python3
from __future__ import annotations

import dataclasses
from typing import List


@dataclasses.dataclass
class BlockerConfig:
    domains: List[str] = dataclasses.field(default_factory=list)
    enabled: bool = False

    @classmethod
    def from_dict(cls, data: dict) -> "BlockerConfig":
        # Configs written before the enabled flag existed load as disabled
        return cls(
            domains=list(data.get("domains") or []),
            enabled=data.get("enabled") is True,
        )

    def to_dict(self) -> dict:
        return {"domains": list(self.domains), "enabled": self.enabled}


@dataclasses.dataclass(frozen=True)
class AccessLogEntry:
    """One attempt to reach a blocked domain, as recorded by the logger daemon."""

    domain: str
    ts: str

    def to_dict(self) -> dict:
        return {"domain": self.domain, "ts": self.ts}

"""
Berachain Prague upgrade sections.

Berachain ships a numbered series of protocol upgrades on top of Ethereum's
Prague fork. Each upgrade activates at a timestamp and may carry economic
or governance parameters:

    "berachain": {
        "prague1": {"time": 0, "baseFeeChangeDenominator": 48, ...},
        "prague3": {"time": 1700000000, "blockedAddresses": ["0x..."]}
    }

Sections are 1-indexed and sparse. A section is emitted only when its
`time` is set; unset indices are omitted rather than zero-filled.
"""

from __future__ import annotations

import re
from collections.abc import Sequence
from typing import Any

from pydantic import Field, NonNegativeInt, PositiveInt, field_validator, model_validator

from beranode.exceptions import BuildError
from beranode.types import FrozenModel

_BLOCKED_ADDRESS = re.compile(r"0x[0-9a-fA-F]+")


def parse_blocked_addresses(raw: str | Sequence[str], flag: str | None = None) -> tuple[str, ...]:
    """
    Split and check a blocked-address list.

    Accepts a comma-joined string or a sequence. Surrounding whitespace is
    stripped and empty entries are dropped. Every remaining entry must be
    `0x` followed by hex digits.

    Raises:
        BuildError: If any entry is malformed. Nothing is accepted then.
    """
    parts = raw.split(",") if isinstance(raw, str) else list(raw)
    addresses = tuple(part.strip() for part in parts if part.strip())
    for address in addresses:
        if _BLOCKED_ADDRESS.fullmatch(address) is None:
            raise BuildError(
                "expected comma-separated 0x addresses",
                flag=flag,
                value=raw if isinstance(raw, str) else ",".join(raw),
            )
    return addresses


class PragueSection(FrozenModel):
    """Parameters of one Berachain Prague upgrade."""

    time: NonNegativeInt | None = None
    """Activation timestamp. The section is only emitted when set."""

    base_fee_change_denominator: NonNegativeInt | None = None
    minimum_base_fee_wei: NonNegativeInt | None = None
    pol_distributor_address: str | None = None
    bex_vault_address: str | None = None
    rescue_address: str | None = None
    blocked_addresses: tuple[str, ...] = ()

    @field_validator("blocked_addresses", mode="before")
    @classmethod
    def split_blocked_addresses(cls, v: Any) -> tuple[str, ...]:
        """Accept either a comma-joined string or a list."""
        if v is None:
            return ()
        return parse_blocked_addresses(v)

    @property
    def is_active(self) -> bool:
        """Whether the section has an activation time."""
        return self.time is not None

    def to_json(self) -> dict[str, Any]:
        """The section as it appears under `config.berachain`."""
        entry = self.model_dump(by_alias=True, exclude_none=True)
        if not self.blocked_addresses:
            entry.pop("blockedAddresses", None)
        else:
            entry["blockedAddresses"] = list(self.blocked_addresses)
        return entry


class PragueSchedule(FrozenModel):
    """All Prague sections, keyed by their 1-based index."""

    sections: dict[PositiveInt, PragueSection] = Field(default_factory=dict)

    @model_validator(mode="before")
    @classmethod
    def wrap_plain_mapping(cls, data: Any) -> Any:
        """Allow `{1: {...}, 2: {...}}` as shorthand for `{"sections": {...}}`."""
        if isinstance(data, dict) and "sections" not in data:
            return {"sections": data}
        return data

    def to_json(self) -> dict[str, Any]:
        """The `config.berachain` object, in ascending index order."""
        return {
            f"prague{index}": self.sections[index].to_json()
            for index in sorted(self.sections)
            if self.sections[index].is_active
        }

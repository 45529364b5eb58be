from __future__ import annotations

import re

from eth_utils import is_hex_address, to_checksum_address

from arc_governance.errors import InvalidFormatError, MissingParameterError

ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"

_BYTES32_PATTERN = re.compile(r"^0x[0-9a-fA-F]{64}$")


def _required_text(raw_value: object, field_name: str) -> str:
    if raw_value is None:
        raise MissingParameterError(f"{field_name} is required")
    if not isinstance(raw_value, str):
        raise InvalidFormatError(f"{field_name} must be a hex string")
    candidate = raw_value.strip()
    if not candidate:
        raise MissingParameterError(f"{field_name} is required")
    return candidate


def normalize_address(raw_value: object, *, field_name: str) -> str:
    candidate = _required_text(raw_value, field_name)
    if not is_hex_address(candidate):
        raise InvalidFormatError(f"{field_name} must be a 20-byte hex address")
    return to_checksum_address(candidate)


def normalize_bytes32(raw_value: object, *, field_name: str) -> str:
    candidate = _required_text(raw_value, field_name)
    if not _BYTES32_PATTERN.match(candidate):
        raise InvalidFormatError(f"{field_name} must be a 32-byte 0x-prefixed hex value")
    return candidate.lower()


def same_address(left: str, right: str) -> bool:
    return left.lower() == right.lower()

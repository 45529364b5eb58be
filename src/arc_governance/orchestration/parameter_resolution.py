"""Fee, token and registration-flag resolution for governance proposals.

Platform schemes carry their own fee, fee token and permissions, so a
``scheme_key`` makes the registry authoritative and any explicit value for
those fields is rejected. Without a key the caller has to supply them.
"""
from __future__ import annotations

import re
from dataclasses import dataclass

from arc_governance.domain.permissions import default_permissions
from arc_governance.errors import (
    ConflictingParameterError,
    InvalidFormatError,
    MissingParameterError,
)
from arc_governance.ethereum.addresses import normalize_address
from arc_governance.ethereum.registry import ContractRegistry

_DECIMAL_PATTERN = re.compile(r"^[0-9]+$")


@dataclass(slots=True, frozen=True)
class ResolvedFee:
    fee: int
    token: str


def _is_blank(value: object) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def coerce_amount(raw_value: object, *, field_name: str) -> int:
    """Parse a wei amount given as an int or a decimal string; ``None`` means zero."""
    if raw_value is None:
        return 0
    if isinstance(raw_value, bool):
        raise InvalidFormatError(f"{field_name} must be an integer amount")
    if isinstance(raw_value, int):
        amount = raw_value
    elif isinstance(raw_value, str):
        text = raw_value.strip()
        if not _DECIMAL_PATTERN.match(text):
            raise InvalidFormatError(f"{field_name} must be a decimal integer amount")
        amount = int(text, 10)
    else:
        raise InvalidFormatError(f"{field_name} must be an integer amount")

    if amount < 0:
        raise InvalidFormatError(f"{field_name} must be non-negative")
    return amount


def coerce_bool(raw_value: object, *, field_name: str) -> bool:
    if isinstance(raw_value, bool):
        return raw_value

    if isinstance(raw_value, int):
        return raw_value != 0

    if isinstance(raw_value, str):
        normalized = raw_value.strip().lower()
        if normalized in {"true", "1", "yes"}:
            return True
        if normalized in {"false", "0", "no"}:
            return False

    raise InvalidFormatError(f"{field_name} must be a boolean value")


class ParameterResolver:
    def __init__(self, registry: ContractRegistry) -> None:
        self._registry = registry

    def resolve_fee_and_token(
        self,
        scheme_key: str | None = None,
        fee: object = None,
        token: object = None,
    ) -> ResolvedFee:
        key = (scheme_key or "").strip()
        if key:
            descriptor = self._registry.scheme_descriptor(key)
            if fee is not None or token is not None:
                raise ConflictingParameterError(
                    f"fee and token are taken from scheme {descriptor.key}; "
                    "do not supply them together with scheme_key"
                )
            return ResolvedFee(fee=descriptor.default_fee, token=descriptor.default_token)

        if _is_blank(fee):
            raise MissingParameterError("fee is required when scheme_key is not given")
        if _is_blank(token):
            raise MissingParameterError("token is required when scheme_key is not given")
        return ResolvedFee(
            fee=coerce_amount(fee, field_name="fee"),
            token=normalize_address(token, field_name="token"),
        )

    def resolve_upgrading_scheme_fee(
        self,
        scheme_address: str,
        fee: object = None,
        token: object = None,
    ) -> ResolvedFee:
        """Like ``resolve_fee_and_token`` but keyed by address.

        Only an address the registry knows as a platform scheme acts as the
        fallback source; anything else needs explicit fee and token.
        """
        handle = self._registry.find_by_address(scheme_address)
        scheme_key = None
        if handle is not None and handle in self._registry.schemes:
            scheme_key = handle.name
        return self.resolve_fee_and_token(scheme_key, fee, token)

    def resolve_is_registering(
        self,
        scheme_key: str | None = None,
        explicit: bool | None = None,
    ) -> bool:
        key = (scheme_key or "").strip()
        if key:
            self._registry.scheme_descriptor(key)
            if explicit is not None:
                raise ConflictingParameterError(
                    f"is_registering is derived from scheme {key}; "
                    "do not supply it together with scheme_key"
                )
            return default_permissions(key).can_register_schemes

        if explicit is None:
            raise MissingParameterError("is_registering is required when scheme_key is not given")
        if not isinstance(explicit, bool):
            raise InvalidFormatError("is_registering must be a boolean value")
        return explicit

    def resolve_reward_token(self, reward_amount: object, token_address: object = None) -> str | None:
        amount = coerce_amount(reward_amount, field_name="external_token_reward")
        if amount == 0:
            return None
        if _is_blank(token_address):
            raise MissingParameterError(
                "external_token is required when external_token_reward is non-zero"
            )
        return normalize_address(token_address, field_name="external_token")

"""Scheme authority encoded as a fixed four-flag permission string.

Flag order, left to right: registered, can register schemes, can add/remove
global constraints, can upgrade the controller. ``"0000"`` means the scheme
is not registered at all.
"""
from __future__ import annotations

import re
from dataclasses import dataclass

from arc_governance.errors import InvalidFormatError, NotFoundError

PERMISSION_STRING_LENGTH = 4

_BYTES4_PATTERN = re.compile(r"^0x[0-9a-f]{8}$")


@dataclass(slots=True, frozen=True)
class PermissionSet:
    is_registered: bool = False
    can_register_schemes: bool = False
    can_modify_global_constraints: bool = False
    can_upgrade_controller: bool = False

    def flags(self) -> tuple[bool, bool, bool, bool]:
        return (
            self.is_registered,
            self.can_register_schemes,
            self.can_modify_global_constraints,
            self.can_upgrade_controller,
        )

    def ensure_consistent(self) -> None:
        if not self.is_registered and any(self.flags()[1:]):
            raise InvalidFormatError("an unregistered scheme cannot hold any authority")


def encode_permissions(permissions: PermissionSet) -> str:
    return "".join("1" if flag else "0" for flag in permissions.flags())


def decode_permissions(raw_value: str) -> PermissionSet:
    # The registered invariant is not checked here; see PermissionSet.ensure_consistent.
    if len(raw_value) != PERMISSION_STRING_LENGTH or set(raw_value) - {"0", "1"}:
        raise InvalidFormatError(
            f"permissions must be {PERMISSION_STRING_LENGTH} characters of '0'/'1', "
            f"got {raw_value!r}"
        )
    registered, can_register, can_modify_gc, can_upgrade = (char == "1" for char in raw_value)
    return PermissionSet(
        is_registered=registered,
        can_register_schemes=can_register,
        can_modify_global_constraints=can_modify_gc,
        can_upgrade_controller=can_upgrade,
    )


def to_bytes4(permissions: PermissionSet) -> str:
    """Render permissions as the controller's ``bytes4`` value, bit 0 = registered."""
    value = sum(1 << bit for bit, flag in enumerate(permissions.flags()) if flag)
    return f"0x{value:08x}"


def from_bytes4(raw_value: str) -> PermissionSet:
    candidate = raw_value.strip().lower()
    if not _BYTES4_PATTERN.match(candidate):
        raise InvalidFormatError(f"permissions must be a 0x-prefixed bytes4 value, got {raw_value!r}")
    value = int(candidate, 16)
    return PermissionSet(*(bool(value & (1 << bit)) for bit in range(PERMISSION_STRING_LENGTH)))


DEFAULT_SCHEME_PERMISSIONS: dict[str, str] = {
    "SchemeRegistrar": "1100",
    "UpgradeScheme": "1001",
    "GlobalConstraintRegistrar": "1010",
    "ContributionReward": "1000",
    "VestingScheme": "1000",
}


def default_permissions(scheme_key: str, override: str | None = None) -> PermissionSet:
    """Canonical permissions for a platform scheme.

    A non-empty ``override`` replaces the default wholesale; it is never
    merged flag by flag.
    """
    if override:
        return decode_permissions(override)
    try:
        return decode_permissions(DEFAULT_SCHEME_PERMISSIONS[scheme_key])
    except KeyError as exc:
        raise NotFoundError(f"no default permissions for scheme {scheme_key!r}") from exc

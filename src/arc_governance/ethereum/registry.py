"""Categorised, read-only view of the platform's deployed contracts."""
from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from types import MappingProxyType
from typing import TYPE_CHECKING, Any

from arc_governance.errors import NotFoundError
from arc_governance.ethereum.addresses import same_address
from arc_governance.observability.logging import get_logger
from arc_governance.types import ContractCategory

if TYPE_CHECKING:
    from arc_governance.ethereum.environment import ExecutionEnvironment

# Order inside each category is positional: the first voting machine is the default one.
WELL_KNOWN_CONTRACTS: tuple[tuple[str, ContractCategory], ...] = (
    ("SchemeRegistrar", ContractCategory.SCHEME),
    ("UpgradeScheme", ContractCategory.SCHEME),
    ("GlobalConstraintRegistrar", ContractCategory.SCHEME),
    ("ContributionReward", ContractCategory.SCHEME),
    ("VestingScheme", ContractCategory.SCHEME),
    ("AbsoluteVote", ContractCategory.VOTING_MACHINE),
    ("TokenCapGC", ContractCategory.GLOBAL_CONSTRAINT),
    ("GenesisScheme", ContractCategory.OTHER),
    ("UController", ContractCategory.OTHER),
)

WELL_KNOWN_NAMES: tuple[str, ...] = tuple(name for name, _ in WELL_KNOWN_CONTRACTS)


@dataclass(slots=True, frozen=True)
class SchemeDescriptor:
    key: str | None
    address: str
    registered_parameters_hash: str | None
    default_fee: int
    default_token: str


@dataclass(slots=True, frozen=True)
class ContractHandle:
    name: str
    address: str
    binding: Any = None
    scheme: SchemeDescriptor | None = None


class ContractRegistry:
    def __init__(
        self,
        all_contracts: Mapping[str, ContractHandle],
        schemes: tuple[ContractHandle, ...],
        voting_machines: tuple[ContractHandle, ...],
        global_constraints: tuple[ContractHandle, ...],
    ) -> None:
        self._all_contracts = MappingProxyType(dict(all_contracts))
        self._schemes = schemes
        self._voting_machines = voting_machines
        self._global_constraints = global_constraints

    @property
    def all_contracts(self) -> Mapping[str, ContractHandle]:
        return self._all_contracts

    @property
    def schemes(self) -> tuple[ContractHandle, ...]:
        return self._schemes

    @property
    def voting_machines(self) -> tuple[ContractHandle, ...]:
        return self._voting_machines

    @property
    def global_constraints(self) -> tuple[ContractHandle, ...]:
        return self._global_constraints

    def get(self, name: str) -> ContractHandle:
        handle = self._all_contracts.get(name)
        if handle is None:
            raise NotFoundError(f"unknown contract: {name}")
        return handle

    def find_by_address(self, address: str) -> ContractHandle | None:
        for handle in self._all_contracts.values():
            if same_address(handle.address, address):
                return handle
        return None

    def scheme_descriptor(self, key: str) -> SchemeDescriptor:
        for handle in self._schemes:
            if handle.name == key:
                if handle.scheme is None:
                    raise NotFoundError(f"scheme {key} has no sampled descriptor")
                return handle.scheme
        raise NotFoundError(f"unknown scheme key: {key}")

    def default_voting_machine(self) -> ContractHandle:
        if not self._voting_machines:
            raise NotFoundError("no voting machine is deployed")
        return self._voting_machines[0]


def build_registry(bindings: Mapping[str, ContractHandle]) -> ContractRegistry:
    missing = [name for name in WELL_KNOWN_NAMES if name not in bindings]
    if missing:
        raise NotFoundError(f"missing well-known contracts: {', '.join(missing)}")

    categorised: dict[ContractCategory, list[ContractHandle]] = {
        category: [] for category in ContractCategory
    }
    for name, category in WELL_KNOWN_CONTRACTS:
        categorised[category].append(bindings[name])

    registry = ContractRegistry(
        all_contracts=bindings,
        schemes=tuple(categorised[ContractCategory.SCHEME]),
        voting_machines=tuple(categorised[ContractCategory.VOTING_MACHINE]),
        global_constraints=tuple(categorised[ContractCategory.GLOBAL_CONSTRAINT]),
    )
    get_logger("registry").info(
        "registry_built",
        contracts=len(registry.all_contracts),
        schemes=len(registry.schemes),
        voting_machines=len(registry.voting_machines),
        global_constraints=len(registry.global_constraints),
    )
    return registry


async def load_registry(
    env: ExecutionEnvironment,
    extra_names: tuple[str, ...] = (),
) -> ContractRegistry:
    bindings: dict[str, ContractHandle] = {}
    for name in (*WELL_KNOWN_NAMES, *extra_names):
        bindings[name] = await env.deployed_contract(name)
    return build_registry(bindings)

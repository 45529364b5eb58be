from __future__ import annotations

import pytest

from arc_governance.domain.parameters import ContractParameters
from arc_governance.domain.proposals import ProposalRequest
from arc_governance.domain.receipts import TransactionEvent, TransactionReceipt
from arc_governance.ethereum.registry import (
    WELL_KNOWN_NAMES,
    ContractHandle,
    ContractRegistry,
    SchemeDescriptor,
    build_registry,
)
from arc_governance.orchestration.parameter_resolution import ParameterResolver

AVATAR = "0x" + "1" * 40
OTHER_SCHEME = "0x" + "2" * 40
NATIVE_TOKEN = "0x" + "3" * 40
EXTERNAL_TOKEN = "0x" + "4" * 40
BENEFICIARY = "0x" + "5" * 40
PARAMS_HASH = "0x" + "ab" * 32
VOTE_HASH = "0x" + "cd" * 32

SCHEME_FEES: dict[str, int] = {
    "SchemeRegistrar": 10,
    "UpgradeScheme": 20,
    "GlobalConstraintRegistrar": 30,
    "ContributionReward": 40,
    "VestingScheme": 50,
}


def contract_address(index: int) -> str:
    return "0x" + f"{index:040d}"


def make_bindings() -> dict[str, ContractHandle]:
    bindings: dict[str, ContractHandle] = {}
    # Reverse insertion order so categorisation cannot lean on mapping order.
    for index, name in reversed(list(enumerate(WELL_KNOWN_NAMES, start=1))):
        address = contract_address(index)
        scheme = None
        if name in SCHEME_FEES:
            scheme = SchemeDescriptor(
                key=name,
                address=address,
                registered_parameters_hash=PARAMS_HASH,
                default_fee=SCHEME_FEES[name],
                default_token=NATIVE_TOKEN,
            )
        bindings[name] = ContractHandle(name=name, address=address, binding=object(), scheme=scheme)
    return bindings


class FakeExecutionEnvironment:
    def __init__(self, receipt: TransactionReceipt | None = None, error: Exception | None = None) -> None:
        self.receipt = receipt
        self.error = error
        self.submitted: list[tuple[ContractHandle, ProposalRequest]] = []
        self.registered: list[tuple[ContractHandle, ContractParameters]] = []
        self.bindings = make_bindings()

    async def deployed_contract(self, name: str) -> ContractHandle:
        return self.bindings[name]

    async def submit(self, handle: ContractHandle, request: ProposalRequest) -> TransactionReceipt:
        self.submitted.append((handle, request))
        if self.error is not None:
            raise self.error
        assert self.receipt is not None
        return self.receipt

    async def set_parameters(self, handle: ContractHandle, parameters: ContractParameters) -> str:
        self.registered.append((handle, parameters))
        return "0x" + "CD" * 32


def proposal_receipt(event_name: str, proposal_id: str = "0xfeed") -> TransactionReceipt:
    return TransactionReceipt(
        transaction_hash="0xabc123",
        logs=(
            TransactionEvent(name="Approval", args={"value": 10}),
            TransactionEvent(name=event_name, args={"_proposalId": proposal_id}),
        ),
    )


@pytest.fixture
def registry() -> ContractRegistry:
    return build_registry(make_bindings())


@pytest.fixture
def resolver(registry: ContractRegistry) -> ParameterResolver:
    return ParameterResolver(registry)

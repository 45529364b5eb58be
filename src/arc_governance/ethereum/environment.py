from __future__ import annotations

from typing import Protocol

from arc_governance.domain.parameters import ContractParameters
from arc_governance.domain.proposals import ProposalRequest
from arc_governance.domain.receipts import TransactionReceipt
from arc_governance.ethereum.registry import ContractHandle


class ExecutionEnvironment(Protocol):
    """Boundary to the chain: contract bindings in, transaction receipts out.

    Implementations pass transport and execution failures through unchanged.
    """

    async def deployed_contract(self, name: str) -> ContractHandle:
        ...

    async def submit(self, handle: ContractHandle, request: ProposalRequest) -> TransactionReceipt:
        ...

    async def set_parameters(self, handle: ContractHandle, parameters: ContractParameters) -> str:
        """Register ``parameters`` on the contract and return their parameters hash."""
        ...

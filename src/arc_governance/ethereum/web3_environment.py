"""web3.py implementation of the execution environment."""
from __future__ import annotations

from collections.abc import Callable, Mapping
from typing import Any

from eth_utils import keccak
from hexbytes import HexBytes
from web3 import AsyncWeb3
from web3.logs import DISCARD

from arc_governance.config import AppSettings
from arc_governance.domain.parameters import (
    PARAMETER_TYPES,
    ContractParameters,
    ContributionSchemeParameters,
    TokenCapParameters,
    VotingSchemeParameters,
)
from arc_governance.domain.proposals import (
    AddModifyGlobalConstraintProposal,
    AddModifySchemeProposal,
    ContributionProposal,
    ProposalRequest,
    RemoveGlobalConstraintProposal,
    RemoveSchemeProposal,
    ReplaceControllerProposal,
    ReplaceUpgradingSchemeProposal,
)
from arc_governance.domain.receipts import TransactionEvent, TransactionReceipt
from arc_governance.errors import InvalidFormatError, NotFoundError
from arc_governance.ethereum.addresses import ZERO_ADDRESS, normalize_address
from arc_governance.ethereum.registry import (
    WELL_KNOWN_CONTRACTS,
    ContractHandle,
    SchemeDescriptor,
)
from arc_governance.ethereum.rpc_client import Web3ClientFactory
from arc_governance.types import ContractCategory, ProposalAction

ContractCall = tuple[str, tuple[Any, ...]]
ContractSpec = tuple[str, list[dict[str, Any]]]

SCHEME_NAMES: frozenset[str] = frozenset(
    name for name, category in WELL_KNOWN_CONTRACTS if category == ContractCategory.SCHEME
)


def _add_modify_scheme_call(request: AddModifySchemeProposal) -> ContractCall:
    return (
        "proposeScheme",
        (
            request.avatar,
            request.scheme,
            HexBytes(request.scheme_parameters_hash),
            request.is_registering,
            request.token_address,
            request.fee,
            request.auto_register,
        ),
    )


def _remove_scheme_call(request: RemoveSchemeProposal) -> ContractCall:
    return "proposeToRemoveScheme", (request.avatar, request.scheme)


def _add_modify_global_constraint_call(request: AddModifyGlobalConstraintProposal) -> ContractCall:
    return (
        "proposeGlobalConstraint",
        (
            request.avatar,
            request.global_constraint,
            HexBytes(request.global_constraint_parameters_hash),
            HexBytes(request.voting_machine_hash),
        ),
    )


def _remove_global_constraint_call(request: RemoveGlobalConstraintProposal) -> ContractCall:
    return "proposeToRemoveGC", (request.avatar, request.global_constraint)


def _replace_upgrading_scheme_call(request: ReplaceUpgradingSchemeProposal) -> ContractCall:
    return (
        "proposeChangeUpgradingScheme",
        (
            request.avatar,
            request.scheme,
            HexBytes(request.scheme_parameters_hash),
            request.token_address,
            request.fee,
        ),
    )


def _replace_controller_call(request: ReplaceControllerProposal) -> ContractCall:
    return "proposeUpgrade", (request.avatar, request.controller)


def _submit_contribution_call(request: ContributionProposal) -> ContractCall:
    return (
        "submitContribution",
        (
            request.avatar,
            HexBytes(keccak(text=request.description)),
            request.native_token_reward,
            request.reputation_reward,
            request.eth_reward,
            request.external_token or ZERO_ADDRESS,
            request.external_token_reward,
            request.beneficiary,
        ),
    )


_CALL_BUILDERS: dict[ProposalAction, Callable[[Any], ContractCall]] = {
    ProposalAction.ADD_MODIFY_SCHEME: _add_modify_scheme_call,
    ProposalAction.REMOVE_SCHEME: _remove_scheme_call,
    ProposalAction.ADD_MODIFY_GLOBAL_CONSTRAINT: _add_modify_global_constraint_call,
    ProposalAction.REMOVE_GLOBAL_CONSTRAINT: _remove_global_constraint_call,
    ProposalAction.REPLACE_UPGRADING_SCHEME: _replace_upgrading_scheme_call,
    ProposalAction.REPLACE_CONTROLLER: _replace_controller_call,
    ProposalAction.SUBMIT_CONTRIBUTION: _submit_contribution_call,
}


def contract_call_for(request: ProposalRequest) -> ContractCall:
    """Scheme method name and positional arguments for a proposal request."""
    return _CALL_BUILDERS[request.action](request)


def parameters_args_for(contract_name: str, parameters: ContractParameters) -> tuple[Any, ...]:
    """Positional arguments shared by ``getParametersHash`` and ``setParameters``."""
    expected = PARAMETER_TYPES.get(contract_name)
    if expected is None:
        raise NotFoundError(f"contract {contract_name} takes no registered parameters")
    if not isinstance(parameters, expected):
        raise InvalidFormatError(
            f"{contract_name} expects {expected.__name__}, got {type(parameters).__name__}"
        )

    if isinstance(parameters, VotingSchemeParameters):
        vote_hash = HexBytes(parameters.vote_parameters_hash)
        if contract_name == "SchemeRegistrar":
            # Separate vote parameters for registering and removing schemes.
            return (vote_hash, vote_hash, parameters.voting_machine)
        return (vote_hash, parameters.voting_machine)
    if isinstance(parameters, ContributionSchemeParameters):
        return (
            parameters.org_native_token_fee,
            parameters.scheme_native_token_fee,
            HexBytes(parameters.vote_parameters_hash),
            parameters.voting_machine,
        )
    if isinstance(parameters, TokenCapParameters):
        return (parameters.token, parameters.cap)
    return (parameters.reputation, parameters.vote_percentage, parameters.owner_vote)


def _abi_function_names(abi: list[dict[str, Any]]) -> set[str]:
    return {str(entry.get("name")) for entry in abi if entry.get("type") == "function"}


def decode_receipt(raw_receipt: Mapping[str, Any], binding: Any) -> TransactionReceipt:
    decoded: list[Mapping[str, Any]] = []
    for event in binding.events:
        decoded.extend(event().process_receipt(raw_receipt, errors=DISCARD))
    decoded.sort(key=lambda entry: int(entry["logIndex"]))

    return TransactionReceipt(
        transaction_hash=HexBytes(raw_receipt["transactionHash"]).to_0x_hex(),
        logs=tuple(
            TransactionEvent(
                name=str(entry["event"]),
                args=dict(entry["args"]),
                address=str(entry["address"]),
                log_index=int(entry["logIndex"]),
            )
            for entry in decoded
        ),
        block_number=raw_receipt.get("blockNumber"),
        gas_used=raw_receipt.get("gasUsed"),
    )


class Web3ExecutionEnvironment:
    def __init__(
        self,
        w3: AsyncWeb3,
        contracts: Mapping[str, ContractSpec],
        settings: AppSettings,
    ) -> None:
        self._w3 = w3
        self._contracts = dict(contracts)
        self._settings = settings

    async def deployed_contract(self, name: str) -> ContractHandle:
        spec = self._contracts.get(name)
        if spec is None:
            raise NotFoundError(f"no address/abi configured for contract {name}")

        raw_address, abi = spec
        address = normalize_address(raw_address, field_name=f"{name} address")
        binding = self._w3.eth.contract(address=address, abi=abi)
        scheme = await self._sample_scheme(name, address, binding, abi) if name in SCHEME_NAMES else None
        return ContractHandle(name=name, address=address, binding=binding, scheme=scheme)

    async def _sample_scheme(
        self,
        name: str,
        address: str,
        binding: Any,
        abi: list[dict[str, Any]],
    ) -> SchemeDescriptor:
        functions = _abi_function_names(abi)
        fee = await binding.functions.fee().call() if "fee" in functions else 0
        token = await binding.functions.nativeToken().call() if "nativeToken" in functions else ZERO_ADDRESS
        parameters_hash = None
        if "hashedParameters" in functions:
            parameters_hash = HexBytes(await binding.functions.hashedParameters().call()).to_0x_hex()

        return SchemeDescriptor(
            key=name,
            address=address,
            registered_parameters_hash=parameters_hash,
            default_fee=int(fee),
            default_token=normalize_address(token, field_name=f"{name} token"),
        )

    async def _sender(self) -> str:
        if self._settings.default_account:
            return normalize_address(self._settings.default_account, field_name="default_account")
        accounts = await self._w3.eth.accounts
        if not accounts:
            raise NotFoundError("execution environment exposes no accounts")
        return accounts[0]

    async def _transact(self, function: Any) -> Mapping[str, Any]:
        tx_hash = await function.transact(
            {"from": await self._sender(), "gas": self._settings.gas_limit}
        )
        return await self._w3.eth.wait_for_transaction_receipt(
            tx_hash,
            timeout=self._settings.receipt_timeout_seconds,
        )

    async def submit(self, handle: ContractHandle, request: ProposalRequest) -> TransactionReceipt:
        method, args = contract_call_for(request)
        raw_receipt = await self._transact(getattr(handle.binding.functions, method)(*args))
        return decode_receipt(raw_receipt, handle.binding)

    async def set_parameters(self, handle: ContractHandle, parameters: ContractParameters) -> str:
        args = parameters_args_for(handle.name, parameters)
        parameters_hash = await handle.binding.functions.getParametersHash(*args).call()
        await self._transact(handle.binding.functions.setParameters(*args))
        return HexBytes(parameters_hash).to_0x_hex()


def create_web3_environment(
    settings: AppSettings,
    contracts: Mapping[str, ContractSpec],
) -> Web3ExecutionEnvironment:
    return Web3ExecutionEnvironment(Web3ClientFactory(settings).create(), contracts, settings)

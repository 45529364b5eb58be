from __future__ import annotations

from collections.abc import Callable, Mapping
from typing import Any

from arc_governance.domain.parameters import (
    PARAMETER_TYPES,
    AbsoluteVoteParameters,
    ContractParameters,
    ContributionSchemeParameters,
    TokenCapParameters,
    VotingSchemeParameters,
)
from arc_governance.errors import InvalidFormatError, MissingParameterError, NotFoundError
from arc_governance.ethereum.addresses import normalize_address, normalize_bytes32
from arc_governance.ethereum.registry import ContractRegistry
from arc_governance.orchestration.parameter_resolution import coerce_amount, coerce_bool

ParameterInputs = Mapping[str, Any]

DEFAULT_VOTE_PERCENTAGE = 50


class ParametersBuilder:
    """Validates parameter sets for registration on a platform contract.

    ``voting_machine`` falls back to the registry's first voting machine.
    """

    def __init__(self, registry: ContractRegistry) -> None:
        self._registry = registry
        self._handlers: dict[type[Any], Callable[[ParameterInputs], ContractParameters]] = {
            VotingSchemeParameters: self._voting_scheme,
            ContributionSchemeParameters: self._contribution_scheme,
            TokenCapParameters: self._token_cap,
            AbsoluteVoteParameters: self._absolute_vote,
        }

    def build(self, contract_name: str, inputs: ParameterInputs) -> ContractParameters:
        parameters_type = PARAMETER_TYPES.get(contract_name)
        if parameters_type is None:
            raise NotFoundError(f"contract {contract_name} takes no registered parameters")
        return self._handlers[parameters_type](inputs)

    def _voting_machine(self, inputs: ParameterInputs) -> str:
        if inputs.get("voting_machine") is None:
            return self._registry.default_voting_machine().address
        return normalize_address(inputs.get("voting_machine"), field_name="voting_machine")

    def _voting_scheme(self, inputs: ParameterInputs) -> VotingSchemeParameters:
        return VotingSchemeParameters(
            vote_parameters_hash=normalize_bytes32(
                inputs.get("vote_parameters_hash"), field_name="vote_parameters_hash"
            ),
            voting_machine=self._voting_machine(inputs),
        )

    def _contribution_scheme(self, inputs: ParameterInputs) -> ContributionSchemeParameters:
        return ContributionSchemeParameters(
            org_native_token_fee=coerce_amount(
                inputs.get("org_native_token_fee"), field_name="org_native_token_fee"
            ),
            scheme_native_token_fee=coerce_amount(
                inputs.get("scheme_native_token_fee"), field_name="scheme_native_token_fee"
            ),
            vote_parameters_hash=normalize_bytes32(
                inputs.get("vote_parameters_hash"), field_name="vote_parameters_hash"
            ),
            voting_machine=self._voting_machine(inputs),
        )

    def _token_cap(self, inputs: ParameterInputs) -> TokenCapParameters:
        if inputs.get("cap") is None:
            raise MissingParameterError("cap is required")
        return TokenCapParameters(
            token=normalize_address(inputs.get("token"), field_name="token"),
            cap=coerce_amount(inputs.get("cap"), field_name="cap"),
        )

    def _absolute_vote(self, inputs: ParameterInputs) -> AbsoluteVoteParameters:
        raw_percentage = inputs.get("vote_percentage")
        vote_percentage = (
            DEFAULT_VOTE_PERCENTAGE
            if raw_percentage is None
            else coerce_amount(raw_percentage, field_name="vote_percentage")
        )
        if vote_percentage > 100:
            raise InvalidFormatError("vote_percentage must be between 0 and 100")

        owner_vote = inputs.get("owner_vote")
        return AbsoluteVoteParameters(
            reputation=normalize_address(inputs.get("reputation"), field_name="reputation"),
            vote_percentage=vote_percentage,
            owner_vote=True if owner_vote is None else coerce_bool(owner_vote, field_name="owner_vote"),
        )

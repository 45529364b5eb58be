from __future__ import annotations

from collections.abc import Callable, Mapping
from typing import Any

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
from arc_governance.errors import InvalidFormatError, MissingParameterError
from arc_governance.ethereum.addresses import normalize_address, normalize_bytes32
from arc_governance.observability.logging import get_logger
from arc_governance.orchestration.parameter_resolution import (
    ParameterResolver,
    coerce_amount,
    coerce_bool,
)
from arc_governance.types import ProposalAction

ProposalInputs = Mapping[str, Any]


def _optional_bool(inputs: ProposalInputs, field_name: str) -> bool | None:
    raw_value = inputs.get(field_name)
    if raw_value is None:
        return None
    return coerce_bool(raw_value, field_name=field_name)


def _auto_register(inputs: ProposalInputs) -> bool:
    auto_register = _optional_bool(inputs, "auto_register")
    return True if auto_register is None else auto_register


def _address(inputs: ProposalInputs, field_name: str) -> str:
    return normalize_address(inputs.get(field_name), field_name=field_name)


def _hash(inputs: ProposalInputs, field_name: str) -> str:
    return normalize_bytes32(inputs.get(field_name), field_name=field_name)


def _optional_text(inputs: ProposalInputs, field_name: str) -> str | None:
    raw_value = inputs.get(field_name)
    if raw_value is None:
        return None
    if not isinstance(raw_value, str):
        raise InvalidFormatError(f"{field_name} must be a string")
    return raw_value.strip() or None


class ProposalBuilder:
    """Validates caller inputs and assembles immutable proposal requests.

    Building never touches the network; every error surfaces here, before
    anything is submitted.
    """

    def __init__(self, resolver: ParameterResolver) -> None:
        self._resolver = resolver
        self._handlers: dict[ProposalAction, Callable[[ProposalInputs], ProposalRequest]] = {
            ProposalAction.ADD_MODIFY_SCHEME: self._add_modify_scheme,
            ProposalAction.REMOVE_SCHEME: self._remove_scheme,
            ProposalAction.ADD_MODIFY_GLOBAL_CONSTRAINT: self._add_modify_global_constraint,
            ProposalAction.REMOVE_GLOBAL_CONSTRAINT: self._remove_global_constraint,
            ProposalAction.REPLACE_UPGRADING_SCHEME: self._replace_upgrading_scheme,
            ProposalAction.REPLACE_CONTROLLER: self._replace_controller,
            ProposalAction.SUBMIT_CONTRIBUTION: self._submit_contribution,
        }

    def build(self, action: ProposalAction | str, inputs: ProposalInputs) -> ProposalRequest:
        try:
            proposal_action = ProposalAction(action)
        except ValueError as exc:
            raise InvalidFormatError(f"unknown proposal action: {action}") from exc

        request = self._handlers[proposal_action](inputs)
        get_logger("proposal_builder").info(
            "proposal_built",
            action=proposal_action.value,
            avatar=request.avatar,
        )
        return request

    def _add_modify_scheme(self, inputs: ProposalInputs) -> AddModifySchemeProposal:
        avatar = _address(inputs, "avatar")
        scheme = _address(inputs, "scheme")
        parameters_hash = _hash(inputs, "scheme_parameters_hash")
        scheme_key = _optional_text(inputs, "scheme_key")

        resolved = self._resolver.resolve_fee_and_token(
            scheme_key,
            inputs.get("fee"),
            inputs.get("token_address"),
        )
        is_registering = self._resolver.resolve_is_registering(
            scheme_key,
            _optional_bool(inputs, "is_registering"),
        )
        return AddModifySchemeProposal(
            avatar=avatar,
            scheme=scheme,
            scheme_parameters_hash=parameters_hash,
            scheme_key=scheme_key,
            fee=resolved.fee,
            token_address=resolved.token,
            is_registering=is_registering,
            auto_register=_auto_register(inputs),
        )

    def _remove_scheme(self, inputs: ProposalInputs) -> RemoveSchemeProposal:
        return RemoveSchemeProposal(
            avatar=_address(inputs, "avatar"),
            scheme=_address(inputs, "scheme"),
        )

    def _add_modify_global_constraint(
        self,
        inputs: ProposalInputs,
    ) -> AddModifyGlobalConstraintProposal:
        return AddModifyGlobalConstraintProposal(
            avatar=_address(inputs, "avatar"),
            global_constraint=_address(inputs, "global_constraint"),
            global_constraint_parameters_hash=_hash(inputs, "global_constraint_parameters_hash"),
            voting_machine_hash=_hash(inputs, "voting_machine_hash"),
        )

    def _remove_global_constraint(self, inputs: ProposalInputs) -> RemoveGlobalConstraintProposal:
        return RemoveGlobalConstraintProposal(
            avatar=_address(inputs, "avatar"),
            global_constraint=_address(inputs, "global_constraint"),
        )

    def _replace_upgrading_scheme(self, inputs: ProposalInputs) -> ReplaceUpgradingSchemeProposal:
        avatar = _address(inputs, "avatar")
        scheme = _address(inputs, "scheme")
        parameters_hash = _hash(inputs, "scheme_parameters_hash")
        resolved = self._resolver.resolve_upgrading_scheme_fee(
            scheme,
            inputs.get("fee"),
            inputs.get("token_address"),
        )
        return ReplaceUpgradingSchemeProposal(
            avatar=avatar,
            scheme=scheme,
            scheme_parameters_hash=parameters_hash,
            fee=resolved.fee,
            token_address=resolved.token,
            auto_register=_auto_register(inputs),
        )

    def _replace_controller(self, inputs: ProposalInputs) -> ReplaceControllerProposal:
        return ReplaceControllerProposal(
            avatar=_address(inputs, "avatar"),
            controller=_address(inputs, "controller"),
        )

    def _submit_contribution(self, inputs: ProposalInputs) -> ContributionProposal:
        avatar = _address(inputs, "avatar")
        description = inputs.get("description")
        if description is None or (isinstance(description, str) and not description.strip()):
            raise MissingParameterError("description is required")
        if not isinstance(description, str):
            raise InvalidFormatError("description must be a string")
        beneficiary = _address(inputs, "beneficiary")

        external_token_reward = coerce_amount(
            inputs.get("external_token_reward"),
            field_name="external_token_reward",
        )
        return ContributionProposal(
            avatar=avatar,
            description=description,
            beneficiary=beneficiary,
            native_token_reward=coerce_amount(
                inputs.get("native_token_reward"), field_name="native_token_reward"
            ),
            reputation_reward=coerce_amount(
                inputs.get("reputation_reward"), field_name="reputation_reward"
            ),
            eth_reward=coerce_amount(inputs.get("eth_reward"), field_name="eth_reward"),
            external_token_reward=external_token_reward,
            external_token=self._resolver.resolve_reward_token(
                external_token_reward,
                inputs.get("external_token"),
            ),
        )


def build_proposal(
    resolver: ParameterResolver,
    action: ProposalAction | str,
    inputs: ProposalInputs,
) -> ProposalRequest:
    return ProposalBuilder(resolver).build(action, inputs)

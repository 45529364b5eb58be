from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, ClassVar, TypeAlias

from arc_governance.types import ProposalAction


class _ProposalMixin:
    action: ClassVar[ProposalAction]

    def as_dict(self) -> dict[str, Any]:
        return {"action": self.action.value, **asdict(self)}  # type: ignore[call-overload]


@dataclass(slots=True, frozen=True)
class AddModifySchemeProposal(_ProposalMixin):
    action: ClassVar[ProposalAction] = ProposalAction.ADD_MODIFY_SCHEME

    avatar: str
    scheme: str
    scheme_parameters_hash: str
    scheme_key: str | None
    fee: int
    token_address: str
    is_registering: bool
    auto_register: bool = True


@dataclass(slots=True, frozen=True)
class RemoveSchemeProposal(_ProposalMixin):
    action: ClassVar[ProposalAction] = ProposalAction.REMOVE_SCHEME

    avatar: str
    scheme: str


@dataclass(slots=True, frozen=True)
class AddModifyGlobalConstraintProposal(_ProposalMixin):
    action: ClassVar[ProposalAction] = ProposalAction.ADD_MODIFY_GLOBAL_CONSTRAINT

    avatar: str
    global_constraint: str
    global_constraint_parameters_hash: str
    voting_machine_hash: str


@dataclass(slots=True, frozen=True)
class RemoveGlobalConstraintProposal(_ProposalMixin):
    action: ClassVar[ProposalAction] = ProposalAction.REMOVE_GLOBAL_CONSTRAINT

    avatar: str
    global_constraint: str


@dataclass(slots=True, frozen=True)
class ReplaceUpgradingSchemeProposal(_ProposalMixin):
    action: ClassVar[ProposalAction] = ProposalAction.REPLACE_UPGRADING_SCHEME

    avatar: str
    scheme: str
    scheme_parameters_hash: str
    fee: int
    token_address: str
    auto_register: bool = True


@dataclass(slots=True, frozen=True)
class ReplaceControllerProposal(_ProposalMixin):
    action: ClassVar[ProposalAction] = ProposalAction.REPLACE_CONTROLLER

    avatar: str
    controller: str


@dataclass(slots=True, frozen=True)
class ContributionProposal(_ProposalMixin):
    action: ClassVar[ProposalAction] = ProposalAction.SUBMIT_CONTRIBUTION

    avatar: str
    description: str
    beneficiary: str
    native_token_reward: int = 0
    reputation_reward: int = 0
    eth_reward: int = 0
    external_token_reward: int = 0
    external_token: str | None = None

    def rewards(self) -> tuple[int, int, int, int]:
        return (
            self.native_token_reward,
            self.reputation_reward,
            self.eth_reward,
            self.external_token_reward,
        )


ProposalRequest: TypeAlias = (
    AddModifySchemeProposal
    | RemoveSchemeProposal
    | AddModifyGlobalConstraintProposal
    | RemoveGlobalConstraintProposal
    | ReplaceUpgradingSchemeProposal
    | ReplaceControllerProposal
    | ContributionProposal
)

"""Parameter sets a platform contract registers before it can be used.

Registering a set stores it on the contract under its parameters hash; that
hash is what scheme and global-constraint proposals refer to.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import TypeAlias


@dataclass(slots=True, frozen=True)
class VotingSchemeParameters:
    vote_parameters_hash: str
    voting_machine: str


@dataclass(slots=True, frozen=True)
class ContributionSchemeParameters:
    org_native_token_fee: int
    scheme_native_token_fee: int
    vote_parameters_hash: str
    voting_machine: str


@dataclass(slots=True, frozen=True)
class TokenCapParameters:
    token: str
    cap: int


@dataclass(slots=True, frozen=True)
class AbsoluteVoteParameters:
    reputation: str
    vote_percentage: int
    owner_vote: bool


ContractParameters: TypeAlias = (
    VotingSchemeParameters
    | ContributionSchemeParameters
    | TokenCapParameters
    | AbsoluteVoteParameters
)

PARAMETER_TYPES: dict[str, type[ContractParameters]] = {
    "SchemeRegistrar": VotingSchemeParameters,
    "UpgradeScheme": VotingSchemeParameters,
    "GlobalConstraintRegistrar": VotingSchemeParameters,
    "VestingScheme": VotingSchemeParameters,
    "ContributionReward": ContributionSchemeParameters,
    "TokenCapGC": TokenCapParameters,
    "AbsoluteVote": AbsoluteVoteParameters,
}

from __future__ import annotations

import json
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any

JsonDict = dict[str, Any]


class ProposalAction(StrEnum):
    ADD_MODIFY_SCHEME = "add_modify_scheme"
    REMOVE_SCHEME = "remove_scheme"
    ADD_MODIFY_GLOBAL_CONSTRAINT = "add_modify_global_constraint"
    REMOVE_GLOBAL_CONSTRAINT = "remove_global_constraint"
    REPLACE_UPGRADING_SCHEME = "replace_upgrading_scheme"
    REPLACE_CONTROLLER = "replace_controller"
    SUBMIT_CONTRIBUTION = "submit_contribution"


class ContractCategory(StrEnum):
    SCHEME = "scheme"
    VOTING_MACHINE = "voting_machine"
    GLOBAL_CONSTRAINT = "global_constraint"
    OTHER = "other"


@dataclass(slots=True, frozen=True)
class ProposalResult:
    action: ProposalAction
    proposal_id: str
    transaction_hash: str
    details: JsonDict = field(default_factory=dict)

    def to_dict(self) -> JsonDict:
        return {
            "action": self.action.value,
            "proposal_id": self.proposal_id,
            "transaction_hash": self.transaction_hash,
            "details": self.details,
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), sort_keys=True, separators=(",", ":"))

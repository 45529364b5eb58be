from __future__ import annotations

from typing import Any

from arc_governance.domain.receipts import TransactionReceipt
from arc_governance.errors import EventNotFoundError
from arc_governance.types import ProposalAction

PROPOSAL_ID_ARG = "_proposalId"

PROPOSAL_EVENTS: dict[ProposalAction, str] = {
    ProposalAction.ADD_MODIFY_SCHEME: "NewSchemeProposal",
    ProposalAction.REMOVE_SCHEME: "RemoveSchemeProposal",
    ProposalAction.ADD_MODIFY_GLOBAL_CONSTRAINT: "NewGlobalConstraintsProposal",
    ProposalAction.REMOVE_GLOBAL_CONSTRAINT: "RemoveGlobalConstraintsProposal",
    ProposalAction.REPLACE_UPGRADING_SCHEME: "ChangeUpgradeSchemeProposal",
    ProposalAction.REPLACE_CONTROLLER: "NewUpgradeProposal",
    ProposalAction.SUBMIT_CONTRIBUTION: "NewContributionProposal",
}


def get_value_from_logs(
    receipt: TransactionReceipt,
    event_name: str | None,
    arg_name: str,
    index: int = 0,
) -> Any:
    """Return ``arg_name`` from the ``index``-th log named ``event_name``.

    Logs are counted in receipt order after filtering, so unrelated events
    interleaved between matches do not shift the position. ``event_name=None``
    makes every log a candidate.
    """
    if index < 0:
        raise EventNotFoundError(f"log index must be non-negative, got {index}")

    matching = receipt.events_named(event_name)
    label = event_name or "<any>"
    if len(matching) <= index:
        raise EventNotFoundError(
            f"event {label} not found at position {index} "
            f"({len(matching)} matching logs in {receipt.transaction_hash})"
        )

    event = matching[index]
    if arg_name not in event.args:
        raise EventNotFoundError(f"event {label} at position {index} has no argument {arg_name}")
    return event.args[arg_name]


def proposal_id_from_receipt(receipt: TransactionReceipt, action: ProposalAction) -> str:
    value = get_value_from_logs(receipt, PROPOSAL_EVENTS[action], PROPOSAL_ID_ARG)
    if isinstance(value, (bytes, bytearray)):
        return "0x" + bytes(value).hex()
    return str(value)

"""Domain values for governance proposals, permissions and receipts."""

from arc_governance.domain.permissions import (
    PermissionSet,
    decode_permissions,
    default_permissions,
    encode_permissions,
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

__all__ = [
    "AddModifyGlobalConstraintProposal",
    "AddModifySchemeProposal",
    "ContributionProposal",
    "PermissionSet",
    "ProposalRequest",
    "RemoveGlobalConstraintProposal",
    "RemoveSchemeProposal",
    "ReplaceControllerProposal",
    "ReplaceUpgradingSchemeProposal",
    "TransactionEvent",
    "TransactionReceipt",
    "decode_permissions",
    "default_permissions",
    "encode_permissions",
]

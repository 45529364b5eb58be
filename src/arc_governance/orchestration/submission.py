from __future__ import annotations

from arc_governance.domain.proposals import ProposalRequest
from arc_governance.ethereum.addresses import normalize_bytes32
from arc_governance.ethereum.environment import ExecutionEnvironment
from arc_governance.ethereum.logs import proposal_id_from_receipt
from arc_governance.ethereum.registry import ContractRegistry
from arc_governance.observability.logging import get_logger
from arc_governance.orchestration.parameter_registration import ParameterInputs, ParametersBuilder
from arc_governance.orchestration.parameter_resolution import ParameterResolver
from arc_governance.orchestration.proposal_builder import ProposalBuilder, ProposalInputs
from arc_governance.types import ProposalAction, ProposalResult

SUBMITTING_SCHEMES: dict[ProposalAction, str] = {
    ProposalAction.ADD_MODIFY_SCHEME: "SchemeRegistrar",
    ProposalAction.REMOVE_SCHEME: "SchemeRegistrar",
    ProposalAction.ADD_MODIFY_GLOBAL_CONSTRAINT: "GlobalConstraintRegistrar",
    ProposalAction.REMOVE_GLOBAL_CONSTRAINT: "GlobalConstraintRegistrar",
    ProposalAction.REPLACE_UPGRADING_SCHEME: "UpgradeScheme",
    ProposalAction.REPLACE_CONTROLLER: "UpgradeScheme",
    ProposalAction.SUBMIT_CONTRIBUTION: "ContributionReward",
}


class ProposalSubmitter:
    """Builds proposals locally, submits them once and reads back the proposal id.

    Concurrent submissions are independent; nothing here orders, retries or
    times them out.
    """

    def __init__(self, env: ExecutionEnvironment, registry: ContractRegistry) -> None:
        self._env = env
        self._registry = registry
        self._builder = ProposalBuilder(ParameterResolver(registry))
        self._parameters = ParametersBuilder(registry)

    async def submit(self, request: ProposalRequest) -> ProposalResult:
        logger = get_logger("proposal_submitter")
        handle = self._registry.get(SUBMITTING_SCHEMES[request.action])

        try:
            receipt = await self._env.submit(handle, request)
        except Exception as exc:
            logger.error(
                "proposal_submission_failed",
                action=request.action.value,
                avatar=request.avatar,
                error_type=type(exc).__name__,
            )
            raise

        proposal_id = proposal_id_from_receipt(receipt, request.action)
        logger.info(
            "proposal_submitted",
            action=request.action.value,
            avatar=request.avatar,
            transaction_hash=receipt.transaction_hash,
            proposal_id=proposal_id,
        )
        return ProposalResult(
            action=request.action,
            proposal_id=proposal_id,
            transaction_hash=receipt.transaction_hash,
            details=request.as_dict(),
        )

    async def propose(self, action: ProposalAction | str, inputs: ProposalInputs) -> ProposalResult:
        return await self.submit(self._builder.build(action, inputs))

    async def register_parameters(self, contract_name: str, inputs: ParameterInputs) -> str:
        """Registers a parameter set on a platform contract and returns its hash."""
        parameters = self._parameters.build(contract_name, inputs)
        handle = self._registry.get(contract_name)
        parameters_hash = normalize_bytes32(
            await self._env.set_parameters(handle, parameters),
            field_name="parameters_hash",
        )
        get_logger("proposal_submitter").info(
            "parameters_registered",
            contract=contract_name,
            parameters_hash=parameters_hash,
        )
        return parameters_hash

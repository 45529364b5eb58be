import asyncio
from collections.abc import Mapping
from typing import Any

import pytest
from conftest import (
    AVATAR,
    BENEFICIARY,
    EXTERNAL_TOKEN,
    OTHER_SCHEME,
    PARAMS_HASH,
    VOTE_HASH,
    contract_address,
)
from eth_utils import keccak, to_checksum_address
from hexbytes import HexBytes
from web3 import Web3

from arc_governance.config import AppSettings
from arc_governance.domain.parameters import (
    AbsoluteVoteParameters,
    ContributionSchemeParameters,
    TokenCapParameters,
    VotingSchemeParameters,
)
from arc_governance.domain.proposals import (
    AddModifyGlobalConstraintProposal,
    AddModifySchemeProposal,
    ContributionProposal,
    RemoveGlobalConstraintProposal,
    ReplaceControllerProposal,
    ReplaceUpgradingSchemeProposal,
)
from arc_governance.errors import InvalidFormatError, NotFoundError
from arc_governance.ethereum.addresses import ZERO_ADDRESS
from arc_governance.ethereum.registry import ContractHandle
from arc_governance.ethereum.web3_environment import (
    Web3ExecutionEnvironment,
    contract_call_for,
    create_web3_environment,
    decode_receipt,
    parameters_args_for,
)

UPGRADE_EVENTS_ABI: list[dict[str, Any]] = [
    {
        "type": "event",
        "name": "NewUpgradeProposal",
        "anonymous": False,
        "inputs": [
            {"name": "_avatar", "type": "address", "indexed": True},
            {"name": "_proposalId", "type": "bytes32", "indexed": True},
            {"name": "_newController", "type": "address", "indexed": False},
        ],
    },
    {
        "type": "event",
        "name": "LogNote",
        "anonymous": False,
        "inputs": [{"name": "value", "type": "uint256", "indexed": False}],
    },
]

SCHEME_GETTERS_ABI: list[dict[str, Any]] = [
    {"type": "function", "name": name, "inputs": [], "outputs": [{"name": "", "type": kind}]}
    for name, kind in (("fee", "uint256"), ("nativeToken", "address"), ("hashedParameters", "bytes32"))
]

TX_HASH = HexBytes("0x" + "12" * 32)


def _word(value: bytes) -> bytes:
    return value.rjust(32, b"\x00")


def _raw_log(address: str, log_index: int, topics: list[bytes], data: bytes) -> dict[str, Any]:
    return {
        "address": address,
        "topics": [HexBytes(topic) for topic in topics],
        "data": HexBytes(data),
        "logIndex": log_index,
        "transactionIndex": 0,
        "transactionHash": TX_HASH,
        "blockHash": HexBytes("0x" + "00" * 32),
        "blockNumber": 7,
    }


class _PendingCall:
    def __init__(self, value: Any, transactions: list[dict[str, Any]]) -> None:
        self._value = value
        self._transactions = transactions

    async def call(self) -> Any:
        return self._value

    async def transact(self, transaction: dict[str, Any]) -> HexBytes:
        self._transactions.append(transaction)
        return TX_HASH


class _Functions:
    def __init__(self, values: Mapping[str, Any]) -> None:
        self.values = dict(values)
        self.invoked: list[tuple[str, tuple[Any, ...]]] = []
        self.transactions: list[dict[str, Any]] = []

    def __getattr__(self, name: str) -> Any:
        def build(*args: Any) -> _PendingCall:
            self.invoked.append((name, args))
            return _PendingCall(self.values.get(name), self.transactions)

        return build


class _Binding:
    events: tuple[Any, ...] = ()

    def __init__(self, **values: Any) -> None:
        self.functions = _Functions(values)


class _Eth:
    def __init__(self, binding: _Binding, accounts: list[str] | None = None) -> None:
        self.binding = binding
        self.created: list[tuple[str, list[dict[str, Any]]]] = []
        self.waited: list[tuple[HexBytes, float]] = []
        self._accounts = accounts or []

    def contract(self, address: str, abi: list[dict[str, Any]]) -> _Binding:
        self.created.append((address, abi))
        return self.binding

    @property
    def accounts(self) -> Any:
        async def fetch() -> list[str]:
            return self._accounts

        return fetch()

    async def wait_for_transaction_receipt(self, tx_hash: HexBytes, timeout: float) -> dict[str, Any]:
        self.waited.append((tx_hash, timeout))
        return {"transactionHash": tx_hash, "logs": [], "blockNumber": 9, "gasUsed": 21_000}


class _Web3:
    def __init__(self, eth: _Eth) -> None:
        self.eth = eth


def _environment(
    binding: _Binding,
    contracts: Mapping[str, tuple[str, list[dict[str, Any]]]] | None = None,
    accounts: list[str] | None = None,
    **settings: Any,
) -> tuple[Web3ExecutionEnvironment, _Eth]:
    eth = _Eth(binding, accounts)
    env = Web3ExecutionEnvironment(_Web3(eth), contracts or {}, AppSettings(**settings))  # type: ignore[arg-type]
    return env, eth


def test_add_modify_scheme_call() -> None:
    """Scheme proposals map onto proposeScheme with the hash as bytes."""
    request = AddModifySchemeProposal(
        avatar=AVATAR,
        scheme=OTHER_SCHEME,
        scheme_parameters_hash=PARAMS_HASH,
        scheme_key=None,
        fee=7,
        token_address=EXTERNAL_TOKEN,
        is_registering=True,
    )

    method, args = contract_call_for(request)

    assert method == "proposeScheme"
    assert args == (AVATAR, OTHER_SCHEME, HexBytes(PARAMS_HASH), True, EXTERNAL_TOKEN, 7, True)


def test_global_constraint_calls() -> None:
    """Global constraint proposals map onto the registrar's methods."""
    add = AddModifyGlobalConstraintProposal(
        avatar=AVATAR,
        global_constraint=OTHER_SCHEME,
        global_constraint_parameters_hash=PARAMS_HASH,
        voting_machine_hash=VOTE_HASH,
    )
    remove = RemoveGlobalConstraintProposal(avatar=AVATAR, global_constraint=OTHER_SCHEME)

    assert contract_call_for(add)[0] == "proposeGlobalConstraint"
    assert contract_call_for(add)[1][3] == HexBytes(VOTE_HASH)
    assert contract_call_for(remove) == ("proposeToRemoveGC", (AVATAR, OTHER_SCHEME))


def test_upgrade_scheme_calls() -> None:
    """Upgrade proposals map onto the UpgradeScheme's methods."""
    replace = ReplaceUpgradingSchemeProposal(
        avatar=AVATAR,
        scheme=OTHER_SCHEME,
        scheme_parameters_hash=PARAMS_HASH,
        fee=1,
        token_address=EXTERNAL_TOKEN,
    )
    controller = ReplaceControllerProposal(avatar=AVATAR, controller=OTHER_SCHEME)

    assert contract_call_for(replace)[0] == "proposeChangeUpgradingScheme"
    assert contract_call_for(controller) == ("proposeUpgrade", (AVATAR, OTHER_SCHEME))


def test_contribution_call_hashes_description_and_zeroes_missing_token() -> None:
    """Contributions send the description hash and a zero token address."""
    request = ContributionProposal(
        avatar=AVATAR,
        description="docs",
        beneficiary=BENEFICIARY,
        native_token_reward=3,
    )

    method, args = contract_call_for(request)

    assert method == "submitContribution"
    assert args[1] == HexBytes(keccak(text="docs"))
    assert args[2:] == (3, 0, 0, ZERO_ADDRESS, 0, BENEFICIARY)


class TestDecodeReceipt:
    def test_events_come_back_in_log_order(self) -> None:
        """Decoded events are ordered by log index, not by ABI order."""
        address = contract_address(3)
        binding = Web3().eth.contract(address=address, abi=UPGRADE_EVENTS_ABI)
        proposal_id = bytes.fromhex("aa" * 32)
        raw_receipt = {
            "transactionHash": TX_HASH,
            "blockNumber": 7,
            "gasUsed": 50_000,
            "logs": [
                _raw_log(
                    address,
                    5,
                    [
                        keccak(text="NewUpgradeProposal(address,bytes32,address)"),
                        _word(bytes.fromhex(AVATAR[2:])),
                        proposal_id,
                    ],
                    _word(bytes.fromhex(OTHER_SCHEME[2:])),
                ),
                _raw_log(address, 2, [keccak(text="LogNote(uint256)")], _word((9).to_bytes(1, "big"))),
                _raw_log(address, 3, [keccak(text="Transfer(address,address,uint256)")], b""),
            ],
        }

        receipt = decode_receipt(raw_receipt, binding)

        assert receipt.transaction_hash == TX_HASH.to_0x_hex()
        assert receipt.block_number == 7
        assert receipt.gas_used == 50_000
        assert [event.name for event in receipt.logs] == ["LogNote", "NewUpgradeProposal"]
        assert [event.log_index for event in receipt.logs] == [2, 5]
        assert receipt.logs[0].args["value"] == 9
        upgrade = receipt.logs[1]
        assert upgrade.args["_proposalId"] == proposal_id
        assert upgrade.args["_newController"] == to_checksum_address(OTHER_SCHEME)
        assert upgrade.address == address

    def test_receipt_without_known_events(self) -> None:
        """Logs the binding cannot decode are dropped."""
        receipt = decode_receipt({"transactionHash": TX_HASH, "logs": []}, _Binding())

        assert receipt.logs == ()
        assert receipt.block_number is None


class TestDeployedContract:
    def test_scheme_defaults_are_sampled_and_normalized(self) -> None:
        """Fee, token and parameters hash are read from the scheme contract."""
        raw_address = "0x" + "ab" * 20
        binding = _Binding(fee=15, nativeToken="0x" + "cd" * 20, hashedParameters=bytes.fromhex("ab" * 32))
        env, eth = _environment(binding, {"ContributionReward": (raw_address, SCHEME_GETTERS_ABI)})

        handle = asyncio.run(env.deployed_contract("ContributionReward"))

        assert handle.address == to_checksum_address(raw_address)
        assert eth.created == [(to_checksum_address(raw_address), SCHEME_GETTERS_ABI)]
        assert handle.binding is binding
        assert handle.scheme is not None
        assert handle.scheme.key == "ContributionReward"
        assert handle.scheme.default_fee == 15
        assert handle.scheme.default_token == to_checksum_address("0x" + "cd" * 20)
        assert handle.scheme.registered_parameters_hash == PARAMS_HASH

    def test_missing_getters_fall_back_to_zero_values(self) -> None:
        """A scheme ABI without fee getters yields zero fee and zero token."""
        binding = _Binding()
        env, _ = _environment(binding, {"UpgradeScheme": (contract_address(2), [])})

        handle = asyncio.run(env.deployed_contract("UpgradeScheme"))

        assert handle.scheme is not None
        assert handle.scheme.default_fee == 0
        assert handle.scheme.default_token == ZERO_ADDRESS
        assert handle.scheme.registered_parameters_hash is None
        assert binding.functions.invoked == []

    def test_non_scheme_contract_has_no_descriptor(self) -> None:
        """Voting machines and constraints are not sampled."""
        binding = _Binding(fee=1)
        env, _ = _environment(binding, {"AbsoluteVote": (contract_address(6), SCHEME_GETTERS_ABI)})

        handle = asyncio.run(env.deployed_contract("AbsoluteVote"))

        assert handle.scheme is None
        assert binding.functions.invoked == []

    def test_malformed_configured_address(self) -> None:
        """A configured address that is not 20 bytes is rejected."""
        env, _ = _environment(_Binding(), {"AbsoluteVote": ("0x1234", [])})

        with pytest.raises(InvalidFormatError):
            asyncio.run(env.deployed_contract("AbsoluteVote"))


class TestSubmit:
    def _handle(self, binding: _Binding) -> ContractHandle:
        return ContractHandle(name="UpgradeScheme", address=contract_address(2), binding=binding)

    def test_transacts_from_configured_account(self) -> None:
        """The configured account, gas limit and timeout are used."""
        binding = _Binding()
        env, eth = _environment(binding, default_account=AVATAR, gas_limit=1_234, receipt_timeout_seconds=5)
        request = ReplaceControllerProposal(avatar=AVATAR, controller=OTHER_SCHEME)

        receipt = asyncio.run(env.submit(self._handle(binding), request))

        assert binding.functions.invoked == [("proposeUpgrade", (AVATAR, OTHER_SCHEME))]
        assert binding.functions.transactions == [{"from": AVATAR, "gas": 1_234}]
        assert eth.waited == [(TX_HASH, 5.0)]
        assert receipt.transaction_hash == TX_HASH.to_0x_hex()
        assert receipt.block_number == 9
        assert receipt.logs == ()

    def test_falls_back_to_first_node_account(self) -> None:
        """Without a configured account the node's first account sends."""
        binding = _Binding()
        env, _ = _environment(binding, accounts=[BENEFICIARY, OTHER_SCHEME])
        request = ReplaceControllerProposal(avatar=AVATAR, controller=OTHER_SCHEME)

        asyncio.run(env.submit(self._handle(binding), request))

        assert binding.functions.transactions[0]["from"] == BENEFICIARY

    def test_no_account_available(self) -> None:
        """A node without accounts cannot send anything."""
        binding = _Binding()
        env, _ = _environment(binding)
        request = ReplaceControllerProposal(avatar=AVATAR, controller=OTHER_SCHEME)

        with pytest.raises(NotFoundError, match="accounts"):
            asyncio.run(env.submit(self._handle(binding), request))

        assert binding.functions.transactions == []


class TestSetParameters:
    def test_registers_and_returns_contract_hash(self) -> None:
        """getParametersHash and setParameters receive identical arguments."""
        binding = _Binding(getParametersHash=bytes.fromhex("cd" * 32))
        env, eth = _environment(binding, default_account=AVATAR)
        handle = ContractHandle(name="SchemeRegistrar", address=contract_address(1), binding=binding)
        machine = contract_address(6)

        parameters_hash = asyncio.run(
            env.set_parameters(handle, VotingSchemeParameters(vote_parameters_hash=VOTE_HASH, voting_machine=machine))
        )

        expected_args = (HexBytes(VOTE_HASH), HexBytes(VOTE_HASH), machine)
        assert parameters_hash == VOTE_HASH
        assert binding.functions.invoked == [
            ("getParametersHash", expected_args),
            ("setParameters", expected_args),
        ]
        assert len(eth.waited) == 1


class TestParametersArgs:
    def test_voting_scheme_takes_hash_and_machine(self) -> None:
        """Single-vote schemes take one vote hash and the machine."""
        parameters = VotingSchemeParameters(vote_parameters_hash=VOTE_HASH, voting_machine=OTHER_SCHEME)

        assert parameters_args_for("UpgradeScheme", parameters) == (HexBytes(VOTE_HASH), OTHER_SCHEME)

    def test_contribution_reward_order(self) -> None:
        """ContributionReward takes both fees ahead of the vote settings."""
        parameters = ContributionSchemeParameters(
            org_native_token_fee=1,
            scheme_native_token_fee=2,
            vote_parameters_hash=VOTE_HASH,
            voting_machine=OTHER_SCHEME,
        )

        assert parameters_args_for("ContributionReward", parameters) == (
            1,
            2,
            HexBytes(VOTE_HASH),
            OTHER_SCHEME,
        )

    def test_token_cap_and_absolute_vote(self) -> None:
        """Constraint and voting machine parameters pass through in order."""
        cap = TokenCapParameters(token=EXTERNAL_TOKEN, cap=1_000)
        vote = AbsoluteVoteParameters(reputation=OTHER_SCHEME, vote_percentage=60, owner_vote=False)

        assert parameters_args_for("TokenCapGC", cap) == (EXTERNAL_TOKEN, 1_000)
        assert parameters_args_for("AbsoluteVote", vote) == (OTHER_SCHEME, 60, False)

    def test_mismatched_parameters_type(self) -> None:
        """A parameter set meant for another contract is rejected."""
        with pytest.raises(InvalidFormatError, match="TokenCapParameters"):
            parameters_args_for("UpgradeScheme", TokenCapParameters(token=EXTERNAL_TOKEN, cap=1))

    def test_contract_without_parameters(self) -> None:
        """Contracts that register nothing are not found."""
        with pytest.raises(NotFoundError):
            parameters_args_for("Avatar", TokenCapParameters(token=EXTERNAL_TOKEN, cap=1))


def test_environment_is_built_from_settings() -> None:
    """The factory wires an AsyncWeb3 client from settings."""
    env = create_web3_environment(AppSettings(eth_rpc_url="http://localhost:9999"), {})

    assert isinstance(env, Web3ExecutionEnvironment)


def test_unconfigured_contract() -> None:
    """A contract with no configured address and ABI is not found."""
    env = create_web3_environment(AppSettings(), {})

    with pytest.raises(NotFoundError):
        asyncio.run(env.deployed_contract("SchemeRegistrar"))

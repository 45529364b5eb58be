from __future__ import annotations

from web3 import AsyncHTTPProvider, AsyncWeb3

from arc_governance.config import AppSettings


class Web3ClientFactory:
    """Thin factory for AsyncWeb3 so the transport is chosen in one place."""

    def __init__(self, settings: AppSettings) -> None:
        self._settings = settings

    def create(self) -> AsyncWeb3:
        return AsyncWeb3(AsyncHTTPProvider(self._settings.eth_rpc_url))

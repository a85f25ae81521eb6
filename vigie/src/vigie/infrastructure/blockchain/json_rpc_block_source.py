"""
HTTP JSON-RPC block source with retry.

Polling-only: HTTP transports cannot push new headers, so
supports_subscriptions() is False and the tracker picks the polling
watcher.
"""

import itertools
from typing import Any, Dict, Optional, Union

import httpx

from shared.reporter import SystemReporter
from shared.reporter.emojis import Emoji
from shared.resilience import Retry, RetryError

from vigie.config.settings import VigieConfig, get_settings
from vigie.domain.entities import BlockHeader, TransactionReceipt
from vigie.domain.exceptions import RPCException, SubscriptionError
from vigie.domain.interfaces import NEW_HEADS, IBlockSource, ISubscription
from vigie.utils.hex import int_to_hex


class JsonRpcBlockSource(IBlockSource):
    """
    Ethereum JSON-RPC client over HTTP.

    Resilience features:
    - Automatic retry with exponential backoff on transport/node errors
    - Timeout protection for every call

    Examples:
        async with JsonRpcBlockSource("http://127.0.0.1:8545") as source:
            block = await source.get_block_by_number(100)
    """

    def __init__(
        self,
        rpc_url: Optional[str] = None,
        settings: Optional[VigieConfig] = None,
        reporter: Optional[SystemReporter] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        """
        Initialize JSON-RPC block source.

        Args:
            rpc_url: Optional RPC URL. If None, uses settings.
            settings: Optional config. If None, uses global settings.
            reporter: Optional reporter for diagnostics
            client: Optional preconfigured httpx client (not closed by us)
        """
        self._settings = settings or get_settings()
        self.rpc_url = rpc_url or self._settings.rpc_url
        self.rpc_timeout = self._settings.resilience.rpc_timeout
        self.reporter = reporter

        self.retry = Retry(
            name="rpc_query",
            config=self._settings.resilience.rpc_query.to_retry_config(
                retry_on=(RPCException,)
            ),
            on_retry=self._report_retry,
        )

        self._client = client
        self._owns_client = client is None
        self._request_ids = itertools.count(1)

    @property
    def client(self) -> httpx.AsyncClient:
        """
        Get or create async HTTP client.

        Returns:
            Async HTTP client instance
        """
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                timeout=self.rpc_timeout,
                limits=httpx.Limits(max_connections=10, max_keepalive_connections=5),
            )
            self._owns_client = True
        return self._client

    def supports_subscriptions(self) -> bool:
        """HTTP transport has no push channel."""
        return False

    async def subscribe(self, event: str = NEW_HEADS) -> ISubscription:
        """
        Not supported over HTTP.

        Raises:
            SubscriptionError: Always
        """
        raise SubscriptionError(
            "HTTP block source does not support subscriptions",
            details={"event": event, "rpc_url": self.rpc_url},
        )

    async def call_rpc(self, method: str, params: Optional[list] = None) -> Any:
        """
        Call JSON-RPC method with retry.

        Args:
            method: RPC method name
            params: Optional method parameters

        Returns:
            The ``result`` member of the response

        Raises:
            RPCException: On RPC error after all attempts
        """
        try:
            return await self.retry.execute_async(self._call_rpc_inner, method, params)
        except RetryError as e:
            last = e.last_exception
            details = last.details if isinstance(last, RPCException) else {}
            raise RPCException(
                f"RPC call {method} failed after {e.attempts} attempts: {last}",
                details={**details, "method": method, "attempts": e.attempts},
            ) from last

    def _report_retry(self, attempt: int, error: BaseException, delay: float) -> None:
        """Report a failed attempt that will be retried."""
        if self.reporter:
            self.reporter.warning(
                f"{Emoji.NETWORK.TIMEOUT} RPC attempt {attempt} failed, retrying in "
                f"{delay:.2f}s: {error}",
                context="JsonRpcBlockSource",
                verbose_level=2,
            )

    async def _call_rpc_inner(self, method: str, params: Optional[list] = None) -> Any:
        """Inner RPC call implementation."""
        if not self.rpc_url:
            raise RPCException("RPC URL not configured", details={"method": method})

        payload = {
            "jsonrpc": "2.0",
            "id": next(self._request_ids),
            "method": method,
            "params": params or [],
        }

        if self.reporter:
            self.reporter.debug(
                f"{Emoji.NETWORK.REQUEST} {method} {payload['params']}",
                context="JsonRpcBlockSource",
            )

        try:
            response = await self.client.post(self.rpc_url, json=payload)
            response.raise_for_status()
            data = response.json()
        except httpx.TimeoutException:
            raise RPCException(
                f"RPC timeout: {method}",
                details={"method": method, "timeout": self.rpc_timeout},
            )
        except httpx.HTTPError as e:
            raise RPCException(
                f"RPC connection error: {str(e)}",
                details={"method": method},
            )
        except ValueError as e:
            raise RPCException(
                f"RPC returned invalid JSON: {str(e)}",
                details={"method": method},
            )

        if "error" in data:
            raise RPCException(
                f"RPC error: {data['error']}",
                details={"method": method, "error": data["error"]},
            )

        return data.get("result")

    async def get_block_by_number(
        self,
        block_number: Union[int, str],
        include_transactions: bool = False,
    ) -> Optional[BlockHeader]:
        """
        Get block by height or tag.

        Args:
            block_number: Block height or tag
            include_transactions: Request full transaction objects

        Returns:
            BlockHeader, or None if not produced yet
        """
        result = await self.call_rpc(
            "eth_getBlockByNumber",
            [int_to_hex(block_number), include_transactions],
        )
        if not result:
            return None
        return BlockHeader.from_rpc(result)

    async def get_transaction_receipt(
        self, transaction_hash: str
    ) -> Optional[TransactionReceipt]:
        """
        Get receipt of a mined transaction.

        Args:
            transaction_hash: 0x-prefixed transaction hash

        Returns:
            TransactionReceipt, or None if the transaction is not mined yet
        """
        result = await self.call_rpc("eth_getTransactionReceipt", [transaction_hash])
        if not result:
            return None
        return TransactionReceipt.from_rpc(result)

    async def close(self) -> None:
        """Close the HTTP client if we created it."""
        client = self._client
        if self._owns_client and client is not None and not client.is_closed:
            await client.aclose()

    async def __aenter__(self):
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        await self.close()

"""
WebSocket JSON-RPC block source with ``newHeads`` subscriptions.

A single reader task owns the socket: it resolves request futures by id
and routes ``eth_subscription`` notifications to their subscription.
When the socket breaks, or the reader itself fails, every pending request
fails and every live subscription receives an "error" event. Frames that
cannot be routed are reported and dropped.
"""

import asyncio
import itertools
import json
from typing import Any, Callable, Dict, List, Optional, Union

import websockets
from websockets.exceptions import WebSocketException

from shared.reporter import SystemReporter
from shared.reporter.emojis import Emoji

from vigie.config.settings import VigieConfig, get_settings
from vigie.domain.entities import BlockHeader
from vigie.domain.exceptions import RPCException, SubscriptionError
from vigie.domain.interfaces import NEW_HEADS, IBlockSource
from vigie.infrastructure.blockchain.subscription import (
    DATA,
    ERROR,
    QueuedSubscription,
)
from vigie.utils.hex import int_to_hex


class WebSocketSubscription(QueuedSubscription):
    """Subscription bound to a WebSocketBlockSource."""

    def __init__(
        self,
        source: "WebSocketBlockSource",
        subscription_id: str,
        event: str,
        reporter: Optional[SystemReporter] = None,
    ):
        super().__init__(subscription_id, event, reporter)
        self._source = source

    async def _release(self) -> bool:
        """Send eth_unsubscribe for this subscription."""
        return await self._source.release_subscription(self)


class WebSocketBlockSource(IBlockSource):
    """
    Ethereum JSON-RPC client over WebSocket.

    Examples:
        source = WebSocketBlockSource("ws://127.0.0.1:8546")
        subscription = await source.subscribe("newHeads")
        subscription.on("data", print)
        ...
        await source.close()
    """

    def __init__(
        self,
        ws_url: Optional[str] = None,
        settings: Optional[VigieConfig] = None,
        reporter: Optional[SystemReporter] = None,
        connect: Optional[Callable[..., Any]] = None,
    ):
        """
        Initialize WebSocket block source.

        Args:
            ws_url: Optional WebSocket URL. If None, uses settings.
            settings: Optional config. If None, uses global settings.
            reporter: Optional reporter for diagnostics
            connect: Connection factory (defaults to websockets.connect)
        """
        self._settings = settings or get_settings()
        self.ws_url = ws_url or self._settings.ws_url
        self.rpc_timeout = self._settings.resilience.rpc_timeout
        self.subscribe_timeout = self._settings.resilience.subscribe_timeout
        self.reporter = reporter

        self._connect = connect or websockets.connect
        self._ws: Any = None
        self._reader_task: Optional[asyncio.Task] = None
        self._connect_lock = asyncio.Lock()
        self._request_ids = itertools.count(1)
        self._pending: Dict[int, asyncio.Future] = {}
        self._subscriptions: Dict[str, WebSocketSubscription] = {}
        # Notifications that arrive before subscribe() registered their id
        self._early_notifications: Dict[str, List[Any]] = {}
        self._subscribes_in_flight = 0

    @property
    def connected(self) -> bool:
        """True while the socket is open."""
        return self._ws is not None

    def supports_subscriptions(self) -> bool:
        """WebSocket transport can push new headers."""
        return True

    async def connect(self) -> None:
        """
        Open the socket and start the reader task (idempotent).

        Raises:
            RPCException: If the connection cannot be established
        """
        async with self._connect_lock:
            if self._ws is not None:
                return
            if not self.ws_url:
                raise RPCException("WebSocket URL not configured")

            try:
                self._ws = await self._connect(
                    self.ws_url,
                    ping_interval=20,
                    ping_timeout=30,
                    close_timeout=10,
                )
            except (OSError, WebSocketException, asyncio.TimeoutError) as e:
                raise RPCException(
                    f"WebSocket connection error: {str(e)}",
                    details={"ws_url": self.ws_url},
                ) from e

            self._reader_task = asyncio.get_running_loop().create_task(
                self._read_loop(self._ws)
            )

            if self.reporter:
                self.reporter.info(
                    f"{Emoji.NETWORK.CONNECT} Connected to {self.ws_url}",
                    context="WebSocketBlockSource",
                    verbose_level=2,
                )

    async def call_rpc(
        self,
        method: str,
        params: Optional[list] = None,
        timeout: Optional[float] = None,
    ) -> Any:
        """
        Send JSON-RPC request and wait for its response.

        Args:
            method: RPC method name
            params: Optional method parameters
            timeout: Response timeout (defaults to rpc_timeout)

        Returns:
            The ``result`` member of the response

        Raises:
            RPCException: On transport error, timeout or node error
        """
        await self.connect()

        request_id = next(self._request_ids)
        future = asyncio.get_running_loop().create_future()
        self._pending[request_id] = future

        payload = {
            "jsonrpc": "2.0",
            "id": request_id,
            "method": method,
            "params": params or [],
        }

        try:
            await self._ws.send(json.dumps(payload))
            response = await asyncio.wait_for(future, timeout or self.rpc_timeout)
        except asyncio.TimeoutError:
            raise RPCException(
                f"RPC timeout: {method}",
                details={"method": method, "timeout": timeout or self.rpc_timeout},
            )
        except (OSError, WebSocketException) as e:
            raise RPCException(
                f"WebSocket error: {str(e)}",
                details={"method": method},
            ) from e
        finally:
            self._pending.pop(request_id, None)

        if "error" in response:
            raise RPCException(
                f"RPC error: {response['error']}",
                details={"method": method, "error": response["error"]},
            )

        return response.get("result")

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

    async def subscribe(self, event: str = NEW_HEADS) -> WebSocketSubscription:
        """
        Subscribe to a push stream.

        Args:
            event: Stream name

        Returns:
            Active subscription

        Raises:
            SubscriptionError: If connecting or eth_subscribe fails
        """
        self._subscribes_in_flight += 1
        try:
            subscription_id = await self.call_rpc(
                "eth_subscribe", [event], timeout=self.subscribe_timeout
            )
            early = self._early_notifications.pop(subscription_id, [])
        except RPCException as e:
            raise SubscriptionError(
                f"Failed to subscribe to {event}: {e.message}",
                details={**e.details, "event": event, "ws_url": self.ws_url},
            ) from e
        finally:
            self._subscribes_in_flight -= 1
            # No subscribe left to claim them
            if not self._subscribes_in_flight:
                self._early_notifications.clear()

        if not subscription_id:
            raise SubscriptionError(
                f"Node returned no subscription id for {event}",
                details={"event": event, "ws_url": self.ws_url},
            )

        subscription = WebSocketSubscription(
            self, subscription_id, event, reporter=self.reporter
        )
        self._subscriptions[subscription_id] = subscription

        for result in early:
            self._deliver_notification(subscription, result)

        if self.reporter:
            self.reporter.info(
                f"{Emoji.NETWORK.SUBSCRIBE} Subscribed to {event} "
                f"(id={subscription_id})",
                context="WebSocketBlockSource",
                verbose_level=2,
            )

        return subscription

    async def release_subscription(self, subscription: WebSocketSubscription) -> bool:
        """
        Unregister subscription and send eth_unsubscribe.

        Returns:
            True if the node acknowledged; False if the socket is gone or
            the request failed
        """
        self._subscriptions.pop(subscription.id, None)

        if self._ws is None:
            return False

        try:
            result = await self.call_rpc("eth_unsubscribe", [subscription.id])
        except RPCException as e:
            if self.reporter:
                self.reporter.warning(
                    f"{Emoji.WARNING} eth_unsubscribe {subscription.id} failed: "
                    f"{e.message}",
                    context="WebSocketBlockSource",
                )
            return False

        if self.reporter:
            self.reporter.info(
                f"{Emoji.NETWORK.UNSUBSCRIBE} Unsubscribed {subscription.id}",
                context="WebSocketBlockSource",
                verbose_level=2,
            )
        return bool(result)

    async def close(self) -> None:
        """Close the socket and stop the reader task."""
        ws, self._ws = self._ws, None
        if ws is not None:
            await ws.close()
        if self._reader_task is not None:
            self._reader_task.cancel()
            try:
                await self._reader_task
            except asyncio.CancelledError:
                pass
            self._reader_task = None
        self._fail_all(ConnectionError("WebSocket block source closed"), notify=False)

    async def __aenter__(self):
        """Async context manager entry."""
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        await self.close()

    async def _read_loop(self, ws: Any) -> None:
        """Route every incoming frame until the socket closes."""
        try:
            async for message in ws:
                self._dispatch(message)
        except asyncio.CancelledError:
            raise
        except (OSError, WebSocketException) as e:
            error: Exception = e
        except Exception as e:
            if self.reporter:
                self.reporter.error(
                    f"{Emoji.FAILURE} Reader task failed: {type(e).__name__}: {e}",
                    context="WebSocketBlockSource",
                    exc_info=True,
                )
            error = e
        else:
            error = ConnectionError("WebSocket closed by peer")

        if self._ws is ws:
            self._ws = None
            if self.reporter:
                self.reporter.warning(
                    f"{Emoji.NETWORK.DISCONNECT} Connection lost: {error}",
                    context="WebSocketBlockSource",
                )
            self._fail_all(error)

    def _dispatch(self, message: Union[str, bytes]) -> None:
        """Resolve a response or deliver a subscription notification."""
        try:
            data = json.loads(message)
        except ValueError:
            self._drop_frame("non-JSON frame", message)
            return

        if not isinstance(data, dict):
            return

        request_id = data.get("id")
        if request_id is not None:
            future = self._pending.get(request_id)
            if future is not None and not future.done():
                future.set_result(data)
            return

        if data.get("method") != "eth_subscription":
            return

        params = data.get("params")
        if not isinstance(params, dict):
            self._drop_frame("eth_subscription without params", message)
            return
        subscription_id = params.get("subscription")
        if not isinstance(subscription_id, str):
            self._drop_frame("eth_subscription without id", message)
            return
        result = params.get("result")
        subscription = self._subscriptions.get(subscription_id)

        if subscription is None:
            if not self._subscribes_in_flight:
                return
            self._early_notifications.setdefault(subscription_id, []).append(result)
            return

        self._deliver_notification(subscription, result)

    def _deliver_notification(
        self, subscription: WebSocketSubscription, result: Any
    ) -> None:
        """Queue a notification, converting newHeads payloads to BlockHeader."""
        if subscription.event == NEW_HEADS and isinstance(result, dict):
            try:
                result = BlockHeader.from_rpc(result)
            except (TypeError, ValueError) as e:
                self._drop_frame(f"malformed {NEW_HEADS} header ({e})", result)
                return
        subscription.deliver(DATA, result)

    def _drop_frame(self, reason: str, frame: Any) -> None:
        """Report a frame that cannot be routed."""
        if self.reporter:
            self.reporter.warning(
                f"{Emoji.WARNING} Dropping {reason}: {str(frame)[:200]}",
                context="WebSocketBlockSource",
            )

    def _fail_all(self, error: Exception, notify: bool = True) -> None:
        """Fail pending requests and break live subscriptions."""
        for future in self._pending.values():
            if not future.done():
                future.set_exception(
                    RPCException(f"Connection lost: {error}", details={})
                )
        self._pending.clear()
        self._early_notifications.clear()

        subscriptions = list(self._subscriptions.values())
        self._subscriptions.clear()
        if notify:
            for subscription in subscriptions:
                subscription.deliver(ERROR, error)

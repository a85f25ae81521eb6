"""
Watch command implementation.

Fetches the receipt over HTTP, then watches over WebSocket when a ws_url
is configured and by HTTP polling otherwise.
"""

from typing import Callable, Optional

from shared.reporter import SystemReporter
from shared.reporter.emojis import Emoji

from vigie.application.context import WatchContext
from vigie.application.use_cases import watch_transaction_for_confirmations
from vigie.application.watchers import CONFIRMATION_EVENT, WatchStatus
from vigie.config.settings import VigieConfig
from vigie.domain.entities import ConfirmationEvent
from vigie.domain.exceptions import VigieException
from vigie.domain.interfaces import IBlockSource
from vigie.infrastructure.blockchain import JsonRpcBlockSource, WebSocketBlockSource
from vigie.infrastructure.events import EventEmitter


def create_reporter(settings: VigieConfig) -> SystemReporter:
    """Build the reporter described by the logging settings."""
    return SystemReporter(
        name="vigie",
        log_dir=settings.log_dir,
        level=settings.log_level,
        verbose=settings.verbose,
    )


def format_confirmation(event: ConfirmationEvent, threshold: int) -> str:
    """One output line per confirmation."""
    data = event.to_dict()
    return (
        f"{Emoji.WATCH.CONFIRMATION} {data['confirmation_number']}/{threshold} "
        f"latest block {data['latest_block_hash']}"
    )


async def watch_transaction(
    settings: VigieConfig,
    transaction_hash: str,
    echo: Callable[[str], None] = print,
    reporter: Optional[SystemReporter] = None,
) -> WatchStatus:
    """
    Watch a mined transaction until it reaches the configured threshold.

    Args:
        settings: Effective configuration
        transaction_hash: Hash of the mined transaction
        echo: Output callback for confirmation lines
        reporter: Optional reporter (built from settings if None)

    Returns:
        Final watch status

    Raises:
        VigieException: If the transaction is not mined or watching fails
    """
    owns_reporter = reporter is None
    reporter = reporter or create_reporter(settings)

    rpc = JsonRpcBlockSource(settings=settings, reporter=reporter)
    ws: Optional[WebSocketBlockSource] = None

    try:
        receipt = await rpc.get_transaction_receipt(transaction_hash)
        if receipt is None:
            raise VigieException(
                "Transaction not mined yet",
                details={"transaction_hash": transaction_hash},
            )

        block_source: IBlockSource = rpc
        if settings.ws_url:
            ws = WebSocketBlockSource(settings=settings, reporter=reporter)
            block_source = ws

        emitter = EventEmitter(reporter=reporter)
        emitter.on(
            CONFIRMATION_EVENT,
            lambda event: echo(
                format_confirmation(event, settings.transaction_confirmation_blocks)
            ),
        )

        context = WatchContext(
            block_source=block_source, config=settings, reporter=reporter
        )
        watch = watch_transaction_for_confirmations(
            context, emitter, receipt, transaction_hash
        )
        try:
            return await watch.wait()
        finally:
            await watch.stop()
    finally:
        if ws is not None:
            await ws.close()
        await rpc.close()
        if owns_reporter:
            reporter.close()

"""Confirmation poller: waits for a submitted transaction to finalize.

Polls getSignatureStatuses for one signature until the node reports
``finalized`` or the timeout elapses. ``processed`` and ``confirmed`` are
not enough: only finalized transactions are safe from rollback.

Status query failures are transient: they are logged and the next poll
still happens. The sleep between polls is never skipped.

Timing is isolated behind PollStrategy so tests can run with zero delay:

    outcome = await await_confirmation(txid, rpc, timeout_ms=5000,
                                       strategy=FixedInterval(0))
"""

from __future__ import annotations

import asyncio
import logging
import time
from enum import Enum
from typing import Awaitable, Callable, Protocol

from jupswap.clients.rpc import SignatureStatus, SolanaRpcClient

log = logging.getLogger("confirmation")

FINALIZED = "finalized"
DEFAULT_TIMEOUT_MS = 180_000
POLL_INTERVAL_SECONDS = 2.0


class ConfirmationOutcome(str, Enum):
    CONFIRMED = "CONFIRMED"
    TIMED_OUT = "TIMED_OUT"


class PollStrategy(Protocol):
    def next_delay(self, attempt: int) -> float:
        """Seconds to sleep after poll number ``attempt`` (0-based)."""
        ...


class FixedInterval:
    """Flat interval, no backoff, no jitter."""

    def __init__(self, seconds: float = POLL_INTERVAL_SECONDS):
        self.seconds = seconds

    def next_delay(self, attempt: int) -> float:
        return self.seconds


async def await_confirmation(
    txid: str,
    rpc: SolanaRpcClient,
    timeout_ms: int = DEFAULT_TIMEOUT_MS,
    strategy: PollStrategy | None = None,
    clock: Callable[[], float] = time.monotonic,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    on_status: Callable[[SignatureStatus], None] | None = None,
) -> ConfirmationOutcome:
    """Poll until ``txid`` is finalized or ``timeout_ms`` has elapsed.

    Returns CONFIRMED as soon as a poll sees ``finalized``, TIMED_OUT once
    the elapsed time reaches the timeout. Never raises for status query
    errors. ``on_status`` sees every status the node reports, so a caller
    can read ``err`` off the finalized one.
    """
    strategy = strategy or FixedInterval()
    start = clock()
    attempt = 0

    while (clock() - start) * 1000 < timeout_ms:
        try:
            statuses = await rpc.get_signature_statuses([txid])
            status = statuses[0] if statuses else None
            if status is not None:
                log.debug(
                    "Transaction %s status=%s err=%s",
                    txid, status.confirmation_status, status.err,
                )
                if on_status is not None:
                    on_status(status)
                if status.confirmation_status == FINALIZED:
                    log.info("Transaction %s confirmed", txid)
                    return ConfirmationOutcome.CONFIRMED
        except Exception as e:
            log.warning("Error checking transaction status: %s", e)

        await sleep(strategy.next_delay(attempt))
        attempt += 1

    log.info("Transaction confirmation for %s timed out.", txid)
    return ConfirmationOutcome.TIMED_OUT

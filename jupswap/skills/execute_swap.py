"""Swap executor: CLI entry point.

Executes one Jupiter swap: quote -> unsigned tx -> local signing ->
RPC submission -> poll until finalized.

Usage:
    python3 -m jupswap.skills.execute_swap <INPUT_MINT> <OUTPUT_MINT> <AMOUNT> <SLIPPAGE_BPS>
    python3 -m jupswap.skills.execute_swap                       # SOL -> USDC, 100 lamports, 50 bps
    python3 -m jupswap.skills.execute_swap ... --dry-run          # quote only

Exit codes:
    0 = SUCCESS or DRY_RUN
    1 = anything else (including a missing PRIVATE_KEY)
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import os
import sys
from typing import Any

from dotenv import load_dotenv

from jupswap.clients.jupiter import (
    SOL_MINT,
    USDC_MINT,
    JupiterClient,
    QuoteFetchError,
    SwapBuildError,
)
from jupswap.clients.rpc import SignatureStatus, SolanaRpcClient, SubmissionError
from jupswap.config import PRIVATE_KEY_ENV, SwapSettings, load_settings
from jupswap.confirmation import (
    ConfirmationOutcome,
    FixedInterval,
    PollStrategy,
    await_confirmation,
)
from jupswap.signer.keychain import (
    DecodeError,
    MissingSecretError,
    load_keypair,
    public_key,
)
from jupswap.signer.signer import sign_and_submit

log = logging.getLogger("execute_swap")


async def execute_swap(
    input_mint: str,
    output_mint: str,
    amount: int,
    slippage_bps: int,
    *,
    private_key: str | None,
    settings: SwapSettings | None = None,
    dry_run: bool = False,
    jupiter: JupiterClient | None = None,
    rpc: SolanaRpcClient | None = None,
    strategy: PollStrategy | None = None,
) -> dict[str, Any]:
    """Execute one swap via Jupiter + Solana RPC.

    Flow:
    1. Load keypair from the base58 secret
    2. Get Jupiter quote
    3. Get swap transaction (unsigned)
    4. Sign locally, submit raw bytes (skipPreflight, node maxRetries=2)
    5. Poll for finalization (a finalized tx with ``err`` set is FAILED)

    Raises:
        MissingSecretError: no secret at all. Every other failure is
            reported in the returned dict.
    """
    settings = settings or SwapSettings()
    base = {
        "input_mint": input_mint,
        "output_mint": output_mint,
        "amount": amount,
        "slippage_bps": slippage_bps,
    }

    try:
        keypair = load_keypair(private_key)
    except DecodeError as e:
        log.error("Failed to create keypair: %s", e)
        return {**base, "status": "ABORTED", "error": f"Failed to create keypair: {e}"}
    log.info("Keypair created successfully.")

    jupiter = jupiter or JupiterClient(
        base_url=settings.quote_api_url,
        timeout=settings.http_timeout_seconds,
    )
    rpc = rpc or SolanaRpcClient(
        url=settings.rpc_url,
        timeout=settings.http_timeout_seconds,
    )

    try:
        quote = await jupiter.get_quote(input_mint, output_mint, amount, slippage_bps)
        log.info("Quote Response: %s", quote.raw)
        summary = {
            "amount_in": quote.in_amount,
            "amount_out": quote.out_amount,
            "price_impact_pct": quote.price_impact_pct or 0.0,
            "route_plan": quote.route_labels(),
        }

        if dry_run:
            return {
                **base,
                **summary,
                "status": "DRY_RUN",
                "message": "Dry run: no transaction executed.",
            }

        # ── LIVE EXECUTION ──────────────────────────────────────

        unsigned_tx_b64 = await jupiter.build_swap(quote, public_key(keypair))

        txid = await sign_and_submit(
            unsigned_tx_b64,
            keypair,
            rpc,
            skip_preflight=settings.skip_preflight,
            max_retries=settings.max_retries,
        )

        seen: list[SignatureStatus] = []
        outcome = await await_confirmation(
            txid,
            rpc,
            timeout_ms=settings.confirm_timeout_ms,
            strategy=strategy or FixedInterval(),
            on_status=seen.append,
        )

        if outcome is ConfirmationOutcome.TIMED_OUT:
            # Submitted: it may still land. Keep the signature for the caller.
            return {
                **base,
                **summary,
                "status": "TIMED_OUT",
                "tx_signature": txid,
                "confirmed": False,
                "message": f"Transaction confirmation for {txid} timed out.",
            }

        onchain_err = seen[-1].err if seen else None
        if onchain_err is not None:
            log.error("Transaction %s finalized but failed on-chain: %s", txid, onchain_err)
            return {
                **base,
                **summary,
                "status": "FAILED",
                "tx_signature": txid,
                "onchain_err": onchain_err,
                "error": f"Tx landed but failed on-chain: {onchain_err}",
            }

        return {
            **base,
            **summary,
            "status": "SUCCESS",
            "tx_signature": txid,
            "confirmed": True,
            "message": f"Transaction {txid} confirmed",
        }

    except (QuoteFetchError, SwapBuildError, SubmissionError) as e:
        log.error("Error during transaction submission or confirmation: %s", e)
        return {**base, "status": "FAILED", "error": str(e)}
    finally:
        await jupiter.close()
        await rpc.close()


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description="Swap one token for another via Jupiter")
    parser.add_argument("input_mint", nargs="?", default=SOL_MINT, help="Mint to sell (default: SOL)")
    parser.add_argument("output_mint", nargs="?", default=USDC_MINT, help="Mint to buy (default: USDC)")
    parser.add_argument("amount", nargs="?", type=int, default=100, help="Amount in smallest unit (default: 100)")
    parser.add_argument("slippage_bps", nargs="?", type=int, default=50, help="Max slippage in bps (default: 50 = 0.5%%)")
    parser.add_argument("--dry-run", action="store_true", help="Quote only, do not sign or submit")
    parser.add_argument("--timeout", type=float, default=None, help="Confirmation timeout in seconds (default: 180)")
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")
    args = parser.parse_args(argv)
    if args.amount <= 0:
        parser.error("amount must be a positive integer")

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    load_dotenv()
    settings = load_settings()
    if args.timeout is not None:
        settings.confirm_timeout_ms = int(args.timeout * 1000)

    try:
        result = asyncio.run(execute_swap(
            args.input_mint,
            args.output_mint,
            args.amount,
            args.slippage_bps,
            private_key=os.environ.get(PRIVATE_KEY_ENV),
            settings=settings,
            dry_run=args.dry_run,
        ))
    except MissingSecretError:
        print(f"ERROR: Private key not found in environment variables ({PRIVATE_KEY_ENV}).", file=sys.stderr)
        sys.exit(1)

    print(json.dumps(result, indent=2))
    sys.exit(0 if result["status"] in ("DRY_RUN", "SUCCESS") else 1)


if __name__ == "__main__":
    main()

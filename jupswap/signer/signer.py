"""Transaction signer & submitter.

Takes the base64 unsigned transaction from Jupiter, signs it with the
loaded keypair and hands the raw bytes to the node connection.

Submission options are fixed: preflight simulation is skipped and the node
rebroadcasts up to twice on its own. This module never retries.
"""

from __future__ import annotations

import base64
import binascii
import logging

from solders.errors import SignerError
from solders.keypair import Keypair
from solders.transaction import VersionedTransaction

from jupswap.clients.rpc import RpcError, SolanaRpcClient, SubmissionError

log = logging.getLogger("signer")

SKIP_PREFLIGHT = True
NODE_MAX_RETRIES = 2


def deserialize_transaction(unsigned_tx_base64: str) -> VersionedTransaction:
    """Decode Jupiter's base64 blob into a VersionedTransaction."""
    try:
        tx_bytes = base64.b64decode(unsigned_tx_base64, validate=True)
        return VersionedTransaction.from_bytes(tx_bytes)
    except (binascii.Error, ValueError) as e:
        raise SubmissionError(f"Swap transaction is not a valid versioned transaction: {e}") from e


def sign_transaction(transaction: VersionedTransaction, keypair: Keypair) -> bytes:
    """Sign a VersionedTransaction. Returns serialized signed bytes.

    Uses the VersionedTransaction constructor, which signs the versioned
    message with Solana's domain-separated prefix. Do NOT use
    keypair.sign_message() + populate(): that skips the prefix and produces
    signatures the network rejects.
    """
    try:
        signed_tx = VersionedTransaction(transaction.message, [keypair])
    except (SignerError, ValueError, TypeError) as e:
        # keypair is not a required signer of the message
        raise SubmissionError(f"Signing failed: {e}") from e
    return bytes(signed_tx)


async def sign_and_submit(
    unsigned_tx_base64: str,
    keypair: Keypair,
    rpc: SolanaRpcClient,
    skip_preflight: bool = SKIP_PREFLIGHT,
    max_retries: int = NODE_MAX_RETRIES,
) -> str:
    """Decode, sign, serialize and submit. Returns the transaction signature.

    Raises:
        SubmissionError: wrapping any decode, signing, transport or node
            rejection error.
    """
    transaction = deserialize_transaction(unsigned_tx_base64)
    log.info("Transaction: %s", transaction)

    raw_transaction = sign_transaction(transaction, keypair)

    try:
        txid = await rpc.send_raw_transaction(
            raw_transaction,
            skip_preflight=skip_preflight,
            max_retries=max_retries,
        )
    except RpcError as e:
        raise SubmissionError(f"Transaction submission failed: {e}") from e

    log.info("Transaction sent with TXID: %s", txid)
    return txid

"""jupswap: one Jupiter swap on Solana, signed locally, polled to finality.

Clients:    jupswap/clients/ (Jupiter v6 REST, Solana JSON-RPC)
Signer:     jupswap/signer/  (base58 keychain, versioned tx signing)
Poller:     jupswap/confirmation.py
Entry:      jupswap/skills/execute_swap.py
"""

__version__ = "0.1.0"

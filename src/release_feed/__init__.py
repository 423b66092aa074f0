"""Release Feed.

Collects deployment tags for the Wallet, Hub and Keyguard applications,
normalizes them into release records, and writes the mainnet and testnet
release feeds consumed by the changelog page.
"""

__version__ = "0.1.0"

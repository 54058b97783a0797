"""
Pneuma - On-chain interaction layer.

Provides the node connector capability and its JSON-RPC adapter, fee policy,
transaction signing and broadcasting, and confirmation polling.

Uses httpx + eth-account instead of the heavyweight web3.py.
"""

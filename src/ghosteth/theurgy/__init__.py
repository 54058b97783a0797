"""
Theurgy - Command implementations for the ghosteth CLI.

Each module corresponds to top-level CLI commands:
- send:    Sign and broadcast a transfer, optionally waiting for it
- receipt: Look up a receipt, or wait for a pending transaction
"""

"""
Node - JSON-RPC access to the target chain.

Provides the RPC client session and ABI utilities used to encode
load-test calls and decode revert data.

Uses httpx + eth-abi instead of the heavyweight web3.py.
"""

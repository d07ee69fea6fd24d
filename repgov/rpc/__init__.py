"""
RepGov RPC

JSON-RPC 2.0 interface to the governance ledger, served by the node app
over HTTP (POST /rpc).
"""

from .server import RPCError, RPCErrorCode, RPCServer

__all__ = [
    "RPCError",
    "RPCErrorCode",
    "RPCServer",
]

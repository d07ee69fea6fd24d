"""
RepGov JSON-RPC 2.0 Server

Implements the JSON-RPC 2.0 specification with:
- Method registration and namespacing (RPCModule / @rpc_method)
- Batch requests
- Parameter binding checks (INVALID_PARAMS before the handler runs)
- Governance rule violations reported as structured errors
"""

import asyncio
import inspect
import json
from dataclasses import dataclass
from enum import IntEnum
from typing import Any, Callable, Dict, List, Optional, Union

from ..governance.errors import GovernanceError
from ..logger import get_logger

logger = get_logger(__name__)


class RPCErrorCode(IntEnum):
    """JSON-RPC 2.0 error codes."""

    # Standard errors
    PARSE_ERROR = -32700
    INVALID_REQUEST = -32600
    METHOD_NOT_FOUND = -32601
    INVALID_PARAMS = -32602
    INTERNAL_ERROR = -32603

    # Server errors (-32000 to -32099)
    SERVER_ERROR = -32000
    GOVERNANCE_ERROR = -32010


@dataclass
class RPCError(Exception):
    """JSON-RPC error."""

    code: int
    message: str
    data: Optional[Any] = None

    @classmethod
    def from_governance_error(cls, error: GovernanceError) -> "RPCError":
        return cls(
            RPCErrorCode.GOVERNANCE_ERROR,
            str(error),
            {"error": type(error).__name__, "code": error.code},
        )

    def to_dict(self) -> dict:
        result = {
            "code": int(self.code),
            "message": self.message,
        }
        if self.data is not None:
            result["data"] = self.data
        return result


@dataclass
class RPCRequest:
    """JSON-RPC request."""

    jsonrpc: str
    method: str
    params: Union[List, Dict, None]
    id: Union[str, int, None]

    @classmethod
    def from_dict(cls, data: dict) -> "RPCRequest":
        return cls(
            jsonrpc=data.get("jsonrpc", "2.0"),
            method=data.get("method", ""),
            params=data.get("params"),
            id=data.get("id"),
        )

    @property
    def is_notification(self) -> bool:
        return self.id is None


@dataclass
class RPCResponse:
    """JSON-RPC response."""

    jsonrpc: str = "2.0"
    result: Optional[Any] = None
    error: Optional[Dict] = None
    id: Union[str, int, None] = None

    def to_dict(self) -> dict:
        response = {"jsonrpc": self.jsonrpc, "id": self.id}
        if self.error is not None:
            response["error"] = self.error
        else:
            response["result"] = self.result
        return response


RPCMethod = Callable[..., Any]


class RPCModule:
    """
    Base class for RPC modules.

    Subclass this to create a method namespace such as gov_.
    """

    namespace: str = ""

    def __init__(self, context: Any = None):
        self.context = context

    def get_methods(self) -> Dict[str, RPCMethod]:
        """Map of full method name → bound coroutine for every @rpc_method."""
        methods = {}
        for name in dir(self):
            if name.startswith("_"):
                continue
            attr = getattr(self, name)
            if callable(attr) and hasattr(attr, "__rpc_method__"):
                full_name = f"{self.namespace}_{name}" if self.namespace else name
                methods[full_name] = attr
        return methods


def rpc_method(func: RPCMethod) -> RPCMethod:
    """
    Mark a coroutine method as an RPC endpoint.

    Usage:
        @rpc_method
        async def getProposalCounter(self) -> int:
            return self.engine.get_proposal_counter()
    """
    func.__rpc_method__ = True
    return func


class RPCServer:
    """
    JSON-RPC 2.0 dispatcher.

    Transport-agnostic: the node app feeds it request bodies from POST /rpc.
    """

    def __init__(self):
        self._methods: Dict[str, RPCMethod] = {}
        self._modules: Dict[str, RPCModule] = {}

    def register_method(self, name: str, handler: RPCMethod):
        self._methods[name] = handler
        logger.debug(f"Registered RPC method: {name}")

    def register_module(self, module: RPCModule):
        methods = module.get_methods()
        self._methods.update(methods)
        self._modules[module.namespace] = module
        logger.info(f"Registered RPC module: {module.namespace} ({len(methods)} methods)")

    def unregister_module(self, namespace: str):
        if namespace in self._modules:
            module = self._modules.pop(namespace)
            for name in module.get_methods():
                self._methods.pop(name, None)
            logger.info(f"Unregistered RPC module: {namespace}")

    def get_methods(self) -> List[str]:
        return list(self._methods.keys())

    async def handle_request(self, data: Union[str, bytes, dict, list]) -> Optional[str]:
        """
        Handle a JSON-RPC request body.

        Returns:
            JSON response string, or None when every request was a notification
        """
        try:
            if isinstance(data, (str, bytes)):
                parsed = json.loads(data)
            else:
                parsed = data
        except json.JSONDecodeError as e:
            error = RPCError(RPCErrorCode.PARSE_ERROR, f"Parse error: {e}")
            return json.dumps(RPCResponse(error=error.to_dict()).to_dict())

        if isinstance(parsed, list):
            if not parsed:
                error = RPCError(RPCErrorCode.INVALID_REQUEST, "Empty batch")
                return json.dumps(RPCResponse(error=error.to_dict()).to_dict())

            # Batch members run one after another so that mutations apply in
            # the order the caller listed them.
            responses = []
            for req in parsed:
                responses.append(await self._handle_single(req))
            responses = [r for r in responses if r is not None]
            if not responses:
                return None
            return json.dumps(responses)

        response = await self._handle_single(parsed)
        if response is None:
            return None
        return json.dumps(response)

    @staticmethod
    def _bind(handler: RPCMethod, params: Union[List, Dict, None]):
        try:
            if params is None:
                inspect.signature(handler).bind()
                return (), {}
            if isinstance(params, list):
                inspect.signature(handler).bind(*params)
                return tuple(params), {}
            if isinstance(params, dict):
                inspect.signature(handler).bind(**params)
                return (), dict(params)
        except TypeError as e:
            raise RPCError(RPCErrorCode.INVALID_PARAMS, f"Invalid params: {e}") from None
        raise RPCError(RPCErrorCode.INVALID_PARAMS, "Invalid params type")

    async def _handle_single(self, data: Any) -> Optional[dict]:
        if not isinstance(data, dict):
            return RPCResponse(
                error=RPCError(RPCErrorCode.INVALID_REQUEST, "Invalid request").to_dict()
            ).to_dict()
        request = RPCRequest.from_dict(data)

        if request.jsonrpc != "2.0":
            return RPCResponse(
                id=request.id,
                error=RPCError(RPCErrorCode.INVALID_REQUEST, "Invalid JSON-RPC version").to_dict()
            ).to_dict()

        if not request.method:
            return RPCResponse(
                id=request.id,
                error=RPCError(RPCErrorCode.INVALID_REQUEST, "Missing method").to_dict()
            ).to_dict()

        handler = self._methods.get(request.method)
        if handler is None:
            if request.is_notification:
                return None
            return RPCResponse(
                id=request.id,
                error=RPCError(
                    RPCErrorCode.METHOD_NOT_FOUND,
                    f"Method not found: {request.method}"
                ).to_dict()
            ).to_dict()

        try:
            args, kwargs = self._bind(handler, request.params)
            result = handler(*args, **kwargs)
            if asyncio.iscoroutine(result):
                result = await result
        except RPCError as e:
            error = e
        except GovernanceError as e:
            logger.info(f"{request.method} rejected: {type(e).__name__}: {e}")
            error = RPCError.from_governance_error(e)
        except Exception as e:
            logger.exception(f"Error handling RPC method {request.method}")
            error = RPCError(RPCErrorCode.INTERNAL_ERROR, str(e))
        else:
            if request.is_notification:
                return None
            return RPCResponse(id=request.id, result=result).to_dict()

        if request.is_notification:
            return None
        return RPCResponse(id=request.id, error=error.to_dict()).to_dict()

# relay_indexer/core/errors.py
"""
Exception hierarchy for the indexer.

ChainError subclasses split RPC failures into the ones the next scheduled
trigger can recover from (TransientRPCError) and the ones that need an
operator (PermanentRPCError). StateStoreError always fails a run closed.
"""

from typing import Optional

import requests


class IndexerError(Exception):
    """Base class for all indexer errors"""


class PermanentError(IndexerError):
    """Malformed configuration or contract interface. Not auto-recovered."""


class ConfigurationError(PermanentError):
    pass


class ChainError(IndexerError):
    def __init__(self, message: str, method: Optional[str] = None):
        super().__init__(message)
        self.method = method


class TransientRPCError(ChainError):
    pass


class PermanentRPCError(ChainError, PermanentError):
    pass


class StateStoreError(IndexerError):
    pass


class EventProcessingError(IndexerError):
    pass


TRANSIENT_HTTP_STATUS = {408, 425, 429, 500, 502, 503, 504}

# JSON-RPC error codes providers use for throttling / overloaded nodes
TRANSIENT_RPC_CODES = {-32005, -32603}

TRANSIENT_MESSAGE_MARKERS = (
    'rate limit',
    'too many requests',
    'timeout',
    'timed out',
    'temporarily unavailable',
    'connection reset',
    'connection refused',
    'header not found',
    'try again',
)


def _rpc_error_code(exc: Exception) -> Optional[int]:
    payload = exc.args[0] if exc.args else None
    if isinstance(payload, dict):
        code = payload.get('code')
        if isinstance(code, int):
            return code
    return None


def classify_rpc_error(exc: Exception, method: Optional[str] = None) -> ChainError:
    """Map a raw provider/transport exception onto the ChainError hierarchy"""
    if isinstance(exc, ChainError):
        return exc

    message = str(exc) or type(exc).__name__

    if isinstance(exc, (requests.exceptions.ConnectionError, requests.exceptions.Timeout,
                        ConnectionError, TimeoutError)):
        return TransientRPCError(message, method=method)

    if isinstance(exc, requests.exceptions.HTTPError):
        status = exc.response.status_code if exc.response is not None else None
        if status in TRANSIENT_HTTP_STATUS:
            return TransientRPCError(message, method=method)
        return PermanentRPCError(message, method=method)

    code = _rpc_error_code(exc)
    if code in TRANSIENT_RPC_CODES:
        return TransientRPCError(message, method=method)

    lowered = message.lower()
    if any(marker in lowered for marker in TRANSIENT_MESSAGE_MARKERS):
        return TransientRPCError(message, method=method)

    return PermanentRPCError(message, method=method)

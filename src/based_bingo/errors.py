from __future__ import annotations

from typing import Any, Dict, Optional


class RelayError(Exception):
    """Base class for everything the reward relay reports to a caller."""

    status_code = 500
    transient = False

    def __init__(self, message: str, **diagnostics: Any) -> None:
        super().__init__(message)
        self.message = message
        self.diagnostics: Dict[str, Any] = {
            k: v for k, v in diagnostics.items() if v is not None
        }

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": False,
            "error": type(self).__name__,
            "message": self.message,
            "transient": self.transient,
            **self.diagnostics,
        }


class ValidationError(RelayError):
    status_code = 400


class ConfigurationError(RelayError):
    status_code = 500


class SimulationRevert(RelayError):
    """No candidate call survived preflight; nothing was sent."""

    status_code = 400


class NetworkError(RelayError):
    status_code = 503
    transient = True


class RelayTimeout(NetworkError):
    pass


class SubmissionError(RelayError):
    status_code = 502


class NonceConflict(SubmissionError):
    status_code = 429


class ContractReadError(RelayError):
    """A view call returned data that does not decode as its declared type."""

    status_code = 502


class RpcError(RuntimeError):
    """A JSON-RPC ``error`` object returned by the node."""

    def __init__(self, code: Optional[int], message: str, data: Any = None) -> None:
        super().__init__(f"RPC error {code}: {message}")
        self.code = code
        self.rpc_message = message
        self.data = data

    @property
    def is_revert(self) -> bool:
        # Geth-style nodes use code 3 for "execution reverted"
        return self.code == 3 or "revert" in self.rpc_message.lower()


NONCE_MARKERS = (
    "nonce too low",
    "replacement transaction underpriced",
    "already known",
    "nonce has already been used",
)


def classify_send_failure(exc: RpcError) -> SubmissionError:
    text = exc.rpc_message.lower()
    if any(marker in text for marker in NONCE_MARKERS):
        return NonceConflict(f"Nonce conflict: {exc.rpc_message}", rpc_code=exc.code)
    if "insufficient funds" in text:
        return SubmissionError(
            "Insufficient ETH for gas fees in owner wallet", rpc_code=exc.code
        )
    return SubmissionError(exc.rpc_message, rpc_code=exc.code)

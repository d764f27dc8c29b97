__all__ = [
    # Configuration
    "CallArguments",
    "EndpointTarget",
    # Errors
    "CallEncodingError",
    "ConfigurationError",
    "ConnectivityError",
    "ContractNotDeployedError",
    "EstimationError",
    "HarnessError",
    "PreflightError",
    "PreflightEstimationError",
    "ReceiptTimeoutError",
    "RevertedExecution",
    "RpcError",
    "SubmissionError",
    # Node access
    "Receipt",
    "RpcClient",
    "decode_revert",
    "load_abi",
    # Identity
    "SignerIdentity",
    "load_private_key",
    # Harness
    "AdaptiveBackoff",
    "CallBuilder",
    "FeeParameters",
    "FinalReport",
    "FixedDelay",
    "LoopSettings",
    "NonceAllocator",
    "RunReport",
    "RunResult",
    "SubmissionLoop",
    "aggregate",
    "fee_parameters",
    "finalize",
    "run_preflight",
]

from .config import CallArguments, EndpointTarget
from .errors import (
    CallEncodingError,
    ConfigurationError,
    ConnectivityError,
    ContractNotDeployedError,
    EstimationError,
    HarnessError,
    PreflightError,
    PreflightEstimationError,
    ReceiptTimeoutError,
    RevertedExecution,
    RpcError,
    SubmissionError,
)
from .identity.eth import SignerIdentity, load_private_key
from .node.abi import decode_revert, load_abi
from .node.rpc import Receipt, RpcClient
from .harness.calls import CallBuilder
from .harness.fees import FeeParameters, fee_parameters
from .harness.loop import LoopSettings, RunResult, SubmissionLoop
from .harness.metrics import FinalReport, RunReport, aggregate, finalize
from .harness.nonces import NonceAllocator
from .harness.pacing import AdaptiveBackoff, FixedDelay
from .harness.preflight import run_preflight

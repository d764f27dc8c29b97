from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from ..config import CALL_METHOD, CallArguments, EndpointTarget
from ..node.abi import encode_call
from .fees import FeeParameters


@dataclass(frozen=True)
class CallBuilder:
    """Builds the calldata, eth_call payload and unsigned transaction for attempt ``index``."""

    target: EndpointTarget
    sender: str
    arguments: CallArguments = field(default_factory=CallArguments)
    method: str = CALL_METHOD

    def calldata(self, index: int) -> str:
        return encode_call(self.target.abi, self.method, self.arguments.for_attempt(index))

    def call(self, index: int) -> dict[str, Any]:
        return {
            "from": self.sender,
            "to": self.target.contract_address,
            "data": self.calldata(index),
            "value": "0x0",
        }

    def transaction(self, index: int, nonce: int, fees: FeeParameters) -> dict[str, Any]:
        return {
            "type": 2,
            "chainId": self.target.chain_id,
            "nonce": nonce,
            "to": self.target.contract_address,
            "value": 0,
            "data": self.calldata(index),
            **fees.as_tx_fields(),
        }

# PATH: core/models.py
"""
Core data models for the prover orchestrator.

OUTCOME CONTRACT
================
Every call to BlockTaskExecutor.execute() produces exactly one outcome:
  - Success(block_number, artifact)
  - Failure(block_number, error)
Callers branch on `is_success`; no other state is observable.
================
"""

from dataclasses import dataclass, field
from typing import Any, ClassVar, Dict, Optional, Union

from core.exceptions import ProverOpsError


def parse_hex_quantity(value: Union[str, int, None]) -> int:
    """
    Parse a JSON-RPC quantity ("0x1b4") into an int.

    Plain ints and decimal strings are accepted for test fixtures.
    """
    if value is None:
        raise ValueError("quantity is missing")
    if isinstance(value, int):
        return value
    text = value.strip().lower()
    if text.startswith("0x"):
        return int(text, 16)
    return int(text)


@dataclass(frozen=True)
class BlockHeader:
    """Header delivered by the node's newHeads subscription."""
    number: int
    hash: str
    timestamp: int

    @classmethod
    def from_rpc(cls, payload: Dict[str, Any]) -> "BlockHeader":
        """Build from the `result` object of an eth_subscription notification."""
        return cls(
            number=parse_hex_quantity(payload.get("number")),
            hash=payload.get("hash") or "",
            timestamp=parse_hex_quantity(payload.get("timestamp", 0)),
        )


@dataclass(frozen=True)
class BlockData:
    """Block body resolved through the HTTP gateway."""
    number: int
    block: Dict[str, Any]

    @property
    def hash(self) -> Optional[str]:
        return self.block.get("hash")

    @property
    def transaction_count(self) -> int:
        return len(self.block.get("transactions") or [])

    @property
    def gas_used(self) -> int:
        return parse_hex_quantity(self.block.get("gasUsed", 0))


@dataclass
class ProofArtifact:
    """What a strategy hands back for a successfully processed block."""
    block_number: int
    proof: Optional[bytes] = None
    cycles: int = 0
    proving_time_ms: int = 0
    verifier_id: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "block_number": self.block_number,
            "has_proof": self.proof is not None,
            "proof_size_bytes": len(self.proof) if self.proof else 0,
            "cycles": self.cycles,
            "proving_time_ms": self.proving_time_ms,
            "verifier_id": self.verifier_id,
            "metadata": self.metadata,
        }


@dataclass(frozen=True)
class Success:
    """Block processed; artifact available."""
    block_number: int
    artifact: ProofArtifact
    is_success: ClassVar[bool] = True

    def to_dict(self) -> Dict[str, Any]:
        return {
            "block_number": self.block_number,
            "status": "success",
            "artifact": self.artifact.to_dict(),
        }


@dataclass(frozen=True)
class Failure:
    """Block processing failed; error carries the cause."""
    block_number: int
    error: ProverOpsError
    is_success: ClassVar[bool] = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "block_number": self.block_number,
            "status": "failure",
            "error_code": self.error.code.value,
            "error": self.error.message,
        }


ExecutionOutcome = Union[Success, Failure]

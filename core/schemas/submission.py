"""
Module 01 - Schemas
File: submission.py

Purpose: Input and outcome models for the proof verification gateway.

State machine per submission:
    RECEIVED -> PROOF_CHECKED -> NULLIFIER_CHECKED -> ACCEPTED | REJECTED
"""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from core.merkle.merkle_tree import MerkleProof


class SubmissionState(str, Enum):
    RECEIVED = "received"
    PROOF_CHECKED = "proof_checked"
    NULLIFIER_CHECKED = "nullifier_checked"
    ACCEPTED = "accepted"
    REJECTED = "rejected"


class RejectionReason(str, Enum):
    """Why a submission was rejected. Values match ErrorCodes."""

    INVALID_FORMAT = "INVALID_FORMAT"
    STALE_ROOT = "STALE_ROOT"
    INVALID_PROOF = "INVALID_PROOF"
    DOUBLE_CLAIM = "DOUBLE_CLAIM"


TERMINAL_STATES: frozenset[SubmissionState] = frozenset(
    {SubmissionState.ACCEPTED, SubmissionState.REJECTED}
)


class Submission(BaseModel):
    """
    A contribution claim presented to the gateway.

    Carries no device identity beyond the leaf hash inside the membership
    proof; the commitment binds the contribution content.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    leaf_hash: bytes = Field(..., description="Leaf being proven")
    siblings: list[bytes] = Field(
        default_factory=list,
        description="Merkle sibling path, bottom-up",
    )
    leaf_index: int = Field(..., ge=0, description="Leaf index (bit k = side at level k)")
    claimed_root: bytes = Field(..., description="Root the proof was built against")
    nullifier: bytes = Field(..., description="Per-epoch nullifier")
    commitment: bytes = Field(..., description="Contribution commitment")
    epoch_id: int | None = Field(
        default=None,
        ge=0,
        description=(
            "Round the device derived its nullifier for; must match the "
            "verifier's open round and is never recorded with the spend"
        ),
    )
    quality_score: float | None = Field(
        default=None,
        description="Optional caller-supplied data quality score (0-100)",
    )

    @classmethod
    def from_proof(
        cls,
        proof: MerkleProof,
        *,
        nullifier: bytes,
        commitment: bytes,
        epoch_id: int | None = None,
        quality_score: float | None = None,
    ) -> "Submission":
        """Build a submission from a registry-issued proof."""
        return cls(
            leaf_hash=proof.leaf,
            siblings=list(proof.siblings),
            leaf_index=proof.index,
            claimed_root=proof.root,
            nullifier=nullifier,
            commitment=commitment,
            epoch_id=epoch_id,
            quality_score=quality_score,
        )


class GatewayResult(BaseModel):
    """Terminal outcome of one submission."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    state: SubmissionState = Field(..., description="ACCEPTED or REJECTED")
    reason: RejectionReason | None = Field(
        default=None,
        description="Set only when state is REJECTED",
    )
    trail: list[SubmissionState] = Field(
        default_factory=list,
        description="States visited, in order",
    )
    checked_root: bytes | None = Field(
        default=None,
        description="Published root the proof was checked against",
    )
    message: str = Field(default="")

    @property
    def accepted(self) -> bool:
        return self.state == SubmissionState.ACCEPTED

"""
Module 07 - Proof Verification Gateway
Accept or reject contribution submissions.

Owner: Protocol/Crypto Engineer
Module ID: M07

State machine per submission:
    RECEIVED -> PROOF_CHECKED -> NULLIFIER_CHECKED -> ACCEPTED | REJECTED

Checks, in order:
1. Format: every hash is 32 bytes, quality score within 0-100, claimed
   epoch matches the round the caller is accepting
   (REJECTED/INVALID_FORMAT)
2. Claimed root equals the currently published root (REJECTED/STALE_ROOT)
3. Proof folds to the published root, with exactly as many siblings as
   the published tree is high and a leaf index inside the leaf count
   (REJECTED/INVALID_PROOF)
4. Atomic check-and-set of the nullifier (REJECTED/DOUBLE_CLAIM)

The proof is always checked before the nullifier so that an invalid proof
never reveals whether a nullifier is already spent. Rejections are values,
never exceptions; only a storage failure while spending propagates.
"""

from __future__ import annotations

import logging

from core.crypto.hashing import is_digest, short_hex, to_hex
from core.merkle.merkle_tree import compute_tree_height, verify_merkle_path
from core.nullifiers.spent_set import SpentNullifierSet
from core.schemas.errors import (
    DoubleClaimException,
    InvalidProofException,
    RegistryException,
    SchemaValidationException,
    StaleRootException,
)
from core.schemas.submission import (
    GatewayResult,
    RejectionReason,
    Submission,
    SubmissionState,
)
from registry.device_registry import DeviceRegistry


logger = logging.getLogger(__name__)


MIN_QUALITY_SCORE = 0.0
MAX_QUALITY_SCORE = 100.0


class VerificationGateway:
    """
    Boundary operation deciding accept/reject for each submission.

    Usage:
        gateway = VerificationGateway(registry, SpentNullifierSet())
        result = gateway.submit(
            Submission.from_proof(proof, nullifier=n, commitment=c),
            epoch_id=current_round,
        )
        if result.accepted:
            ...
    """

    def __init__(
        self,
        registry: DeviceRegistry,
        spent: SpentNullifierSet | None = None,
    ) -> None:
        self._registry = registry
        self._spent = spent if spent is not None else SpentNullifierSet()

    @property
    def spent(self) -> SpentNullifierSet:
        return self._spent

    @staticmethod
    def _format_problem(submission: Submission) -> str | None:
        """Describe the first format violation, or None if well-formed."""
        for name in ("leaf_hash", "claimed_root", "nullifier", "commitment"):
            if not is_digest(getattr(submission, name)):
                return f"{name} must be 32 bytes"
        for i, sibling in enumerate(submission.siblings):
            if not is_digest(sibling):
                return f"siblings[{i}] must be 32 bytes"
        score = submission.quality_score
        if score is not None and not (MIN_QUALITY_SCORE <= score <= MAX_QUALITY_SCORE):
            return "quality_score must be between 0 and 100"
        return None

    def _reject(
        self,
        trail: list[SubmissionState],
        reason: RejectionReason,
        message: str,
        checked_root: bytes | None = None,
    ) -> GatewayResult:
        trail.append(SubmissionState.REJECTED)
        logger.info(f"Submission rejected: {reason.value} ({message})")
        return GatewayResult(
            state=SubmissionState.REJECTED,
            reason=reason,
            trail=trail,
            checked_root=checked_root,
            message=message,
        )

    def submit(self, submission: Submission, *, epoch_id: int | None = None) -> GatewayResult:
        """
        Run one submission through the state machine.

        Args:
            submission: The contribution claim
            epoch_id: Round the caller is accepting claims for. The spent
                nullifier is recorded under this value, never under the
                submission's own epoch_id, which only has to agree with it.
                None records the spend without an epoch, so prune_before()
                never drops it.

        Returns:
            GatewayResult with state ACCEPTED or REJECTED(reason)

        Raises:
            PersistenceFailureException: Spending the nullifier could not be
                recorded; the nullifier is left unspent.
        """
        trail = [SubmissionState.RECEIVED]

        problem = self._format_problem(submission)
        if problem is None and epoch_id is not None and submission.epoch_id is not None:
            if submission.epoch_id != epoch_id:
                problem = f"epoch_id {submission.epoch_id} is not the open round {epoch_id}"
        if problem is not None:
            return self._reject(trail, RejectionReason.INVALID_FORMAT, problem)

        snapshot = self._registry.snapshot()
        current_root = snapshot.root

        if submission.claimed_root != current_root:
            return self._reject(
                trail,
                RejectionReason.STALE_ROOT,
                "claimed root is not the published root; request a fresh proof",
                checked_root=current_root,
            )

        leaf_count = len(snapshot.pubkeys)
        if submission.leaf_index >= leaf_count or not verify_merkle_path(
            submission.leaf_hash,
            submission.siblings,
            submission.leaf_index,
            current_root,
            expected_height=compute_tree_height(leaf_count),
        ):
            return self._reject(
                trail,
                RejectionReason.INVALID_PROOF,
                "proof does not fold to the published root",
                checked_root=current_root,
            )
        trail.append(SubmissionState.PROOF_CHECKED)

        if not self._spent.claim(submission.nullifier, epoch_id):
            trail.append(SubmissionState.NULLIFIER_CHECKED)
            return self._reject(
                trail,
                RejectionReason.DOUBLE_CLAIM,
                "nullifier already spent",
                checked_root=current_root,
            )
        trail.append(SubmissionState.NULLIFIER_CHECKED)
        trail.append(SubmissionState.ACCEPTED)

        logger.info(
            f"Submission accepted: nullifier={short_hex(submission.nullifier)} "
            f"commitment={short_hex(submission.commitment)} root={short_hex(current_root)}"
        )
        return GatewayResult(
            state=SubmissionState.ACCEPTED,
            trail=trail,
            checked_root=current_root,
            message="accepted",
        )

    def submit_or_raise(
        self,
        submission: Submission,
        *,
        epoch_id: int | None = None,
    ) -> GatewayResult:
        """
        Like submit(), but raise the matching RegistryException on rejection.

        For callers that treat a rejection as control flow rather than a value.

        Raises:
            SchemaValidationException: INVALID_FORMAT
            StaleRootException: STALE_ROOT
            InvalidProofException: INVALID_PROOF
            DoubleClaimException: DOUBLE_CLAIM
        """
        result = self.submit(submission, epoch_id=epoch_id)
        if not result.accepted:
            raise self._rejection_error(result, submission)
        return result

    @staticmethod
    def _rejection_error(result: GatewayResult, submission: Submission) -> RegistryException:
        reason = result.reason
        if reason == RejectionReason.STALE_ROOT:
            return StaleRootException(
                claimed_root=to_hex(submission.claimed_root),
                current_root=to_hex(result.checked_root or b""),
            )
        if reason == RejectionReason.INVALID_PROOF:
            return InvalidProofException(leaf_index=submission.leaf_index)
        if reason == RejectionReason.DOUBLE_CLAIM:
            return DoubleClaimException(to_hex(submission.nullifier))
        return SchemaValidationException(result.message)


__all__ = [
    "MIN_QUALITY_SCORE",
    "MAX_QUALITY_SCORE",
    "VerificationGateway",
]

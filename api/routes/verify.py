"""
Module 09 - Verify Route

Verifier caller: run a contribution through the verification gateway.

Always answers 200 with {status, reason}; a rejection is a result, not an
error. Only a storage failure while spending the nullifier is an error (503).
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends

from api.deps import get_service
from api.models.requests import VerifyRequest
from api.models.responses import VerifyResponse
from core.crypto.hashing import from_hex, to_hex
from core.schemas.submission import (
    GatewayResult,
    RejectionReason,
    Submission,
    SubmissionState,
)
from gateway.service import RegistryService


logger = logging.getLogger(__name__)

router = APIRouter(tags=["verification"])


def decode_submission(request: VerifyRequest) -> Submission:
    """
    Decode hex fields into a Submission.

    Raises:
        ValueError: If any field is not valid 0x-hex
    """
    return Submission(
        leaf_hash=from_hex(request.leaf_hash),
        siblings=[from_hex(s) for s in request.siblings],
        leaf_index=request.leaf_index,
        claimed_root=from_hex(request.claimed_root),
        nullifier=from_hex(request.nullifier),
        commitment=from_hex(request.commitment),
        epoch_id=request.epoch_id,
        quality_score=request.quality_score,
    )


def to_response(result: GatewayResult, service: RegistryService) -> VerifyResponse:
    return VerifyResponse(
        status=result.state.value,
        reason=result.reason.value if result.reason else None,
        message=result.message,
        reward=service.reward_for(result.accepted),
        reward_unit=service.config.reward.unit,
        checked_root=to_hex(result.checked_root) if result.checked_root else None,
        trail=[state.value for state in result.trail],
    )


@router.post("/verify", response_model=VerifyResponse)
async def verify_submission(
    request: VerifyRequest,
    service: RegistryService = Depends(get_service),
) -> VerifyResponse:
    """
    Verify a contribution submission.

    The proof is checked against the currently published root before the
    nullifier is spent. The spend is recorded under the configured round,
    not the epoch_id in the request.
    """
    try:
        submission = decode_submission(request)
    except ValueError as e:
        logger.info(f"Submission rejected: INVALID_FORMAT ({e})")
        return VerifyResponse(
            status=SubmissionState.REJECTED.value,
            reason=RejectionReason.INVALID_FORMAT.value,
            message=str(e),
            reward_unit=service.config.reward.unit,
            trail=[SubmissionState.RECEIVED.value, SubmissionState.REJECTED.value],
        )

    result = service.gateway.submit(submission, epoch_id=service.current_round)
    return to_response(result, service)

"""
Translate repository results into HTTP errors.

Routes call raise_for_result() on an envelope before using its payload.
"""

from typing import Optional

from fastapi import HTTPException, status

from entity_repository.core.logging_config import get_logger
from entity_repository.results import EntityPayload, Payload, RepositoryResult


logger = get_logger(__name__)


def raise_for_result(
    result: RepositoryResult,
    not_found_detail: Optional[str] = None,
) -> Payload:
    """
    Return the payload of a successful result or raise HTTPException.

    Mapping:
        - update of a row that does not exist: 404
        - concurrency conflict or constraint violation: 409
        - any other repository error: 500
        - single-entity payload holding None: 404

    Args:
        result: Envelope returned by a repository operation
        not_found_detail: Detail message for the 404 response

    Raises:
        HTTPException: If the operation failed or found nothing
    """
    error = result.error
    if error is not None:
        if error.is_not_found:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail=not_found_detail or error.message,
            )
        if error.is_concurrency_conflict or error.is_integrity_error:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail=error.message,
            )
        logger.error("Repository error surfaced as HTTP 500", extra={"error": error.message})
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Database operation failed",
        )

    payload = result.result
    if isinstance(payload, EntityPayload) and payload.entity is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=not_found_detail or "Entity not found",
        )
    return payload

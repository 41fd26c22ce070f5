"""Translate typed service failures into HTTP errors."""

from __future__ import annotations

import logging

from fastapi import HTTPException, status

from app.services.feed.dataset import DatasetLoadError
from app.services.swipes.errors import SwipeServiceError

logger = logging.getLogger(__name__)


def to_http_exception(exc: SwipeServiceError | DatasetLoadError) -> HTTPException:
    status_code = _map_error_code(exc.code)
    if status_code >= 500:
        logger.error("api.service_error", extra={"code": exc.code})
    else:
        logger.info("api.service_rejected", extra={"code": exc.code})
    return HTTPException(status_code=status_code, detail=str(exc))


def _map_error_code(code: str) -> int:
    if code.startswith("404_"):
        return status.HTTP_404_NOT_FOUND
    if code == "409_ALREADY_IN_WORKSPACE":
        return status.HTTP_409_CONFLICT
    if code == "400_REFLECTION_NOT_LIKE":
        return status.HTTP_400_BAD_REQUEST
    if code == "500_DATASET_LOAD_FAILED":
        return status.HTTP_503_SERVICE_UNAVAILABLE
    return status.HTTP_500_INTERNAL_SERVER_ERROR

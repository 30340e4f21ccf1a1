"""Map service exceptions onto HTTP errors."""

from __future__ import annotations

from fastapi import HTTPException, status

from pipeline_crm.core.exceptions import NotFoundError, StoreWriteError, ValidationError


def map_service_error(exc: Exception) -> tuple[int, str]:
    if isinstance(exc, NotFoundError):
        return status.HTTP_404_NOT_FOUND, str(exc)
    if isinstance(exc, ValidationError):
        return status.HTTP_422_UNPROCESSABLE_ENTITY, str(exc)
    if isinstance(exc, StoreWriteError):
        return status.HTTP_502_BAD_GATEWAY, str(exc)
    return status.HTTP_500_INTERNAL_SERVER_ERROR, "internal error"


def raise_http_error(exc: Exception) -> None:
    code, detail = map_service_error(exc)
    raise HTTPException(status_code=code, detail=detail) from exc

# src/tierstore/api_server/routes/data.py
"""
Record API routes for the TierStore API server.

These endpoints expose the tiered read, save and update operations. They
translate orchestrator outcomes into status codes: INVALID_ARGUMENT → 400,
NOT_FOUND → 404, FAILED → 500.
"""

import logging

from fastapi import APIRouter, HTTPException, Request, Response, status

from ...api import TierStore
from ...models import OperationResult, OperationStatus
from ..models import DataDto, DataValueRequest, SaveResponse

logger = logging.getLogger(__name__)

router = APIRouter()


def _get_store(request: Request) -> TierStore:
    store: TierStore = getattr(request.app.state, "tierstore", None)
    if not store:
        logger.error("TierStore instance not found in app state")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="TierStore service is not available."
        )
    return store


def _raise_for_result(result: OperationResult) -> None:
    if result.status is OperationStatus.INVALID_ARGUMENT:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=result.error)
    if result.status is OperationStatus.NOT_FOUND:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=result.error)
    if result.status is OperationStatus.FAILED:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=result.error)


@router.get("/data/{record_id}", response_model=DataDto)
async def get_data(record_id: str, request: Request) -> DataDto:
    """
    Return a record by id from the fastest tier that holds it.

    Raises:
        HTTPException: 400 for a blank id, 404 if no tier holds the record,
            503 if the store is unavailable.
    """
    store = _get_store(request)
    result = await store.get(record_id)
    _raise_for_result(result)
    return DataDto.from_record(result.value)


@router.post("/data", response_model=SaveResponse, status_code=status.HTTP_201_CREATED)
async def save_data(body: DataValueRequest, request: Request) -> SaveResponse:
    """Create a record in every tier and return its new id."""
    store = _get_store(request)
    result = await store.save(body.value)
    _raise_for_result(result)
    logger.info(f"Created record '{result.value}' via API.")
    return SaveResponse(id=result.value)


@router.put("/data/{record_id}", status_code=status.HTTP_204_NO_CONTENT)
async def update_data(record_id: str, body: DataValueRequest, request: Request) -> Response:
    store = _get_store(request)
    result = await store.update(record_id, body.value)
    _raise_for_result(result)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.delete("/data/{record_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_data(record_id: str, request: Request) -> Response:
    """Delete a record from every tier. Deleting an absent record succeeds."""
    store = _get_store(request)
    result = await store.delete(record_id)
    _raise_for_result(result)
    return Response(status_code=status.HTTP_204_NO_CONTENT)

# collection_router/api/v1/routes_records.py
from fastapi import APIRouter

from collection_router.core.logger import logger
from collection_router.models.records import SortRequest, SortResponse
from collection_router.services.record_ordering import sort_records

router = APIRouter(
    prefix="/records",
    tags=["records"],
)


@router.post(
    "/sort",
    response_model=SortResponse,
    summary="Order submission records for display",
)
async def sort_submission_records(request: SortRequest) -> SortResponse:
    """
    Stable sort by a named preset; records that compare equal keep their
    relative order.
    """
    logger.info("Sorting {} record(s) by {}", len(request.records), request.preset)
    return SortResponse(
        preset=request.preset,
        records=sort_records(request.records, request.preset),
    )

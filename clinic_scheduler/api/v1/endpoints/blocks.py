"""Provider unavailability block endpoints."""

from fastapi import APIRouter, status

from clinic_scheduler.dependencies import CurrentProvider, DatabaseSession
from clinic_scheduler.schemas.blocks import BlockCreate, BlockListResponse, BlockResponse
from clinic_scheduler.services.block_service import BlockService

router = APIRouter()


@router.post(
    "/blocks",
    response_model=BlockResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Block time",
)
async def create_block(
    data: BlockCreate,
    current_provider: CurrentProvider,
    db: DatabaseSession,
) -> BlockResponse:
    """
    Block a full day or a time window for the authenticated provider.

    Args:
        data: Date, range and optional reason
        current_provider: Authenticated provider
        db: Database session

    Returns:
        Created block
    """
    service = BlockService(db)
    return await service.create_block(
        current_provider.id,
        data.date,
        data,
        reason=data.reason,
    )


@router.get(
    "/blocks",
    response_model=BlockListResponse,
    status_code=status.HTTP_200_OK,
    summary="List upcoming blocks",
)
async def list_blocks(
    current_provider: CurrentProvider,
    db: DatabaseSession,
) -> BlockListResponse:
    """List the authenticated provider's blocks from today on."""
    service = BlockService(db)
    return await service.list_upcoming_blocks(current_provider.id)


@router.delete(
    "/blocks/{block_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Remove a block",
)
async def delete_block(
    block_id: int,
    current_provider: CurrentProvider,
    db: DatabaseSession,
) -> None:
    """Remove one of the authenticated provider's blocks."""
    service = BlockService(db)
    await service.delete_block(current_provider.id, block_id)

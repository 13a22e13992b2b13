"""CSV bulk import endpoints."""
import logging
from typing import Annotated

from fastapi import APIRouter, Depends, File, HTTPException, Query, UploadFile, status
from sqlalchemy.ext.asyncio import AsyncSession

from csv_importer.db.session import get_session
from csv_importer.schemas.imports import ImportResponse
from csv_importer.services.errors import UnknownImportTargetError
from csv_importer.services.stores import SqlAlchemyStore
from csv_importer.services.targets import get_target, target_names

logger = logging.getLogger(__name__)

router = APIRouter()


# ─── GET /import ───

@router.get("", summary="List registered import targets")
async def list_targets() -> dict:
    return {"targets": target_names()}


# ─── POST /import/{target} ───

@router.post("/{target}", response_model=ImportResponse, summary="Import a CSV file into a registered target")
async def import_csv(
    target: str,
    db: Annotated[AsyncSession, Depends(get_session)],
    file: UploadFile = File(...),
    validate_only: Annotated[bool, Query()] = False,
):
    try:
        import_target = get_target(target)
    except UnknownImportTargetError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))

    importer = import_target.build_importer(SqlAlchemyStore(db))
    result = await importer.process_csv(
        file.file,
        column_values={"source": file.filename},
        validate_only=validate_only,
    )

    logger.info(
        "import %s from %s: %s (%d errors)",
        target, file.filename, result, len(result.errors),
    )
    return ImportResponse(**result.to_dict())

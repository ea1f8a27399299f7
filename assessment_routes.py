import logging
from typing import List

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from pymongo.errors import PyMongoError

from database import Repository
from dependencies import get_assessment_repository
from schemas import AssessmentCreate, AssessmentOut, MessageResponse

router = APIRouter(prefix="/api/assessment", tags=["Assessment"])
logger = logging.getLogger(__name__)


@router.post("", response_model=MessageResponse, status_code=201, summary="Save an assessment")
async def create_assessment(assessment: AssessmentCreate, entries: Repository = Depends(get_assessment_repository)):
    logger.debug(f"Assessment received from {assessment.name!r}")
    try:
        doc = await entries.insert(assessment.model_dump(exclude_none=True, by_alias=True))
    except PyMongoError as e:
        logger.error(f"Failed to save assessment: {e}")
        return JSONResponse(status_code=500, content={"error": "Failed to save entry", "code": "storage_error"})
    logger.info(f"Saved assessment {doc['_id']}")
    return MessageResponse(message="Entry saved")


@router.get("", response_model=List[AssessmentOut], summary="List assessments, newest first")
async def list_assessments(entries: Repository = Depends(get_assessment_repository)):
    try:
        docs = await entries.find_all()
    except PyMongoError as e:
        logger.error(f"Failed to fetch assessments: {e}")
        return JSONResponse(status_code=500, content={"error": "Failed to fetch entries", "code": "storage_error"})
    return [AssessmentOut.from_document(d) for d in docs]

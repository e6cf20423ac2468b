"""
Contributions router: uploader leaderboard
"""
import logging

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ...core.database import get_db
from .aggregator import rank_contributors
from .schemas import ContributorsResponse

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("", response_model=ContributorsResponse)
def get_contributions(db: Session = Depends(get_db)):
    """Top contributors by number of approved papers"""
    try:
        contributors = rank_contributors(db)
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Error aggregating contributions: {e}")
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={
                "success": False,
                "error": "Failed to load contributions. Please try again later.",
            },
        )
    return ContributorsResponse(contributors=contributors)

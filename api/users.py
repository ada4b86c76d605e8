"""
User API endpoints.
"""
import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from core.database import get_db
from models.user import User
from schemas.user import InstagramLinkUpdate, UserResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/users", tags=["users"])


def _get_user_or_404(db: Session, user_id: int) -> User:
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"User with id {user_id} not found"
        )
    return user


@router.get("/{user_id}", response_model=UserResponse)
def get_user(user_id: int, db: Session = Depends(get_db)):
    """
    Get user information by ID.

    Includes the linked Instagram account, if any.
    """
    return UserResponse.model_validate(_get_user_or_404(db, user_id))


@router.patch("/{user_id}/instagram", response_model=UserResponse)
def link_instagram(
    user_id: int,
    link: InstagramLinkUpdate,
    db: Session = Depends(get_db)
):
    """
    Link an Instagram account to the user.

    Webhook events are attributed to users through this id, so it can only
    belong to one user.
    """
    user = _get_user_or_404(db, user_id)

    owner = db.query(User).filter(
        User.instagram_id == link.instagram_id,
        User.id != user_id
    ).first()
    if owner:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Instagram account is already linked to another user"
        )

    user.instagram_id = link.instagram_id
    if link.instagram_username is not None:
        user.instagram_username = link.instagram_username

    db.commit()
    db.refresh(user)
    logger.info("Linked Instagram id %s to user %s", user.instagram_id, user.id)
    return UserResponse.model_validate(user)

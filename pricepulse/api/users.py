from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from pricepulse.api.deps import get_storage, http_error
from pricepulse.core.exceptions import PricePulseError
from pricepulse.core.models import User
from pricepulse.db import SQLiteStorage

router = APIRouter(prefix="/users", tags=["Users"])


class CreateUserRequest(BaseModel):
    username: str = Field(..., min_length=1, max_length=100)


@router.post("", status_code=201)
async def create_user(request: CreateUserRequest, storage: SQLiteStorage = Depends(get_storage)):
    # UNIQUE(username) is the duplicate check
    try:
        user = storage.add_user(User(username=request.username))
    except PricePulseError as e:
        raise http_error(e)

    return {
        "status": "user created",
        "user": {"id": user.id, "username": user.username, "created_at": user.created_at.isoformat()},
    }

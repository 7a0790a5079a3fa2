from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from app.db import get_db
from app.services.lookup_service import lookup

router = APIRouter(tags=["lookup"])


@router.get("/exec")
def lookup_exec(
    id: str | None = Query(default=None),
    db: Session = Depends(get_db),
):
    status_code, payload = lookup(db, id)
    return JSONResponse(status_code=status_code, content=payload)

from __future__ import annotations

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel, Field

from filelink.mounts import MountError, load_mounts


router = APIRouter()


class MountEntry(BaseModel):
    name: str
    path: str = Field(..., description="Public path of the mount root, usable under /api/files/")
    readOnly: bool


class MountsResponse(BaseModel):
    mounts: list[MountEntry]


@router.get("/api/mounts")
def api_mounts() -> MountsResponse:
    try:
        mounts = load_mounts()
    except MountError as e:
        raise HTTPException(status_code=500, detail=str(e)) from e
    return MountsResponse(
        mounts=[
            MountEntry(name=name, path=f"{name}/", readOnly=mounts[name].read_only)
            for name in sorted(mounts.keys())
        ]
    )

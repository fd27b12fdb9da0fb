from __future__ import annotations

from email.utils import format_datetime
from typing import Any, Optional

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import FileResponse, JSONResponse, Response
from starlette.concurrency import run_in_threadpool

from filelink.call import Call, Verb
from filelink.client import FileClient
from filelink.metadata import IDENTITY
from filelink.mounts import Mount, MountError, UnknownMountError, mount_reference, public_path
from filelink.representation import FileRepresentation, ReferenceList


router = APIRouter()


_METHODS = ["GET", "HEAD", "POST", "PUT", "DELETE", "PATCH", "OPTIONS"]
_WRITE_VERBS = (Verb.PUT, Verb.DELETE)


def get_file_client(request: Request) -> FileClient:
    return request.app.state.file_client


def _allow(mount: Mount) -> str:
    return "GET, HEAD" if mount.read_only else "GET, HEAD, PUT, DELETE"


def _wants_json(request: Request) -> bool:
    return "application/json" in request.headers.get("accept", "")


def _file_response(output: FileRepresentation) -> FileResponse:
    meta = output.metadata
    media_type = str(meta.media_type) if meta.media_type else None
    if media_type and meta.character_set:
        media_type = f"{media_type}; charset={meta.character_set}"
    headers: dict[str, str] = {}
    if meta.language:
        headers["Content-Language"] = str(meta.language)
    if meta.encoding and meta.encoding != IDENTITY:
        headers["Content-Encoding"] = str(meta.encoding)
    if meta.expiration_date:
        headers["Expires"] = format_datetime(meta.expiration_date, usegmt=True)
    return FileResponse(output.path, media_type=media_type, headers=headers)


def _listing_entries(mount: Mount, listing: ReferenceList) -> list[dict[str, Any]]:
    entries: list[dict[str, Any]] = []
    for ref in listing.references:
        path = public_path(mount, ref)
        if path is None:
            continue
        kind = "dir" if ref.endswith("/") else "file"
        name = path.rstrip("/").rsplit("/", 1)[-1]
        entries.append({"name": name, "path": path, "kind": kind, "reference": ref})
    return entries


def _to_response(call: Call, mount: Mount, request: Request, path: str) -> Response:
    status = call.status
    if status is None:
        raise RuntimeError(f"{call.method} call finished without a status")
    output = call.output

    if isinstance(output, FileRepresentation):
        return _file_response(output)
    if isinstance(output, ReferenceList):
        if _wants_json(request):
            return JSONResponse({"path": path, "entries": _listing_entries(mount, output)})
        return Response(content=output.text(), media_type=str(output.metadata.media_type))

    if status.code == 204:
        return Response(status_code=204)
    if status.is_success:
        return Response(status_code=status.code)

    headers = {"Allow": _allow(mount)} if status.code == 405 else None
    body: dict[str, Optional[str]] = {
        "detail": status.description or status.name,
        "reason": status.reason.value if status.reason else None,
    }
    return JSONResponse(body, status_code=status.code, headers=headers)


async def _dispatch(mount_name: str, subpath: str, request: Request, client: FileClient) -> Response:
    try:
        mount, reference = mount_reference(mount_name, subpath)
    except UnknownMountError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
    except MountError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e

    verb = Verb.parse(request.method)
    if mount.read_only and verb in _WRITE_VERBS:
        return JSONResponse(
            {"detail": "Mount is read-only", "reason": None},
            status_code=405,
            headers={"Allow": _allow(mount)},
        )

    body: Optional[bytes] = None
    if verb is Verb.PUT:
        body = await request.body()

    call = Call(request.method, reference, input=body, input_size=len(body) if body is not None else None)
    await run_in_threadpool(client.handle, call)
    return _to_response(call, mount, request, f"{mount.name}/{subpath}")


@router.api_route("/api/files/{mount_name}", methods=_METHODS)
async def api_files_mount_root(
    mount_name: str,
    request: Request,
    client: FileClient = Depends(get_file_client),
) -> Response:
    return await _dispatch(mount_name, "", request, client)


@router.api_route("/api/files/{mount_name}/{subpath:path}", methods=_METHODS)
async def api_files(
    mount_name: str,
    subpath: str,
    request: Request,
    client: FileClient = Depends(get_file_client),
) -> Response:
    return await _dispatch(mount_name, subpath, request, client)

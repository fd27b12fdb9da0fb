from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from filelink.api.files import router as files_router
from filelink.api.logs import router as logs_router
from filelink.api.mounts import router as mounts_router
from filelink.client import FileClient
from filelink.logging.ndjson import init_logging, log_event
from filelink.settings import build_client, cors_origins


def _load_dotenvs() -> None:
    """
    Load environment variables from:
    - <project>/.env
    - the current working directory's .env
    Existing environment variables win.
    """
    project_dir = Path(__file__).resolve().parents[1]
    load_dotenv(project_dir / ".env")
    load_dotenv(Path.cwd() / ".env")


def create_app(file_client: Optional[FileClient] = None) -> FastAPI:
    _load_dotenvs()
    try:
        init_logging()
    except OSError:
        # The app still starts; log_event itself is best-effort.
        pass
    app = FastAPI(title="filelink API", version="0.1.0")
    app.state.file_client = file_client or build_client()

    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_origins(),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/api/health")
    def health() -> dict:
        return {"ok": True}

    @app.middleware("http")
    async def log_exceptions(request, call_next):  # type: ignore[no-untyped-def]
        try:
            return await call_next(request)
        except Exception as e:  # noqa: BLE001
            log_event(
                level="error",
                event="api.exception",
                data={"method": request.method, "path": str(request.url.path), "error": str(e)},
            )
            raise

    @app.on_event("startup")
    async def startup_tasks() -> None:
        client: FileClient = app.state.file_client
        log_event(
            level="info",
            event="app.startup",
            data={
                "extensions": len(client.metadata_mappings),
                "timeToLive": client.time_to_live,
                "defaultMediaType": str(client.default_media_type),
            },
        )

    app.include_router(files_router)
    app.include_router(mounts_router)
    app.include_router(logs_router)
    return app

"""
META Storage Service

FastAPI service that stores objects under the configured storage directory
and exposes the bucket/object HTTP endpoints:
- GET    /                         list buckets
- GET    /{bucket}                 list objects
- POST   /{bucket}                 upload one or more objects (generated ids)
- GET    /{bucket}/{id}            download object (If-None-Match aware)
- POST   /{bucket}/{id}            upload object under a stable id
- GET    /{bucket}/{id}/meta       object meta record
- DELETE /{bucket}/{id}            delete object

Every endpoint except /health requires the X-ClientId and X-Token headers.
"""

import asyncio
import logging
import os
from typing import Any, Dict, List, Optional

from fastapi import FastAPI, File, Request, UploadFile, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse, Response, StreamingResponse
from pydantic import BaseModel

from shared.auth.authorizer import Authorizer
from shared.auth.credential_store import CredentialStore
from shared.auth.token_middleware import TokenAuthMiddleware
from shared.config.config_manager import ConfigManager
from shared.errors import (
    MetaParseError,
    NotFoundError,
    StorageIOError,
    StorageServiceError,
    UnauthorizedError,
    ValidationFailure,
)
from shared.models.stored_object import NOT_MODIFIED

from . import __version__
from .audit import log_storage_event
from .base import guess_mime_type
from .storage import Storage


logger = logging.getLogger(__name__)

CORS_ALLOW_HEADERS = ["Origin", "X-Requested-With", "Content-Type", "Accept", "X-ClientId", "X-Token"]
STREAM_CHUNK_SIZE = 8192

ERROR_STATUS_CODES = {
    ValidationFailure: status.HTTP_400_BAD_REQUEST,
    UnauthorizedError: status.HTTP_401_UNAUTHORIZED,
    NotFoundError: status.HTTP_404_NOT_FOUND,
    MetaParseError: status.HTTP_500_INTERNAL_SERVER_ERROR,
    StorageIOError: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


class HealthResponse(BaseModel):
    service: str
    status: str
    version: str
    storage: Dict[str, Any]
    message: str


class ObjectMetaResponse(BaseModel):
    mime: str
    modified: int
    user: str


def _status_for(exc: StorageServiceError) -> int:
    for error_type, status_code in ERROR_STATUS_CODES.items():
        if isinstance(exc, error_type):
            return status_code
    return status.HTTP_500_INTERNAL_SERVER_ERROR


def _normalize_etag(value: Optional[str]) -> Optional[str]:
    """Accept the validator bare, quoted or weak (W/"...")."""
    if not value:
        return None
    value = value.strip()
    if value.startswith("W/"):
        value = value[2:]
    return value.strip('"') or None


def _client_id(request: Request) -> str:
    return request.state.client_id


def _open_content(filename: str):
    """Open an object's content file and return (handle, size)."""
    f = open(filename, "rb")
    try:
        return f, os.fstat(f.fileno()).st_size
    except OSError:
        f.close()
        raise


def _stream_content(f):
    # The handle is already open, so a concurrent unlink cannot cut the body short
    with f:
        while True:
            data = f.read(STREAM_CHUNK_SIZE)
            if not data:
                break
            yield data


def create_app(
    storage: Storage,
    authorizer: Authorizer,
    allowed_origins: Optional[List[str]] = None
) -> FastAPI:
    """
    Build the HTTP application around a storage engine and authorizer.

    Args:
        storage: Storage engine instance
        authorizer: Authorizer verifying client tokens
        allowed_origins: CORS origins (defaults to all)

    Returns:
        Configured FastAPI application
    """
    app = FastAPI(title="META Storage Service", version=__version__)
    app.state.storage = storage
    app.state.authorizer = authorizer

    # Added last so it wraps auth and answers preflight requests first
    app.add_middleware(TokenAuthMiddleware, authorizer=authorizer)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=allowed_origins or ["*"],
        allow_methods=["GET", "POST", "DELETE", "OPTIONS"],
        allow_headers=CORS_ALLOW_HEADERS,
        expose_headers=["ETag"],
    )

    @app.exception_handler(StorageServiceError)
    async def storage_error_handler(request: Request, exc: StorageServiceError):
        status_code = _status_for(exc)
        if status_code >= 500:
            logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
        return JSONResponse(
            status_code=status_code,
            content={"detail": exc.message, "code": exc.code}
        )

    @app.get("/health", response_model=HealthResponse)
    async def health_check():
        return HealthResponse(
            service="storage",
            status="ready",
            version=__version__,
            storage=storage.get_configuration(),
            message="Storage service is ready and configured",
        )

    @app.get("/")
    async def list_buckets():
        return await storage.list_buckets()

    @app.get("/{bucket}")
    async def list_objects(bucket: str):
        return await storage.list_objects(bucket)

    @app.post("/{bucket}")
    async def upload_objects(
        bucket: str,
        request: Request,
        uploads: Optional[List[UploadFile]] = File(None, alias="object")
    ):
        client_id = _client_id(request)
        files = [upload for upload in (uploads or []) if upload.filename]
        if not files:
            raise ValidationFailure("Missing object field.")

        logger.debug(f"Client {{{client_id}}} requested object write for {{{bucket}}} ({len(files)} files).")

        async def handle_file(upload: UploadFile) -> str:
            data = await upload.read()
            return await storage.write_object(
                bucket,
                None,
                upload.content_type or guess_mime_type(upload.filename),
                data,
                client_id
            )

        return list(await asyncio.gather(*(handle_file(upload) for upload in files)))

    @app.get("/{bucket}/{object_id}/meta", response_model=ObjectMetaResponse)
    async def get_object_meta(bucket: str, object_id: str, request: Request):
        logger.debug(f"Client {{{_client_id(request)}}} requested object meta for {{{bucket}/{object_id}}}.")
        meta = await storage.get_meta(bucket, object_id)
        return meta.to_dict()

    @app.get("/{bucket}/{object_id}")
    async def get_object(bucket: str, object_id: str, request: Request):
        logger.debug(f"Client {{{_client_id(request)}}} requested object {{{bucket}/{object_id}}}.")
        if_none_match = _normalize_etag(request.headers.get("if-none-match"))

        result = await storage.get_object_filename(bucket, object_id, if_none_match)
        if result is NOT_MODIFIED:
            return Response(status_code=status.HTTP_304_NOT_MODIFIED, headers={"ETag": if_none_match})

        try:
            handle, size = await asyncio.to_thread(_open_content, result.filename)
        except FileNotFoundError:
            # Deleted after the meta lookup
            raise NotFoundError(f"Object {{{bucket}/{object_id}}} not found.")
        except OSError as e:
            raise StorageIOError(f"Cannot read object {{{bucket}/{object_id}}}: {e.strerror or e}") from e

        return StreamingResponse(
            _stream_content(handle),
            media_type=result.meta.mime_type,
            headers={"ETag": result.etag, "Content-Length": str(size)},
        )

    @app.post("/{bucket}/{object_id}")
    async def upload_object(
        bucket: str,
        object_id: str,
        request: Request,
        upload: Optional[UploadFile] = File(None, alias="object")
    ):
        client_id = _client_id(request)
        if upload is None or not upload.filename:
            raise ValidationFailure("Missing object field.")

        logger.debug(f"Client {{{client_id}}} requested write for object {{{bucket}/{object_id}}}.")
        data = await upload.read()
        return await storage.write_object(bucket, object_id, upload.content_type, data, client_id)

    @app.delete("/{bucket}/{object_id}")
    async def delete_object(bucket: str, object_id: str, request: Request):
        client_id = _client_id(request)
        logger.debug(f"Client {{{client_id}}} requested delete of object {{{bucket}/{object_id}}}.")
        await storage.delete_object(bucket, object_id, client_id)
        return PlainTextResponse("OK")

    return app


def configure_logging(level: str = "INFO") -> None:
    """Configure root logging for the service process."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )


def create_app_from_config(config: ConfigManager) -> FastAPI:
    """
    Bootstrap the service from configuration.

    Loads credentials once, prepares the storage root and wires the audit
    logger to storage notifications.

    Raises:
        ConfigValidationError: If the credentials file is missing or invalid
        ValueError: If the storage directory does not exist
    """
    storage_dir = config.storage_dir
    if config.create_storage_dir:
        os.makedirs(storage_dir, exist_ok=True)

    credentials = CredentialStore.from_file(config.credentials_file)
    storage = Storage(storage_dir, lock_objects=config.object_locks_enabled)
    storage.subscribe(log_storage_event)

    logger.info(f"Storage service initialized with root {storage.storage_dir}")
    return create_app(storage, Authorizer(credentials), allowed_origins=config.allowed_origins)


def create_app_from_env() -> FastAPI:
    """Factory for ``uvicorn --factory storage.main:create_app_from_env``."""
    return create_app_from_config(ConfigManager())


def run() -> None:
    config = ConfigManager()
    configure_logging(config.get_log_level())
    app = create_app_from_config(config)

    import uvicorn
    uvicorn.run(app, host=config.host, port=config.get_port())


if __name__ == "__main__":
    run()

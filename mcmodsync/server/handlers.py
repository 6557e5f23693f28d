"""
HTTP request handlers for the mcmodsync server
"""

import logging
from typing import Optional

from fastapi import FastAPI, HTTPException, Query
from fastapi.responses import FileResponse, JSONResponse

from mcmodsync.server.services import ManifestSource
from mcmodsync.shared.exceptions import NotFoundError

logger = logging.getLogger(__name__)


def register_routes(app: FastAPI, source: ManifestSource, list_endpoint: str, download_endpoint: str):
    """Attach the list, download and health endpoints to app"""

    @app.get(list_endpoint)
    async def list_mods():
        """Return the manifest: current mods and deletion tombstones"""
        manifest = source.get_manifest()
        logger.info(f"📋 Sent mod list: {len(manifest.entries)} files")
        return JSONResponse(manifest.to_dict())

    @app.api_route(download_endpoint, methods=["GET", "HEAD"])
    async def download_mod(file: Optional[str] = Query(None)):
        """Stream one mod file, addressed by its base name"""
        if not file:
            raise HTTPException(status_code=400, detail="missing 'file' parameter")

        try:
            path = source.resolve_file(file)
        except NotFoundError as e:
            logger.warning(f"❌ {e}")
            raise HTTPException(status_code=404, detail="file not found")

        logger.info(f"📥 Sending mod: {file}")
        return FileResponse(
            path,
            media_type="application/octet-stream",
            filename=file,
        )

    @app.get("/health")
    async def health_check():
        """Report whether the manifest is loaded"""
        manifest = source.get_manifest()
        return {
            "status": "ok",
            "file_count": len(manifest.entries),
            "delete_count": len(manifest.deletions),
            "built_at": source.built_at.isoformat() if source.built_at else None,
        }

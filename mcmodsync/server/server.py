#!/usr/bin/env python3
"""
Minecraft Mod Sync Server
Serves the mod list and mod files of one folder over HTTP.
"""
import argparse
import logging
import sys
from contextlib import asynccontextmanager
from typing import List, Optional

import uvicorn
from fastapi import FastAPI

from mcmodsync import __version__
from mcmodsync.server.config import ServerConfig
from mcmodsync.server.handlers import register_routes
from mcmodsync.server.services import ManifestSource
from mcmodsync.shared.exceptions import ModSyncError
from mcmodsync.shared.utils.log import setup_logger

logger = logging.getLogger(__name__)


def create_app(source: ManifestSource, config: ServerConfig) -> FastAPI:
    """Create the application serving an already built manifest"""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info(f"🚀 mcmodsync server {__version__} ready, mods folder: {source.mods_folder}")
        yield
        logger.info("🛑 mcmodsync server stopped")

    app = FastAPI(
        title="mcmodsync server",
        description="Mod list and mod downloads for mcmodsync clients",
        version=__version__,
        lifespan=lifespan,
    )
    register_routes(app, source, config.list_endpoint, config.download_endpoint)
    return app


def build_source(config: ServerConfig) -> ManifestSource:
    """Build the manifest once; errors propagate"""
    source = ManifestSource(config.mods_folder, config.delete_file)
    source.build()
    return source


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="mcmodsync-server", description="mcmodsync mod server")
    parser.add_argument("--config", "-c", help="JSON settings file")
    parser.add_argument("--mods-folder", "-m", help="folder with the mods to serve")
    parser.add_argument("--delete-file", "-d", help="JSON file listing deleted mods")
    parser.add_argument("--host", help="address to listen on")
    parser.add_argument("--port", "-P", type=int, help="port to listen on")
    parser.add_argument("--list-endpoint", help="path of the mod list endpoint")
    parser.add_argument("--download-endpoint", help="path of the download endpoint")
    parser.add_argument("--log-level", help="debug, info, warning or error")
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    """Build the manifest and serve it until interrupted"""
    args = parse_args(argv)
    try:
        config = ServerConfig(
            args.config,
            mods_folder=args.mods_folder,
            delete_file=args.delete_file,
            host=args.host,
            port=args.port,
            list_endpoint=args.list_endpoint,
            download_endpoint=args.download_endpoint,
            log_level=args.log_level,
        )
    except ValueError as e:
        setup_logger("mcmodsync")
        logger.error(f"❌ Invalid settings: {e}")
        return 1

    setup_logger("mcmodsync", config.log_level)

    try:
        source = build_source(config)
    except (ModSyncError, OSError) as e:
        logger.error(f"❌ Cannot build the mod list: {e}")
        return 1

    app = create_app(source, config)
    logger.info(f"🚀 Listening on http://{config.host}:{config.port}")
    uvicorn.run(
        app,
        host=config.host,
        port=config.port,
        log_level=config.log_level.lower(),
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())

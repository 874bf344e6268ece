# shardfs/main.py
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from shardfs.core.config import LOG_LEVEL
from shardfs.core.errors import FSError
from shardfs.core.fs import shutdown
from shardfs.routers import fs

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    # Close every shard store opened during the process lifetime
    shutdown()


app = FastAPI(title="shardfs", lifespan=lifespan)

# Add CORS middleware (adjust allow_origins as needed for production)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(fs.router, prefix="/fs", tags=["File System"])


@app.exception_handler(FSError)
async def fs_error_handler(request: Request, exc: FSError):
    logger.debug(f"{request.method} {request.url.path} failed: {exc.kind}: {exc}")
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": str(exc), "kind": exc.kind, "path": exc.path},
    )


@app.get("/")
def read_root():
    return {"message": "Welcome to the shardfs file store!"}

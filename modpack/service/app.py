"""FastAPI application entrypoint for modpack service mode."""

from __future__ import annotations

import copy
from pathlib import Path
from typing import Any, Callable, List

import uvicorn
from fastapi import Depends, FastAPI
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from ..config import ConfigError, PackConfig
from ..pipeline import Packager
from ..registry import PackError


class PackRequest(BaseModel):
    roots: List[str] = Field(min_length=1)
    output: str
    verify: bool = True


class DiagnosticModel(BaseModel):
    path: str
    line: int
    column: int
    message: str


class PackResponse(BaseModel):
    output: str
    modules: List[str]
    diagnostics: List[DiagnosticModel]


class HealthResponse(BaseModel):
    status: str


def _default_packager() -> Packager:
    return Packager()


def create_app(
    packager_factory: Callable[[], Packager] = _default_packager,
) -> FastAPI:
    """Create the FastAPI application exposing pack runs."""

    app = FastAPI(title="modpack service", version="1.0.0")

    async def get_packager() -> Packager:
        # A run mutates packager state, so every request gets its own.
        return packager_factory()

    @app.get("/health", response_model=HealthResponse)
    async def health() -> HealthResponse:
        return HealthResponse(status="ok")

    @app.post("/pack", response_model=PackResponse)
    async def pack_roots(
        payload: PackRequest,
        packager: Packager = Depends(get_packager),
    ) -> PackResponse:
        if not payload.verify:
            packager.config.verifier.enabled = False
        result = await packager.run_with_report(payload.roots, Path(payload.output))
        return PackResponse(
            output=payload.output,
            modules=result.modules,
            diagnostics=[
                DiagnosticModel(
                    path=item.path, line=item.line, column=item.column, message=item.message
                )
                for item in result.diagnostics
            ],
        )

    @app.exception_handler(FileNotFoundError)
    @app.exception_handler(NotADirectoryError)
    async def missing_root_handler(_: Any, exc: OSError) -> JSONResponse:
        return JSONResponse(status_code=404, content={"detail": str(exc)})

    @app.exception_handler(PackError)
    @app.exception_handler(ConfigError)
    async def pack_error_handler(_: Any, exc: RuntimeError) -> JSONResponse:
        return JSONResponse(status_code=400, content={"detail": str(exc)})

    return app


def run_service(
    host: str = "127.0.0.1", port: int = 8000, config: PackConfig | None = None
) -> None:  # pragma: no cover - integration path
    base = config or PackConfig()
    app = create_app(lambda: Packager(copy.deepcopy(base)))
    uvicorn.run(app, host=host, port=port)

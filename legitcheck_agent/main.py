from __future__ import annotations

import logging
import os
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .config import Settings, load_env
from .models import VerificationResponse
from .verifier import InvalidQueryError, Verifier, build_verifier

load_env()

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


def get_verifier(request: Request) -> Verifier:
    return request.app.state.verifier


async def _http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    message = "Method not allowed" if exc.status_code == 405 else exc.detail
    return JSONResponse(status_code=exc.status_code, content={"error": message}, headers=exc.headers)


def create_app(settings: Settings | None = None, verifier: Verifier | None = None) -> FastAPI:
    settings = settings or Settings.from_env()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if getattr(app.state, "verifier", None) is None:
            app.state.verifier = build_verifier(settings)
        yield

    app = FastAPI(title="LegitCheck Agent", version="0.1.0", lifespan=lifespan)
    app.state.verifier = verifier

    # For local dev, this defaults to allowing http://localhost:3000.
    # In production, set LEGITCHECK_CORS_ORIGINS to your deployed frontend origins.
    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.cors_origins),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_exception_handler(StarletteHTTPException, _http_error_handler)

    @app.get("/healthz")
    def healthz():
        return {"ok": True}

    @app.post("/verify-company", response_model=VerificationResponse)
    async def verify_company_endpoint(request: Request, verifier: Verifier = Depends(get_verifier)):
        try:
            # An empty body carries no query at all.
            payload = await request.json() if (await request.body()).strip() else None
            query = payload.get("query") if isinstance(payload, dict) else None
            return await verifier.verify(query)
        except InvalidQueryError as e:
            raise HTTPException(status_code=400, detail=str(e))
        except Exception as e:
            logger.exception("Verification failed")
            return JSONResponse(
                status_code=500,
                content={"error": "Internal verification failed", "details": str(e)},
            )

    return app


app = create_app()

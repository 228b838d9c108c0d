# smartauto/app.py

import logging
import os
from contextlib import asynccontextmanager
import uvicorn
from fastapi import FastAPI
from dotenv import load_dotenv
from fastapi.middleware.cors import CORSMiddleware

load_dotenv()

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

from smartauto.db import engine, Base
from smartauto import models  # noqa: F401  registers tables on Base.metadata
from smartauto import auth, owner, relay, storefront


class StorefrontCORSMiddleware(CORSMiddleware):
    """Credentialed CORS for the storefront; paths under ``exclude`` answer their own CORS."""

    def __init__(self, app, exclude=(), **options):
        super().__init__(app, **options)
        self.exclude = tuple(exclude)

    async def __call__(self, scope, receive, send):
        if scope["type"] == "http" and scope["path"].startswith(self.exclude):
            await self.app(scope, receive, send)
            return
        await super().__call__(scope, receive, send)


@asynccontextmanager
async def lifespan(app: FastAPI):
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield
    await engine.dispose()

app = FastAPI(
    title="SmartAuto Storefront Backend",
    lifespan=lifespan,
)

origins = [
    o.strip()
    for o in os.getenv("CORS_ORIGINS", "http://localhost:5173,http://127.0.0.1:5173").split(",")
    if o.strip()
]
app.add_middleware(
    StorefrontCORSMiddleware,
    exclude=(relay.router.prefix,),
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(auth.router)
app.include_router(storefront.router)
app.include_router(relay.router)
app.include_router(owner.router)


@app.get("/health")
async def health():
    return {"status": "ok"}


if __name__ == "__main__":
    uvicorn.run(
        "smartauto.app:app",
        host="0.0.0.0",
        port=int(os.getenv("PORT", 8000)),
        reload=True,
    )

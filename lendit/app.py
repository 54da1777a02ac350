#!/usr/bin/env python3

from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from lendit.routes import api
from lendit.core import database
from lendit.core.exceptions import LendingAPIError
from lendit.core.sweeps import Sweeper
from lendit.configs import OPTIONS, SWEEP_INTERVAL, TESTING
from lendit import __version__ as VERSION


@asynccontextmanager
async def lifespan(app: FastAPI):
    database.init()
    app.state.sweeper = Sweeper(interval=0 if TESTING else SWEEP_INTERVAL).start()
    yield
    app.state.sweeper.stop(timeout=5)


app = FastAPI(
    title="Lendit API",
    description="Lendit: lending and reservations for shared collections",
    version=VERSION,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:3000"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(LendingAPIError)
async def lending_error_handler(request: Request, exc: LendingAPIError):
    return api.lending_error_response(exc)


app.include_router(api.router, prefix="/v1/api")

if __name__ == "__main__":
    import uvicorn
    uvicorn.run("lendit.app:app", **OPTIONS)

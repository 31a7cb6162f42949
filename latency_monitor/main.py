from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI

from latency_monitor.config import settings
from latency_monitor.log import setup_logging
from latency_monitor.middleware import request_logging_middleware
from latency_monitor.routers import public
from latency_monitor.services import state

setup_logging()

@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    # espera las escrituras de historial pendientes antes de salir
    if state.recorder is not None:
        await state.recorder.drain()

app = FastAPI(title=settings.APP_TITLE, version=settings.APP_VERSION, lifespan=lifespan)

# ---- middleware
request_logging_middleware(app)

# ---- rutas
app.include_router(public.router)

def run():
    uvicorn.run(app, host=settings.HOST, port=settings.PORT, log_level=settings.LOG_LEVEL.lower())

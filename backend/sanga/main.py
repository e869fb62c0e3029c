"""FastAPI application entrypoint."""

from __future__ import annotations

from contextlib import asynccontextmanager

import socketio
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from sanga.api import connections, notifications, ops
from sanga.api.errors import install_error_handlers
from sanga.domain.connections.sockets import ConnectionsNamespace
from sanga.domain.notifications import jobs as notification_jobs
from sanga.infra.scheduler import JobScheduler
from sanga.infra.store import close_store, get_store
from sanga.obs import init as obs_init
from sanga.settings import allowed_origins, settings


@asynccontextmanager
async def lifespan(app: FastAPI):
	get_store()
	scheduler: JobScheduler | None = None
	if settings.notification_sweep_enabled:
		scheduler = JobScheduler()
		scheduler.start()
		notification_jobs.install(scheduler)
		app.state.scheduler = scheduler
	try:
		yield
	finally:
		if scheduler is not None:
			scheduler.shutdown()
		await close_store()


app = FastAPI(title="Sadhana Sanga Connections", lifespan=lifespan)
install_error_handlers(app)

origins = list(allowed_origins())

app.add_middleware(
	CORSMiddleware,
	allow_origins=origins,
	allow_credentials=True,
	allow_methods=["*"],
	allow_headers=["*"],
)

# Use the same allowed origins for Socket.IO as for the REST API
sio = socketio.AsyncServer(async_mode="asgi", cors_allowed_origins=origins)
sio.register_namespace(ConnectionsNamespace())
socket_app = socketio.ASGIApp(sio, other_asgi_app=app)
obs_init(app)

app.include_router(connections.router)
app.include_router(notifications.router)
app.include_router(ops.router)

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from eventflow.core.logging_config import configure_logging
from eventflow.database.db import Base, engine
from eventflow.models import bookings, events, organizations, venues  # noqa: F401  (register tables)
from eventflow.routes import bookings as booking_routes
from eventflow.routes import events as event_routes
from eventflow.routes import organizations as organization_routes
from eventflow.routes import reports as report_routes


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging()
    # Create all tables (in production, use migrations such as Alembic)
    Base.metadata.create_all(bind=engine)
    yield


app = FastAPI(title="eventflow", lifespan=lifespan)

# Configure CORS
origins = [
    "*"
]

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include the routers
app.include_router(organization_routes.router)
app.include_router(event_routes.router)
app.include_router(booking_routes.router)
app.include_router(report_routes.router)

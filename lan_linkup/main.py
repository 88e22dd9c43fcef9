"""FastAPI application entry point."""
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from lan_linkup.config import settings
from lan_linkup.database import Base, engine
from lan_linkup.errors import register_exception_handlers
from lan_linkup.logging_config import configure_logging
from lan_linkup.middleware import RequestLoggingMiddleware

# Import routers
from lan_linkup.routers import auth, parties, friends, friend_requests, users

# Import all models so Base.metadata knows about them
from lan_linkup.models.user import User                  # noqa: F401
from lan_linkup.models.party import Party                # noqa: F401
from lan_linkup.models.attendee import PartyAttendee     # noqa: F401
from lan_linkup.models.friendship import Friendship      # noqa: F401

configure_logging()

app = FastAPI(
    title="LAN Linkup",
    description="Discover, host and join local LAN parties with your friends",
    version="0.1.0",
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS.split(","),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(RequestLoggingMiddleware)

register_exception_handlers(app)

# Register routers
app.include_router(auth.router, prefix="/api/auth", tags=["Auth"])
app.include_router(parties.router, prefix="/api/parties", tags=["Parties"])
app.include_router(friends.router, prefix="/api/friends", tags=["Friends"])
app.include_router(friend_requests.router, prefix="/api/friend-requests", tags=["FriendRequests"])
app.include_router(users.router, prefix="/api/users", tags=["Users"])


@app.on_event("startup")
def on_startup():
    """Create database tables on startup (for SQLite dev mode)."""
    if settings.DATABASE_URL.startswith("sqlite"):
        Base.metadata.create_all(bind=engine)


@app.get("/api/health")
def health_check():
    return {"status": "ok"}

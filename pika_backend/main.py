"""
Pika Notes Backend - FastAPI Application Entry Point
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from pika_backend import __version__
from pika_backend.routers import config, diff, sessions, suggestions
from pika_backend.services.config_manager import ConfigManager
from pika_backend.services.session_store import DiffSessionStore
from pika_backend.services.suggestion_store import SuggestionStore


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager - startup and shutdown logic"""
    print("[Backend] Starting Pika Notes Backend...")
    config_manager = ConfigManager.get_instance()
    print(f"[Backend] ConfigManager initialized ({config_manager.config_dir})")

    app.state.session_store = DiffSessionStore(config_manager.diff_settings())
    app.state.suggestion_store = SuggestionStore(config_manager.config_dir / "suggestions.json")

    yield
    print(f"[Backend] Shutting down, {len(app.state.session_store)} open sessions dropped")
    app.state.suggestion_store.flush()


app = FastAPI(
    title="Pika Notes Backend",
    description="Line-diff review of AI-formatted notes",
    version=__version__,
    lifespan=lifespan,
)

# The mobile client talks to a locally configured host
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(diff.router, prefix="/api/diff", tags=["diff"])
app.include_router(sessions.router, prefix="/api/sessions", tags=["sessions"])
app.include_router(suggestions.router, prefix="/api/suggestions", tags=["suggestions"])
app.include_router(config.router, prefix="/api/config", tags=["config"])


@app.get("/health")
async def health_check():
    """Health check endpoint"""
    return {"status": "healthy", "service": "pika-notes-backend"}


def run():
    import uvicorn

    server = ConfigManager.get_instance().get_config().get("server", {})
    uvicorn.run(app, host=server.get("host", "0.0.0.0"), port=server.get("port", 8000))


if __name__ == "__main__":
    run()

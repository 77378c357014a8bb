import os

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from adminconsole.application import ConsoleService, configure_console_service, load_screens
from adminconsole.application.screens import required_fields
from adminconsole.core.logging import bind_context, clear_context, configure_logging
from adminconsole.infrastructure import CollectionStore, InMemoryCollectionStore, RestCollectionStore
from adminconsole.routes import collections, screens


def _build_store(required: dict[str, list[str]]) -> CollectionStore:
    store_url = os.getenv("CONSOLE_STORE_URL")
    if store_url:
        return RestCollectionStore(store_url, api_key=os.getenv("CONSOLE_STORE_KEY"))
    seed_file = os.getenv("CONSOLE_SEED_FILE")
    if seed_file:
        return InMemoryCollectionStore.from_json_file(seed_file, required_fields=required)
    return InMemoryCollectionStore(required_fields=required)


def create_app() -> FastAPI:
    configure_logging()
    app = FastAPI(title="Admin Console API", version="0.1.0")

    definitions = load_screens()
    store = _build_store(required_fields(definitions))
    configure_console_service(
        ConsoleService(store, screens=definitions, owner_id=os.getenv("CONSOLE_OWNER_ID") or None)
    )

    origins_env = os.getenv("API_CORS_ORIGINS", "")
    origins = [origin.strip() for origin in origins_env.split(",") if origin.strip()]
    if not origins:
        origins = ["http://localhost:3000", "http://127.0.0.1:3000"]

    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def log_context(request: Request, call_next):
        clear_context()
        bind_context(method=request.method, path=request.url.path)
        return await call_next(request)

    app.include_router(screens.router, prefix="/api")
    app.include_router(collections.router, prefix="/api")

    @app.get("/", include_in_schema=False)
    async def root() -> JSONResponse:
        """Provide a lightweight landing page for container checks."""
        return JSONResponse(
            {
                "message": "Admin Console API",
                "docs": "/docs",
                "health": "/api/screens",
            }
        )

    return app


app = create_app()

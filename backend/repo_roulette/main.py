import json
import uuid
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import AsyncGenerator, Tuple

from fastapi import FastAPI, HTTPException, Query, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import HTMLResponse, StreamingResponse
from loguru import logger

from .config import get_settings
from .datasources.github_adapter import GitHubAdapter
from .languages import get_languages
from .schemas import FetchMode, FetchRequest, LanguagesResponse, ViewSnapshot
from .services.controller import ControllerRegistry, RequestController
from .ui import render_index

CLIENT_COOKIE = "rr_client"

settings = get_settings()
github = GitHubAdapter(settings)
controllers = ControllerRegistry(github)


@asynccontextmanager
async def lifespan(_: FastAPI):
    if not settings.github_token:
        logger.warning("[api] GITHUB_TOKEN not set, using unauthenticated rate limits")
    yield
    await github.aclose()


app = FastAPI(title="Repo Roulette", version="0.1.0", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def sse(event: str, data: dict) -> str:
    # data is already JSON-mode; keep "Loading…" unescaped
    return f"event: {event}\ndata: {json.dumps(data, ensure_ascii=False)}\n\n"


def client_controller(request: Request) -> Tuple[str, RequestController, bool]:
    """Controller for the calling browser, plus whether its id is new."""
    client_id = request.cookies.get(CLIENT_COOKIE)
    is_new = not client_id
    if is_new:
        client_id = uuid.uuid4().hex
    return client_id, controllers.get(client_id), is_new


def remember_client(response: Response, client_id: str, is_new: bool) -> None:
    if is_new:
        response.set_cookie(CLIENT_COOKIE, client_id, httponly=True, samesite="lax")


@app.get("/health")
async def health():
    return {"status": "ok", "timestamp": datetime.now(timezone.utc).isoformat()}


@app.get("/", response_class=HTMLResponse)
async def index(request: Request):
    client_id, _, is_new = client_controller(request)
    response = HTMLResponse(render_index(get_languages()))
    remember_client(response, client_id, is_new)
    return response


@app.get("/api/languages", response_model=LanguagesResponse)
async def languages():
    return LanguagesResponse(languages=get_languages())


@app.get("/api/state", response_model=ViewSnapshot)
async def state(request: Request, response: Response):
    client_id, controller, is_new = client_controller(request)
    remember_client(response, client_id, is_new)
    return controller.snapshot()


@app.post("/api/fetch", response_model=ViewSnapshot)
async def fetch(body: FetchRequest, request: Request, response: Response):
    client_id, controller, is_new = client_controller(request)
    remember_client(response, client_id, is_new)
    logger.info(f"[api] {body.mode} requested for {body.language!r}")
    view = await controller.run(body.language, mode=body.mode)
    if view is None:
        raise HTTPException(status_code=409, detail="Superseded by a newer request")
    return view


@app.get("/api/fetch/stream")
async def fetch_stream(
    request: Request,
    language: str = Query(..., min_length=1),
    mode: FetchMode = Query("fetch"),
):
    language = language.strip()
    if not language:
        raise HTTPException(status_code=422, detail="language must not be blank")
    client_id, controller, is_new = client_controller(request)

    async def event_generator() -> AsyncGenerator[str, None]:
        cycle = controller.start(language, mode=mode)
        yield sse("state", controller.snapshot().model_dump(mode="json"))
        try:
            view = await controller.complete(cycle)
        except Exception as exc:
            logger.exception(f"[api] cycle {cycle.id} crashed")
            yield sse("failed", {"detail": f"Unexpected error: {exc}"})
            if controller.is_active(cycle):
                yield sse("state", controller.snapshot().model_dump(mode="json"))
            return
        if view is None:
            yield sse("superseded", {"cycle_id": cycle.id})
            return
        yield sse("state", view.model_dump(mode="json"))
        yield sse("done", {"cycle_id": cycle.id, "status": view.state.status.value})

    response = StreamingResponse(event_generator(), media_type="text/event-stream")
    remember_client(response, client_id, is_new)
    return response


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8020)

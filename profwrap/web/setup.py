import hmac
import hashlib
import logging
from datetime import datetime
from typing import Any, Dict

from starlette.routing import Route
from starlette.requests import Request
from starlette.responses import JSONResponse
from starlette.applications import Starlette
from starlette.middleware import Middleware
from starlette.middleware.cors import CORSMiddleware

import profwrap.settings as default_settings

log = logging.getLogger("asgi_server")


def compute_hash(rounds: int = default_settings.HELLO_HASH_ROUNDS) -> str:
    """Concatenates `rounds` HMAC-SHA256 digests. Deliberately CPU-bound."""
    key = default_settings.HELLO_SECRET.encode()
    message = default_settings.HELLO_MESSAGE.encode()
    return "".join(hmac.new(key, message, hashlib.sha256).hexdigest() for _ in range(rounds))


def _greeting(params: Dict[str, Any]) -> Dict[str, str]:
    world = params.get("hello") or "World"
    return {"msg": f"Hello {world}", "hash": compute_hash()}


async def hello_get(request: Request) -> JSONResponse:
    log.info(f"{datetime.now()} In hello route GET / query={dict(request.query_params)}")
    return JSONResponse(_greeting(request.query_params))


async def hello_post(request: Request) -> JSONResponse:
    if request.headers.get("content-type", "").startswith("application/json"):
        try:
            body = await request.json()
        except ValueError:
            body = {}
    else:
        body = dict(await request.form())
    if not isinstance(body, dict):
        body = {}
    log.info(f"{datetime.now()} In hello route POST / body={body}")
    return JSONResponse(_greeting(body))


routes = [
    Route("/hello", endpoint=hello_get, methods=["GET"]),
    Route("/hello", endpoint=hello_post, methods=["POST"]),
]

middleware = [
    Middleware(CORSMiddleware, allow_origins=["*"], allow_methods=["GET", "POST"]),
]

app = Starlette(debug=False, routes=routes, middleware=middleware)

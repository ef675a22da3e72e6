"""HTTP front for the product search client using FastAPI.

Run locally:
    pip install -e .
    uvicorn api_server:app --reload --port 8000

Endpoints:
- GET  /health
- GET  /api/search?keyword=...&category=All&count=10
- POST /api/search   {"keyword": "...", "category": "All", "count": 10}

- OPTIONS /api/search

Browser pre-flight requests are answered by the CORS middleware.
"""
import logging
from typing import Any, Dict, Optional

from fastapi import Body, FastAPI, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response

import amazon_paapi
from paapi_config import load_credentials_from_env, load_timeout_from_env, parse_search_query
from paapi_errors import InputError, SearchError

logger = logging.getLogger(__name__)

app = FastAPI(title="PA-API Product Search")

# Allow any origin; the search endpoint is read-only
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Content-Type"],
)


@app.exception_handler(SearchError)
async def handle_search_error(request: Request, exc: SearchError):
    if exc.status_code >= 500:
        logger.error('search failed (%s): %s', exc.kind, exc.message)
    else:
        logger.info('search rejected (%s): %s', exc.kind, exc.message)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(Exception)
async def handle_unexpected_error(request: Request, exc: Exception):
    logger.exception('unexpected error while handling %s', request.url.path)
    return JSONResponse(
        status_code=500,
        content={"success": False, "error": "internal error", "kind": "internal_error"},
    )


def run_search(params: Dict[str, Any]):
    # validate input before touching credentials or signing anything
    query = parse_search_query(params)
    credentials = load_credentials_from_env().validate()
    result = amazon_paapi.search_items(query, credentials, timeout=load_timeout_from_env())
    return {"success": True, "data": result}


@app.get("/health")
def health():
    creds = load_credentials_from_env()
    return {
        "ok": True,
        "credentials_configured": all([creds.access_key, creds.secret_key, creds.partner_tag]),
    }


@app.get("/api/search")
def search_get(
    keyword: Optional[str] = None,
    category: Optional[str] = None,
    count: Optional[str] = Query(None),
    resultCount: Optional[str] = Query(None),
):
    return run_search({"keyword": keyword, "category": category, "count": count, "resultCount": resultCount})


@app.options("/api/search")
def search_options():
    # browsers get their pre-flight answered by CORSMiddleware before this route
    return Response(status_code=200)


@app.post("/api/search")
def search_post(payload: Any = Body(None)):
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise InputError('request body must be a JSON object')
    return run_search(payload)


if __name__ == "__main__":
    import uvicorn

    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    uvicorn.run(app, host="0.0.0.0", port=8000)

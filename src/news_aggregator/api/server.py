import re
import time
from typing import List, Optional

from fastapi import Depends, FastAPI, HTTPException, Query, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel, field_validator
from starlette.exceptions import HTTPException as StarletteHTTPException

from ..config import settings
from ..core.retrieval import NewsRetriever, build_providers
from ..core.user_store import DuplicateEmailError, UserStore
from ..models.news import RetrievalResult
from ..models.user import User
from ..tools.cache import ArticleCache
from ..logging_config import get_logger
from .auth import (
    create_access_token,
    get_current_user,
    get_user_store,
    hash_password,
    verify_password,
)


app = FastAPI(
    title="News Aggregator API",
    description="Personalized news aggregation with provider fallback and caching",
    version="1.0.0",
)
logger = get_logger("api.server")


# One cache for the whole process, shared by every request.
news_cache = ArticleCache(ttl_seconds=settings.cache_ttl_seconds)
retriever = NewsRetriever(cache=news_cache, providers=build_providers(settings))


def get_retriever() -> NewsRetriever:
    return retriever


@app.middleware("http")
async def log_requests(request: Request, call_next):
    started = time.perf_counter()
    response = await call_next(request)
    logger.info(
        "request",
        method=request.method,
        path=request.url.path,
        status_code=response.status_code,
        duration_ms=round((time.perf_counter() - started) * 1000, 1),
    )
    return response


_EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


def _normalize_preferences(value: Optional[List[str]]) -> List[str]:
    if value is None:
        return []
    for pref in value:
        if not pref.strip():
            raise ValueError("Each preference must be a non-empty string")
    return [pref.strip().lower() for pref in value]


# ============================================================================
# Request Models
# ============================================================================


class SignupRequest(BaseModel):
    name: str
    email: str
    password: str
    preferences: Optional[List[str]] = None

    @field_validator("name")
    @classmethod
    def _name_required(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("Name is required")
        return value.strip()

    @field_validator("email")
    @classmethod
    def _email_format(cls, value: str) -> str:
        if not _EMAIL_RE.match(value.strip()):
            raise ValueError("Invalid email format")
        return value.strip().lower()

    @field_validator("password")
    @classmethod
    def _password_length(cls, value: str) -> str:
        if len(value) < 6:
            raise ValueError("Password must be at least 6 characters long")
        if len(value.encode("utf-8")) > 72:
            raise ValueError("Password must be at most 72 bytes long")
        return value

    @field_validator("preferences")
    @classmethod
    def _preferences(cls, value: Optional[List[str]]) -> List[str]:
        return _normalize_preferences(value)


class LoginRequest(BaseModel):
    email: str
    password: str

    @field_validator("email")
    @classmethod
    def _email_required(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("Email is required")
        return value.strip().lower()

    @field_validator("password")
    @classmethod
    def _password_required(cls, value: str) -> str:
        if not value:
            raise ValueError("Password is required")
        return value


class PreferencesRequest(BaseModel):
    preferences: List[str]

    @field_validator("preferences")
    @classmethod
    def _preferences(cls, value: List[str]) -> List[str]:
        return _normalize_preferences(value)


# ============================================================================
# Error Handlers
# ============================================================================


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    if isinstance(exc.detail, dict):
        content = exc.detail
    elif exc.status_code == 404:
        content = {
            "error": "Not Found",
            "message": f"The requested endpoint {request.method} {request.url.path} does not exist",
        }
    else:
        content = {"error": str(exc.detail), "message": str(exc.detail)}
    return JSONResponse(status_code=exc.status_code, content=content, headers=exc.headers)


_REQUIRED_MESSAGES = {
    "name": "Name is required",
    "email": "Email is required",
    "password": "Password is required",
    "preferences": "Preferences are required",
}


def _validation_message(err: dict) -> str:
    loc = err.get("loc") or ()
    if err.get("type") == "missing" and loc and loc[-1] in _REQUIRED_MESSAGES:
        return _REQUIRED_MESSAGES[loc[-1]]
    return str(err.get("msg", "")).removeprefix("Value error, ")


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    messages = [_validation_message(err) for err in exc.errors()]
    return JSONResponse(
        status_code=400,
        content={"error": "Validation failed", "messages": messages},
    )


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error("unhandled_error", path=request.url.path, error=str(exc))
    message = str(exc) if settings.environment == "development" else "Something went wrong"
    return JSONResponse(
        status_code=500,
        content={"error": "Internal Server Error", "message": message},
    )


def _news_payload(result: RetrievalResult, **metadata) -> dict:
    news = [article.model_dump(by_alias=True, mode="json") for article in result.articles]
    return {
        "news": news,
        "metadata": {
            "count": len(news),
            **metadata,
            "cached": result.cached,
            "source": result.source,
        },
    }


# ============================================================================
# Health and Status Endpoints
# ============================================================================


@app.get("/")
def index() -> dict:
    return {
        "message": "News Aggregator API",
        "version": app.version,
        "endpoints": {
            "auth": {
                "signup": "POST /users/signup",
                "login": "POST /users/login",
            },
            "preferences": {
                "get": "GET /users/preferences",
                "update": "PUT /users/preferences",
            },
            "news": {
                "get": "GET /news",
                "search": "GET /news/search?q=query",
                "byTopic": "GET /news/topic/:topic",
            },
        },
    }


@app.get("/health")
def health() -> dict:
    return {"status": "ok"}


# ============================================================================
# User Endpoints
# ============================================================================


def _duplicate_email() -> HTTPException:
    return HTTPException(
        status_code=400,
        detail={
            "error": "Registration failed",
            "message": "A user with this email already exists",
        },
    )


@app.post("/users/signup")
def signup(req: SignupRequest, store: UserStore = Depends(get_user_store)) -> dict:
    # Cheap early exit; create() re-checks under the store lock.
    if store.find_by_email(req.email) is not None:
        raise _duplicate_email()

    try:
        user = store.create(
            name=req.name,
            email=req.email,
            password_hash=hash_password(req.password),
            preferences=req.preferences,
        )
    except DuplicateEmailError:
        logger.info("signup_duplicate_email", email=req.email)
        raise _duplicate_email()
    logger.info("user_signed_up", user_id=user.id, preferences=user.preferences)
    return {
        "message": "User registered successfully",
        "user": user.public(),
        "token": create_access_token(user),
    }


@app.post("/users/login")
def login(req: LoginRequest, store: UserStore = Depends(get_user_store)) -> dict:
    user = store.find_by_email(req.email)
    if user is None or not verify_password(req.password, user.password_hash):
        logger.info("login_rejected", email=req.email)
        raise HTTPException(
            status_code=401,
            detail={"error": "Login failed", "message": "Invalid email or password"},
        )

    logger.info("user_logged_in", user_id=user.id)
    return {
        "message": "Login successful",
        "user": user.public(include_preferences=False),
        "token": create_access_token(user),
    }


@app.get("/users/preferences")
def get_preferences(user: User = Depends(get_current_user)) -> dict:
    return {"preferences": user.preferences}


@app.put("/users/preferences")
def update_preferences(
    req: PreferencesRequest,
    user: User = Depends(get_current_user),
    store: UserStore = Depends(get_user_store),
) -> dict:
    updated = store.update_preferences(user.id, req.preferences)
    if updated is None:
        raise HTTPException(
            status_code=404,
            detail={"error": "Update failed", "message": "User not found"},
        )

    logger.info("preferences_updated", user_id=user.id, preferences=updated.preferences)
    return {
        "message": "Preferences updated successfully",
        "preferences": updated.preferences,
    }


# ============================================================================
# News Endpoints
# ============================================================================


@app.get("/news")
def get_news(
    user: User = Depends(get_current_user),
    news: NewsRetriever = Depends(get_retriever),
) -> dict:
    preferences = list(user.preferences)
    logger.info("news_request", user_id=user.id, preferences=preferences)
    try:
        result = news.get_news(preferences)
    except Exception as exc:
        logger.error("news_error", user_id=user.id, error=str(exc))
        raise HTTPException(
            status_code=500,
            detail={
                "error": "Failed to fetch news",
                "message": "An error occurred while fetching news articles",
            },
        )

    return _news_payload(result, preferences=preferences)


@app.get("/news/search")
def search_news(
    q: Optional[str] = Query(default=None),
    user: User = Depends(get_current_user),
    news: NewsRetriever = Depends(get_retriever),
) -> dict:
    if q is None or not q.strip():
        raise HTTPException(
            status_code=400,
            detail={"error": "Invalid request", "message": "Search query is required"},
        )

    query = q.strip()
    preferences = list(user.preferences)
    logger.info("news_search_request", user_id=user.id, query=query, preferences=preferences)
    try:
        result = news.search_news(query, preferences)
    except Exception as exc:
        logger.error("news_search_error", user_id=user.id, query=query, error=str(exc))
        raise HTTPException(
            status_code=500,
            detail={
                "error": "Search failed",
                "message": "An error occurred while searching for news",
            },
        )

    return _news_payload(result, query=query, preferences=preferences)


@app.get("/news/topic/{topic}")
def get_news_by_topic(
    topic: str,
    user: User = Depends(get_current_user),
    news: NewsRetriever = Depends(get_retriever),
) -> dict:
    topic = topic.strip().lower()
    if not topic:
        raise HTTPException(
            status_code=400,
            detail={"error": "Invalid request", "message": "Topic is required"},
        )

    logger.info("news_topic_request", user_id=user.id, topic=topic)
    try:
        result = news.get_news([topic])
    except Exception as exc:
        logger.error("news_topic_error", user_id=user.id, topic=topic, error=str(exc))
        raise HTTPException(
            status_code=500,
            detail={
                "error": "Failed to fetch news",
                "message": "An error occurred while fetching news for this topic",
            },
        )

    return _news_payload(result, topic=topic)


@app.get("/news/cache/stats")
def cache_stats(
    user: User = Depends(get_current_user),
    news: NewsRetriever = Depends(get_retriever),
) -> dict:
    """Snapshot of the shared article cache. Reading it never evicts entries."""

    stats = news.cache.stats()
    return {
        "cache": {
            "total": stats.total,
            "valid": stats.valid,
            "expired": stats.expired,
            "ttl_seconds": stats.ttl_seconds,
        },
        "status": "ok",
    }

"""FastAPI application exposing the dating service endpoints."""
from __future__ import annotations

import json
import logging
import time
from functools import partial
from typing import Any, Callable, Dict, List, Optional, TypeVar, Union

import anyio
from fastapi import Depends, FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field

from .config import Settings, load_settings
from .conversations import ConversationLedger
from .discovery import DiscoveryEngine
from .errors import AuthFailure, PayloadTooLarge, SennightError, StorageFailure
from .matches import MatchEngine
from .models import Match, Message, User
from .profiles import ProfileRegistry
from .security import BearerAuth, TokenIssuer
from .store import CollectionStore

logger = logging.getLogger("sennight.api")

T = TypeVar("T")


class UserProfile(BaseModel):
    id: str
    email: str
    name: str
    gender: str
    lookingFor: Union[List[str], str]
    age: Optional[int] = None
    city: str = ""
    bio: str = ""
    interests: List[str] = Field(default_factory=list)
    photos: List[str] = Field(default_factory=list)
    createdAt: str


class AuthResponse(BaseModel):
    token: str
    user: UserProfile


class UserResponse(BaseModel):
    user: UserProfile


class ProfileListResponse(BaseModel):
    profiles: List[UserProfile]


class LikeResponse(BaseModel):
    matchId: str
    mutual: bool


class MatchView(BaseModel):
    id: str
    users: List[str]
    likes: Dict[str, bool]
    createdAt: str


class MatchListResponse(BaseModel):
    matches: List[MatchView]


class MessageView(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    matchId: str
    sender: str = Field(alias="from")
    text: str
    createdAt: str


class MessageResponse(BaseModel):
    message: MessageView


class MessageListResponse(BaseModel):
    messages: List[MessageView]


class HealthResponse(BaseModel):
    ok: bool
    ts: int


def user_to_profile(user: User) -> UserProfile:
    return UserProfile.model_validate(user.public())


def match_to_view(match: Match) -> MatchView:
    return MatchView.model_validate(match.to_record())


def message_to_view(message: Message) -> MessageView:
    return MessageView.model_validate(message.to_record())


def _optional_str(value: Any) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, str):
        return value
    return str(value)


async def _json_body(request: Request, max_bytes: int) -> Dict[str, Any]:
    """Return the request body as a JSON object, or ``{}`` when it is absent or not an object.

    Bodies over ``max_bytes`` raise :class:`PayloadTooLarge`.
    """

    declared = request.headers.get("content-length")
    if declared and declared.isdigit() and int(declared) > max_bytes:
        raise PayloadTooLarge()
    body = await request.body()
    if len(body) > max_bytes:
        raise PayloadTooLarge()
    try:
        payload = json.loads(body)
    except ValueError:
        return {}
    return payload if isinstance(payload, dict) else {}


async def _run(func: Callable[..., T], *args: Any) -> T:
    return await anyio.to_thread.run_sync(partial(func, *args))


def create_app(
    settings: Settings | None = None,
    *,
    store: CollectionStore | None = None,
    issuer: TokenIssuer | None = None,
) -> FastAPI:
    """Build the API application around a collection store."""

    if settings is None:
        settings = load_settings()
    if store is None:
        store = CollectionStore(settings.data_dir)
    store.ensure()
    if issuer is None:
        issuer = TokenIssuer(settings.token_secret, ttl=settings.token_ttl)

    profiles = ProfileRegistry(store)
    discovery = DiscoveryEngine(store)
    matches = MatchEngine(store, profiles)
    ledger = ConversationLedger(store, matches)
    current_user_id = BearerAuth(issuer)

    app = FastAPI(
        title="Sennight API",
        description="Accounts, discovery, matches and messages for the Sennight dating app",
        version="1.0.0",
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.cors_origins),
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.state.settings = settings
    app.state.store = store
    app.state.issuer = issuer
    app.state.profiles = profiles
    app.state.matches = matches
    app.state.ledger = ledger

    @app.exception_handler(SennightError)
    async def handle_service_error(_: Request, exc: SennightError) -> JSONResponse:
        if isinstance(exc, StorageFailure):
            logger.error("Storage failure while handling request: %s", exc)
        headers = None
        if isinstance(exc, AuthFailure) and exc.kind in {"missing_token", "invalid_token"}:
            headers = {"WWW-Authenticate": "Bearer"}
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": exc.kind, "detail": exc.detail},
            headers=headers,
        )

    @app.get("/health", response_model=HealthResponse)
    async def healthcheck() -> HealthResponse:
        return HealthResponse(ok=True, ts=int(time.time() * 1000))

    @app.post("/auth/register", response_model=AuthResponse)
    async def register(request: Request) -> AuthResponse:
        payload = await _json_body(request, settings.max_body_bytes)
        user = await _run(
            profiles.register,
            _optional_str(payload.get("email")),
            _optional_str(payload.get("password")),
            _optional_str(payload.get("name")),
            _optional_str(payload.get("gender")),
            payload.get("lookingFor"),
        )
        return AuthResponse(token=issuer.issue(user.id), user=user_to_profile(user))

    @app.post("/auth/login", response_model=AuthResponse)
    async def login(request: Request) -> AuthResponse:
        payload = await _json_body(request, settings.max_body_bytes)
        user = await _run(
            profiles.authenticate,
            _optional_str(payload.get("email")),
            _optional_str(payload.get("password")),
        )
        return AuthResponse(token=issuer.issue(user.id), user=user_to_profile(user))

    @app.get("/users/me", response_model=UserResponse)
    async def read_current_user(user_id: str = Depends(current_user_id)) -> UserResponse:
        user = await _run(profiles.get, user_id)
        return UserResponse(user=user_to_profile(user))

    @app.put("/users/me", response_model=UserResponse)
    async def update_current_user(
        request: Request,
        user_id: str = Depends(current_user_id),
    ) -> UserResponse:
        payload = await _json_body(request, settings.max_body_bytes)
        user = await _run(profiles.update_self, user_id, payload)
        logger.info("User %s updated fields: %s", user_id, ", ".join(sorted(payload)) or "<none>")
        return UserResponse(user=user_to_profile(user))

    @app.get("/profiles", response_model=ProfileListResponse)
    async def list_profiles(user_id: str = Depends(current_user_id)) -> ProfileListResponse:
        candidates = await _run(discovery.find_candidates, user_id)
        return ProfileListResponse(profiles=[user_to_profile(user) for user in candidates])

    @app.post("/matches/like/{target_id}", response_model=LikeResponse)
    async def like_user(target_id: str, user_id: str = Depends(current_user_id)) -> LikeResponse:
        result = await _run(matches.like, user_id, target_id)
        return LikeResponse(matchId=result.match_id, mutual=result.mutual)

    @app.get("/matches", response_model=MatchListResponse)
    async def list_matches(user_id: str = Depends(current_user_id)) -> MatchListResponse:
        found = await _run(matches.list_matches_for, user_id)
        return MatchListResponse(matches=[match_to_view(match) for match in found])

    @app.post("/messages/{match_id}", response_model=MessageResponse)
    async def post_message(
        match_id: str,
        request: Request,
        user_id: str = Depends(current_user_id),
    ) -> MessageResponse:
        payload = await _json_body(request, settings.max_body_bytes)
        message = await _run(ledger.post_message, match_id, user_id, payload.get("text"))
        return MessageResponse(message=message_to_view(message))

    @app.get("/messages/{match_id}", response_model=MessageListResponse)
    async def list_messages(match_id: str, user_id: str = Depends(current_user_id)) -> MessageListResponse:
        found = await _run(ledger.list_messages, match_id, user_id)
        return MessageListResponse(messages=[message_to_view(message) for message in found])

    return app


__all__ = ["create_app"]

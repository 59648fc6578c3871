"""
REST client for the OpenLore backend.

One ``httpx.AsyncClient`` (and so one cookie jar) serves every resource and
the chat stream, so a session cookie set by ``auth.login`` authenticates
later streams as well.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING, Any, Generic, TypeVar

import httpx

from openlore.exceptions import ApiError
from openlore.logging_utils import handle_api_errors, log_operation
from openlore.streaming.client import (
    DEFAULT_READ_CHUNK_SIZE,
    DEFAULT_STREAM_PATH,
    DEFAULT_TIMEOUT,
    StreamClient,
    StreamHandle,
)
from openlore.streaming.models import StreamEvent, StreamRequest, StreamResult

from .models import (
    ApiModel,
    AuthResult,
    Character,
    Chat,
    ExtractLoreResult,
    KeyStatus,
    KeyUpdate,
    Lore,
    Message,
    ModelInfo,
    User,
)

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator

    from openlore.config import Configuration

ModelT = TypeVar("ModelT", bound=ApiModel)

HTTP_NO_CONTENT = 204


class ApiClient:
    """Entry point for every backend call."""

    def __init__(
        self,
        base_url: str | None = None,
        *,
        http_client: httpx.AsyncClient | None = None,
        timeout: httpx.Timeout | None = None,
        limits: httpx.Limits | None = None,
        stream_path: str = DEFAULT_STREAM_PATH,
        read_chunk_size: int = DEFAULT_READ_CHUNK_SIZE,
    ):
        if http_client is None and base_url is None:
            raise ValueError("ApiClient needs either base_url or http_client")

        self._owns_client = http_client is None
        if http_client is None:
            http_client = httpx.AsyncClient(
                base_url=base_url,
                timeout=timeout or DEFAULT_TIMEOUT,
                limits=limits or httpx.Limits(),
            )
        self.http: httpx.AsyncClient = http_client
        self.stream_client = StreamClient(
            http_client=self.http,
            path=stream_path,
            read_chunk_size=read_chunk_size,
        )

        self.lore: Resource[Lore] = Resource(self, "/lore", Lore)
        self.characters: Resource[Character] = Resource(self, "/characters", Character)
        self.chats = ChatApi(self)
        self.auth = AuthApi(self)
        self.ai = AiApi(self)

    @classmethod
    def from_config(cls, config: Configuration) -> ApiClient:
        """Build a client from the ``api``, ``http_client`` and ``stream`` sections."""
        http_config = config.get_http_client_config()
        stream_config = config.get_stream_config()
        return cls(
            config.get_api_config()["base_url"],
            timeout=httpx.Timeout(
                connect=http_config["connect_timeout"],
                read=http_config["read_timeout"],
                write=http_config["write_timeout"],
                pool=http_config["pool_timeout"],
            ),
            limits=httpx.Limits(
                max_connections=http_config["max_connections"],
                max_keepalive_connections=http_config["max_keepalive"],
            ),
            stream_path=stream_config["path"],
            read_chunk_size=stream_config["read_chunk_size"],
        )

    @handle_api_errors("api_request")
    @log_operation("api_request")
    async def request(
        self,
        method: str,
        endpoint: str,
        body: Any = None,
    ) -> Any:
        """
        Send one JSON request and return the decoded response body.

        Returns:
            Decoded JSON, or None for 204 responses and non-JSON bodies.

        Raises:
            ApiError: On a non-success status (message taken from the body's
                ``error`` field) or a transport failure (status 0).
        """
        kwargs: dict[str, Any] = {}
        if body is not None:
            kwargs["json"] = body

        response = await self.http.request(method, endpoint, **kwargs)
        if response.status_code == HTTP_NO_CONTENT:
            return None

        data: Any = None
        if "application/json" in response.headers.get("content-type", ""):
            try:
                data = response.json()
            except ValueError:
                data = {}

        if not response.is_success:
            error_data = data if isinstance(data, dict) else {}
            message = error_data.get("error") or f"HTTP {response.status_code}"
            raise ApiError(str(message), response.status_code, error_data)

        return data

    async def get(self, endpoint: str) -> Any:
        return await self.request("GET", endpoint)

    async def post(self, endpoint: str, body: Any) -> Any:
        return await self.request("POST", endpoint, body)

    async def patch(self, endpoint: str, body: Any) -> Any:
        return await self.request("PATCH", endpoint, body)

    async def delete(self, endpoint: str) -> None:
        await self.request("DELETE", endpoint)

    async def aclose(self) -> None:
        """Close the HTTP client if this instance created it."""
        if self._owns_client:
            await self.http.aclose()

    async def __aenter__(self) -> ApiClient:
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.aclose()


class Resource(Generic[ModelT]):
    """CRUD over one collection endpoint."""

    def __init__(self, api: ApiClient, path: str, model: type[ModelT]):
        self.api = api
        self.path = path
        self.model = model

    async def list(self) -> list[ModelT]:
        data = await self.api.get(self.path)
        return [self.model.model_validate(item) for item in data or []]

    async def get(self, item_id: int | str) -> ModelT:
        return self.model.model_validate(await self.api.get(f"{self.path}/{item_id}"))

    async def create(self, fields: dict[str, Any]) -> ModelT:
        return self.model.model_validate(await self.api.post(self.path, fields))

    async def update(self, item_id: int | str, fields: dict[str, Any]) -> ModelT:
        data = await self.api.patch(f"{self.path}/{item_id}", fields)
        return self.model.model_validate(data)

    async def delete(self, item_id: int | str) -> None:
        await self.api.delete(f"{self.path}/{item_id}")


class ChatApi:
    """Chat listing and the streaming composer endpoint."""

    def __init__(self, api: ApiClient):
        self.api = api

    async def list(self) -> list[Chat]:
        return [Chat.model_validate(item) for item in await self.api.get("/chats") or []]

    async def messages(self, chat_id: int) -> list[Message]:
        data = await self.api.get(f"/chats/{chat_id}/messages")
        return [Message.model_validate(item) for item in data or []]

    async def update(self, chat_id: int, fields: dict[str, Any]) -> Chat:
        return Chat.model_validate(await self.api.patch(f"/chats/{chat_id}", fields))

    async def delete(self, chat_id: int) -> None:
        await self.api.delete(f"/chats/{chat_id}")

    def stream(
        self,
        request: StreamRequest,
        *,
        on_chunk: Callable[[str], Any] | None = None,
        on_reasoning: Callable[[str], Any] | None = None,
        on_context: Callable[[Any], Any] | None = None,
        on_done: Callable[[Any], Any] | None = None,
        on_error: Callable[[str], Any] | None = None,
    ) -> StreamHandle:
        return self.api.stream_client.stream(
            request,
            on_chunk=on_chunk,
            on_reasoning=on_reasoning,
            on_context=on_context,
            on_done=on_done,
            on_error=on_error,
        )

    def events(self, request: StreamRequest) -> AsyncGenerator[StreamEvent]:
        return self.api.stream_client.events(request)

    async def complete(self, request: StreamRequest) -> StreamResult:
        return await self.api.stream_client.complete(request)


class AuthApi:
    """Session-cookie authentication."""

    def __init__(self, api: ApiClient):
        self.api = api

    async def register(self, email: str, name: str, password: str) -> AuthResult:
        data = await self.api.post(
            "/auth/register", {"email": email, "name": name, "password": password}
        )
        return AuthResult.model_validate(data or {})

    async def login(self, email: str, password: str) -> AuthResult:
        data = await self.api.post("/auth/login", {"email": email, "password": password})
        return AuthResult.model_validate(data or {})

    async def logout(self) -> None:
        await self.api.post("/auth/logout", {})

    async def session(self) -> User | None:
        """Return the signed-in user, or None when the session is anonymous."""
        data = await self.api.get("/auth/session")
        user = (data or {}).get("user")
        return User.model_validate(user) if user else None


class AiApi:
    """Model listing, provider key management and lore extraction."""

    KEY_PATH = "/ai/providers/openrouter/key"

    def __init__(self, api: ApiClient):
        self.api = api

    async def models(self) -> list[ModelInfo]:
        data = await self.api.get("/ai/models")
        return [ModelInfo.model_validate(item) for item in (data or {}).get("data") or []]

    async def key_status(self) -> KeyStatus:
        return KeyStatus.model_validate(await self.api.get(self.KEY_PATH))

    async def set_key(self, key: str) -> KeyUpdate:
        return KeyUpdate.model_validate(await self.api.post(self.KEY_PATH, {"key": key}))

    async def delete_key(self) -> None:
        await self.api.delete(self.KEY_PATH)

    async def extract_lore(
        self,
        chat_id: int,
        *,
        model: str | None = None,
        save: bool | None = None,
        title: str | None = None,
        content: str | None = None,
    ) -> ExtractLoreResult:
        """Ask the backend to distill a lore entry from a chat."""
        params: dict[str, Any] = {"chatId": chat_id}
        optional = {"model": model, "save": save, "title": title, "content": content}
        params.update({k: v for k, v in optional.items() if v is not None})
        return ExtractLoreResult.model_validate(
            await self.api.post("/ai/extract-lore", params) or {}
        )

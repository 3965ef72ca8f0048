# src/adapters/backend_client.py — v2
"""HTTP client for the console's REST backend.

Every method is a read with no side effects, so the cache layer can treat
it as a pure function of its arguments. Responses use the envelope
``{"success": bool, "message": str, "data": ...}``; methods return ``data``.

Error mapping:
    transport failure / timeout  -> NetworkError
    401, 403                     -> AuthorizationError
    other status >= 400          -> ServerError(status_code)
    ``success: false``           -> ServerError
"""

from __future__ import annotations

import logging
from typing import Any
from urllib.parse import quote

import httpx

from metacache.config.settings import Settings
from metacache.query.errors import AuthorizationError, NetworkError, ServerError

logger = logging.getLogger(__name__)


class BackendClient:
    """Async client for metadata reads.

    Args:
        settings: Backend URL, token and timeout. Loaded from .env if None.
        http_client: Pre-built httpx client (tests inject a MockTransport).
    """

    def __init__(
        self,
        settings: Settings | None = None,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self.settings = settings or Settings()
        self._owns_client = http_client is None
        self._http = http_client or httpx.AsyncClient(
            base_url=self.settings.backend_url,
            timeout=self.settings.backend_timeout_s,
        )

    async def __aenter__(self) -> BackendClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._http.aclose()

    def _headers(self) -> dict[str, str]:
        headers = {"Accept": "application/json"}
        if self.settings.backend_token:
            headers["Authorization"] = f"Bearer {self.settings.backend_token}"
        return headers

    async def _get(self, path: str, params: dict[str, Any] | None = None) -> Any:
        query = {k: _param(v) for k, v in (params or {}).items() if v is not None}
        try:
            response = await self._http.get(path, params=query, headers=self._headers())
        except httpx.TimeoutException as exc:
            raise NetworkError(f"Timed out calling {path}") from exc
        except httpx.TransportError as exc:
            raise NetworkError(f"Transport error calling {path}: {exc}") from exc

        if response.status_code in (401, 403):
            raise AuthorizationError(
                _message(response) or f"Access denied to {path}",
                status_code=response.status_code,
            )
        if response.status_code >= 400:
            logger.warning("Backend %s returned HTTP %d", path, response.status_code)
            raise ServerError(
                _message(response) or f"HTTP {response.status_code} from {path}",
                status_code=response.status_code,
            )

        try:
            body = response.json()
        except ValueError as exc:
            raise ServerError(f"Invalid JSON from {path}", status_code=response.status_code) from exc

        if not isinstance(body, dict) or not body.get("success", False):
            message = body.get("message") if isinstance(body, dict) else None
            raise ServerError(message or f"Request to {path} was not successful",
                              status_code=response.status_code)
        return body.get("data")

    # === auth ===

    async def get_current_user(self) -> Any:
        return await self._get("/auth/current-user")

    async def get_is_system_admin(self) -> Any:
        return await self._get("/auth/current-user/is-system-admin")

    async def get_current_user_permissions(self) -> Any:
        return await self._get("/auth/current-user/permissions")

    async def get_detailed_permissions(
        self, schema_name: str | None = None, table_name: str | None = None,
    ) -> Any:
        return await self._get(
            "/auth/current-user/detailed-permissions",
            {"schemaName": schema_name, "tableName": table_name},
        )

    # === schemas / tables / views ===

    async def get_all_schemas(self, include_system: bool) -> Any:
        return await self._get("/schemas", {"includeSystem": include_system})

    async def get_schema(self, schema_name: str) -> Any:
        return await self._get(f"/schemas/{_seg(schema_name)}")

    async def get_all_tables_in_schema(self, schema_name: str) -> Any:
        return await self._get(f"/tables/{_seg(schema_name)}")

    async def get_table(self, schema_name: str, table_name: str) -> Any:
        return await self._get(f"/tables/{_seg(schema_name)}/{_seg(table_name)}")

    async def get_all_views_in_schema(self, schema_name: str) -> Any:
        return await self._get(f"/views/{_seg(schema_name)}")

    async def get_view(self, schema_name: str, view_name: str) -> Any:
        return await self._get(f"/views/{_seg(schema_name)}/{_seg(view_name)}")

    # === records ===

    async def get_table_records(
        self, schema_name: str, table_name: str, params: dict[str, Any] | None = None,
    ) -> Any:
        return await self._get(f"/records/table/{_seg(schema_name)}/{_seg(table_name)}", params)

    async def get_view_records(
        self, schema_name: str, view_name: str, params: dict[str, Any] | None = None,
    ) -> Any:
        return await self._get(f"/records/view/{_seg(schema_name)}/{_seg(view_name)}", params)

    async def get_table_record_count(self, schema_name: str, table_name: str) -> Any:
        return await self._get(f"/records/table/{_seg(schema_name)}/{_seg(table_name)}/count")

    async def get_view_record_count(self, schema_name: str, view_name: str) -> Any:
        return await self._get(f"/records/view/{_seg(schema_name)}/{_seg(view_name)}/count")

    # === analytics ===

    async def get_database_stats(self, include_system: bool) -> Any:
        return await self._get("/analytics/database/stats", {"includeSystem": include_system})

    async def get_database_usage(self, include_system: bool) -> Any:
        return await self._get("/analytics/database/usage", {"includeSystem": include_system})

    async def get_database_type(self) -> Any:
        return await self._get("/analytics/database/type")

    async def get_dashboard_stats(self, include_system: bool) -> Any:
        return await self._get("/analytics/dashboard/stats", {"includeSystem": include_system})

    async def get_role_distribution(self) -> Any:
        return await self._get("/analytics/roles/distribution")

    async def get_audit_activity(
        self, start_date: str | None = None, end_date: str | None = None,
    ) -> Any:
        return await self._get(
            "/analytics/audit/activity",
            {"startDate": start_date, "endDate": end_date},
        )


def _seg(value: str) -> str:
    return quote(value, safe="")


def _param(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _message(response: httpx.Response) -> str | None:
    try:
        body = response.json()
    except ValueError:
        return None
    if isinstance(body, dict):
        message = body.get("message")
        return str(message) if message else None
    return None

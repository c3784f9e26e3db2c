# favsort/bilibili/client.py
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import httpx

from ..config import Settings
from ..errors import RemoteCallFailure, ValidationError
from ..models import SourceCollection

logger = logging.getLogger(__name__)

# Resource type of a video in the favourites API ("<id>:2").
RESOURCE_TYPE_VIDEO = 2

USER_AGENT = (
    "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/124.0 Safari/537.36"
)


def parse_cookie_header(cookie: str) -> Dict[str, str]:
    """Split a raw ``Cookie`` header value into a name -> value dict."""
    jar: Dict[str, str] = {}
    for part in (cookie or "").split(";"):
        if "=" not in part:
            continue
        name, value = part.split("=", 1)
        name = name.strip()
        if name:
            jar[name] = value.strip()
    return jar


@dataclass(frozen=True)
class Credentials:
    """Session values the API needs. Extracting them from a browser is the caller's job."""

    csrf: str
    sessdata: Optional[str] = None
    mid: Optional[str] = None

    @classmethod
    def from_cookie(cls, cookie: str, mid: Optional[str] = None) -> "Credentials":
        jar = parse_cookie_header(cookie)
        csrf = jar.get("bili_jct")
        if not csrf:
            raise ValidationError("No bili_jct in the cookie; log in and copy the cookie again.")
        return cls(csrf=csrf, sessdata=jar.get("SESSDATA"), mid=mid or jar.get("DedeUserID"))

    def cookies(self) -> Dict[str, str]:
        jar = {"bili_jct": self.csrf}
        if self.sessdata:
            jar["SESSDATA"] = self.sessdata
        if self.mid:
            jar["DedeUserID"] = self.mid
        return jar


@dataclass(frozen=True)
class ResourcePage:
    """One page of a folder listing, still in wire form."""

    medias: List[Dict[str, Any]]
    has_more: bool
    declared_total: Optional[int]


class BilibiliClient:
    """
    Async client for the favourites endpoints:
      - list the folders a user created
      - page through a folder
      - create a folder / move a resource between folders
    """

    def __init__(self,
                 credentials: Credentials,
                 settings: Optional[Settings] = None,
                 *,
                 transport: Optional[httpx.AsyncBaseTransport] = None) -> None:
        self.credentials = credentials
        self.settings = settings or Settings()
        self.base_url = self.settings.api_base_url.rstrip("/")
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            cookies=credentials.cookies(),
            headers={
                "Accept": "application/json, text/plain, */*",
                "User-Agent": USER_AGENT,
                "Referer": "https://www.bilibili.com/",
            },
            timeout=self.settings.request_timeout_seconds,
            transport=transport,
        )

    async def __aenter__(self) -> "BilibiliClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    # -------------------------------------------------------------------------
    # Low-level HTTP helpers
    # -------------------------------------------------------------------------

    async def _request_json(self,
                            method: str,
                            endpoint: str,
                            *,
                            params: Optional[Dict[str, Any]] = None,
                            form: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """
        Send one request and return the decoded envelope.

        Raises RemoteCallFailure on transport errors, non-2xx responses,
        bodies that are not JSON, and API envelopes whose ``code`` is
        missing or non-zero.
        """
        try:
            resp = await self._client.request(method, endpoint, params=params, data=form)
        except httpx.HTTPError as e:
            raise RemoteCallFailure(f"{method} {endpoint}: {e}") from e

        logger.debug("%s %s -> %s", method, endpoint, resp.status_code)
        if resp.is_error:
            raise RemoteCallFailure(
                f"HTTP {resp.status_code} {resp.reason_phrase}: {endpoint}",
                status_code=resp.status_code,
            )

        try:
            data = resp.json()
        except ValueError as e:
            raise RemoteCallFailure(f"Response was not valid JSON: {endpoint}") from e

        if not isinstance(data, dict) or not isinstance(data.get("code"), int):
            raise RemoteCallFailure(f"Response has no code field: {endpoint}")
        if data["code"] != 0:
            message = data.get("message") or data.get("msg") or "unknown"
            raise RemoteCallFailure(
                f"API error code={data['code']}, message={message}: {endpoint}",
                code=data["code"],
            )
        return data

    async def _post_form(self, endpoint: str, form: Dict[str, Any]) -> Dict[str, Any]:
        payload = dict(form)
        payload["csrf"] = self.credentials.csrf
        return await self._request_json("POST", endpoint, form=payload)

    # -------------------------------------------------------------------------
    # Folders & resources
    # -------------------------------------------------------------------------

    async def list_created_folders(self, mid: str) -> List[SourceCollection]:
        data = await self._request_json(
            "GET",
            "/x/v3/fav/folder/created/list-all",
            params={"up_mid": mid, "type": 2, "rid": 0},
        )
        raw = (data.get("data") or {}).get("list") or []
        return [SourceCollection.from_api(f) for f in raw]

    async def list_resources(self, media_id: str, page: int, page_size: int) -> ResourcePage:
        data = await self._request_json(
            "GET",
            "/x/v3/fav/resource/list",
            params={
                "media_id": media_id,
                "pn": page,
                "ps": page_size,
                "keyword": "",
                "order": "mtime",
                "type": 0,
                "tid": 0,
                "platform": "web",
            },
        )
        body = data.get("data") or {}
        medias = body.get("medias")
        info = body.get("info") or {}
        declared = info.get("media_count")
        return ResourcePage(
            medias=medias if isinstance(medias, list) else [],
            has_more=bool(body.get("has_more")),
            declared_total=int(declared) if isinstance(declared, (int, float)) else None,
        )

    async def create_folder(self, title: str) -> str:
        if not title:
            raise ValidationError("Folder title must not be empty")
        data = await self._post_form("/x/v3/fav/folder/add", {
            "title": title,
            "intro": self.settings.folder_intro,
            "privacy": self.settings.folder_privacy,
            "cover": "",
        })
        media_id = (data.get("data") or {}).get("id")
        if not media_id:
            raise RemoteCallFailure(f"Folder {title!r} was created but no media id came back")
        return str(media_id)

    async def move_resource(self, src_media_id: str, dst_media_id: str, resource_id: str) -> None:
        await self._post_form("/x/v3/fav/resource/move", {
            "src_media_id": src_media_id,
            "tar_media_id": dst_media_id,
            "resources": f"{resource_id}:{RESOURCE_TYPE_VIDEO}",
            "platform": "web",
        })

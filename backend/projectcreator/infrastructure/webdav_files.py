"""WebDAV Files - per-user file access under /remote.php/dav/files/{user}/.

Invariants:
    - All paths in and out are relative to the user's home, without leading "/"
    - list_folder is depth 1 and excludes the folder itself
    - stat/exists map 404 to None/False; other failures raise PlatformError
    - mtime is epoch seconds parsed from getlastmodified (RFC 1123)

Design Decisions:
    - PROPFIND asks only for fileid, size, getlastmodified and resourcetype
    - The service account must be able to reach other users' homes (impersonation
      granted by the deployment); this gateway does not switch credentials
"""

import email.utils
import posixpath
import xml.etree.ElementTree as ET
from urllib.parse import quote, unquote, urlparse

from projectcreator.core.domain_types import FileEntry
from projectcreator.core.errors import PlatformError
from projectcreator.infrastructure.nextcloud_client import ResilientNextcloudClient

SERVICE = "webdav"
DAV_NS = "DAV:"
OC_NS = "http://owncloud.org/ns"

PROPFIND_BODY = (
    '<?xml version="1.0" encoding="UTF-8"?>'
    '<d:propfind xmlns:d="DAV:" xmlns:oc="http://owncloud.org/ns">'
    "<d:prop><oc:fileid/><oc:size/><d:getcontentlength/>"
    "<d:getlastmodified/><d:resourcetype/></d:prop>"
    "</d:propfind>"
)


def _clean(path: str) -> str:
    return "/".join(part for part in path.split("/") if part)


def _parse_mtime(value: str | None) -> int:
    if not value:
        return 0
    try:
        return int(email.utils.parsedate_to_datetime(value).timestamp())
    except (TypeError, ValueError):
        return 0


def _int(value: str | None) -> int:
    try:
        return int(value) if value else 0
    except ValueError:
        return 0


def parse_multistatus(xml_text: str, home_prefix: str) -> list[FileEntry]:
    """Parse a PROPFIND multistatus body into entries relative to `home_prefix`."""
    try:
        root = ET.fromstring(xml_text)
    except ET.ParseError as e:
        raise PlatformError(f"invalid PROPFIND response: {e}", SERVICE)

    prefix = _clean(unquote(home_prefix))
    entries: list[FileEntry] = []
    for response in root.findall(f"{{{DAV_NS}}}response"):
        href = _clean(unquote(urlparse(response.findtext(f"{{{DAV_NS}}}href") or "").path))
        if not href.startswith(prefix):
            continue
        rel = href[len(prefix):].strip("/")

        prop = None
        for propstat in response.findall(f"{{{DAV_NS}}}propstat"):
            if "200" in (propstat.findtext(f"{{{DAV_NS}}}status") or ""):
                prop = propstat.find(f"{{{DAV_NS}}}prop")
                break
        if prop is None:
            continue

        resourcetype = prop.find(f"{{{DAV_NS}}}resourcetype")
        is_dir = resourcetype is not None and resourcetype.find(f"{{{DAV_NS}}}collection") is not None
        size = prop.findtext(f"{{{OC_NS}}}size") if is_dir else prop.findtext(f"{{{DAV_NS}}}getcontentlength")
        entries.append(FileEntry(
            path=rel,
            name=posixpath.basename(rel),
            is_dir=is_dir,
            size=_int(size),
            mtime=_parse_mtime(prop.findtext(f"{{{DAV_NS}}}getlastmodified")),
            file_id=_int(prop.findtext(f"{{{OC_NS}}}fileid")),
        ))
    return entries


class WebDavFiles:
    """UserFiles implementation."""

    def __init__(self, client: ResilientNextcloudClient):
        self._client = client

    def _home(self, user_id: str) -> str:
        return f"/remote.php/dav/files/{quote(user_id, safe='')}"

    def _url(self, user_id: str, path: str) -> str:
        rel = _clean(path)
        return f"{self._home(user_id)}/{quote(rel)}" if rel else f"{self._home(user_id)}/"

    async def _propfind(self, user_id: str, path: str, depth: str) -> list[FileEntry] | None:
        response = await self._client.request(
            "PROPFIND", self._url(user_id, path), service=SERVICE,
            allow_status=(404,), content=PROPFIND_BODY,
            headers={"Depth": depth, "Content-Type": "application/xml; charset=utf-8"},
        )
        if response.status_code == 404:
            return None
        return parse_multistatus(response.text, self._home(user_id))

    async def exists(self, user_id: str, path: str) -> bool:
        return await self.stat(user_id, path) is not None

    async def stat(self, user_id: str, path: str) -> FileEntry | None:
        entries = await self._propfind(user_id, path, "0")
        return entries[0] if entries else None

    async def list_folder(self, user_id: str, path: str) -> list[FileEntry]:
        entries = await self._propfind(user_id, path, "1")
        if entries is None:
            return []
        own = _clean(path)
        return [e for e in entries if e.path != own]

    async def create_folder(self, user_id: str, path: str) -> FileEntry:
        await self._client.request("MKCOL", self._url(user_id, path), service=SERVICE)
        entry = await self.stat(user_id, path)
        if entry is None:
            raise PlatformError(f"folder '{path}' missing after MKCOL", SERVICE)
        return entry

    async def delete(self, user_id: str, path: str) -> None:
        await self._client.request(
            "DELETE", self._url(user_id, path), service=SERVICE, allow_status=(404,),
        )

    async def read_text(self, user_id: str, path: str) -> str:
        response = await self._client.request("GET", self._url(user_id, path), service=SERVICE)
        return response.text

    async def write_text(self, user_id: str, path: str, content: str) -> FileEntry:
        await self._client.request(
            "PUT", self._url(user_id, path), service=SERVICE,
            content=content.encode("utf-8"),
            headers={"Content-Type": "text/plain; charset=utf-8"},
        )
        entry = await self.stat(user_id, path)
        if entry is None:
            raise PlatformError(f"file '{path}' missing after PUT", SERVICE)
        return entry

"""Group Folders Gateway - admin-managed shared storage via the groupfolders app API.

Invariants:
    - create_folder returns a positive folder id or raises PlatformError
    - PERMISSION_ALL (31) = read | update | create | delete | share
"""

from urllib.parse import quote

from projectcreator.core.errors import PlatformError
from projectcreator.infrastructure.nextcloud_client import ResilientNextcloudClient

SERVICE = "groupfolders"
GROUPFOLDERS_BASE = "/index.php/apps/groupfolders"
PERMISSION_ALL = 31


class GroupFoldersGateway:
    """GroupFolders implementation."""

    def __init__(self, client: ResilientNextcloudClient):
        self._client = client

    async def _call(self, method: str, path: str, **kwargs) -> object:
        return await self._client.ocs(
            method, path, service=SERVICE, base=GROUPFOLDERS_BASE, **kwargs,
        )

    async def create_folder(self, mount_point: str) -> int:
        data = await self._call("POST", "/folders", data={"mountpoint": mount_point})
        folder_id = int((data or {}).get("id") or 0) if isinstance(data, dict) else 0
        if folder_id <= 0:
            raise PlatformError(f"group folder '{mount_point}' returned no id", SERVICE)
        return folder_id

    async def remove_folder(self, folder_id: int) -> None:
        await self._call("DELETE", f"/folders/{folder_id}", allow_status=(404,))

    async def add_group(self, folder_id: int, gid: str) -> None:
        await self._call("POST", f"/folders/{folder_id}/groups", data={"group": gid})

    async def set_quota(self, folder_id: int, quota_bytes: int) -> None:
        await self._call("POST", f"/folders/{folder_id}/quota", data={"quota": quota_bytes})

    async def set_permissions(self, folder_id: int, gid: str, permissions: int) -> None:
        await self._call(
            "POST", f"/folders/{folder_id}/groups/{quote(gid, safe='')}",
            data={"permissions": permissions},
        )

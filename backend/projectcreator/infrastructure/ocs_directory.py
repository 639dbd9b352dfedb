"""OCS Directory - host groups and user accounts over the OCS provisioning API.

Invariants:
    - Group ids are passed through verbatim (URL-quoted in paths)
    - get_user returns None for unknown accounts, never raises on 404
    - Membership reads go through /cloud/users/{uid}/groups (works for non-admin groups too)

Design Decisions:
    - Implements both GroupDirectory and UserDirectory: same endpoint family, same client
"""

from urllib.parse import quote

from projectcreator.core.domain_types import PlatformUser
from projectcreator.infrastructure.nextcloud_client import ResilientNextcloudClient

SERVICE = "ocs"


def _seg(value: str) -> str:
    return quote(value, safe="")


class OcsDirectory:
    """GroupDirectory + UserDirectory backed by /ocs/v2.php/cloud."""

    def __init__(self, client: ResilientNextcloudClient):
        self._client = client

    # ─── Groups ──────────────────────────────────────────────────

    async def group_exists(self, gid: str) -> bool:
        data = await self._client.ocs(
            "GET", "/cloud/groups", service=SERVICE, params={"search": gid},
        )
        return gid in ((data or {}).get("groups") or [])

    async def create_group(self, gid: str) -> None:
        await self._client.ocs(
            "POST", "/cloud/groups", service=SERVICE, data={"groupid": gid},
        )

    async def delete_group(self, gid: str) -> None:
        await self._client.ocs("DELETE", f"/cloud/groups/{_seg(gid)}", service=SERVICE)

    async def add_user(self, gid: str, user_id: str) -> None:
        await self._client.ocs(
            "POST", f"/cloud/users/{_seg(user_id)}/groups",
            service=SERVICE, data={"groupid": gid},
        )

    async def remove_user(self, gid: str, user_id: str) -> None:
        await self._client.ocs(
            "DELETE", f"/cloud/users/{_seg(user_id)}/groups",
            service=SERVICE, params={"groupid": gid},
        )

    async def list_user_groups(self, user_id: str) -> list[str]:
        data = await self._client.ocs(
            "GET", f"/cloud/users/{_seg(user_id)}/groups",
            service=SERVICE, allow_status=(404,),
        )
        return [str(gid) for gid in ((data or {}).get("groups") or [])]

    async def is_in_group(self, user_id: str, gid: str) -> bool:
        return gid in await self.list_user_groups(user_id)

    async def list_members(self, gid: str) -> list[str]:
        data = await self._client.ocs(
            "GET", f"/cloud/groups/{_seg(gid)}/users",
            service=SERVICE, allow_status=(404,),
        )
        return [str(uid) for uid in ((data or {}).get("users") or [])]

    # ─── Users ───────────────────────────────────────────────────

    async def get_user(self, user_id: str) -> PlatformUser | None:
        data = await self._client.ocs(
            "GET", f"/cloud/users/{_seg(user_id)}",
            service=SERVICE, allow_status=(404,),
        )
        if not data:
            return None
        return PlatformUser(
            uid=str(data.get("id") or user_id),
            display_name=str(data.get("displayname") or data.get("display-name") or ""),
            email=str(data.get("email") or ""),
        )

"""Platform Factory - builds the shared HTTP client and the Platform bundle from settings."""

from projectcreator.config import Settings
from projectcreator.core.gateway_protocols import Platform
from projectcreator.infrastructure.deck_gateway import DeckGateway
from projectcreator.infrastructure.group_folders_gateway import GroupFoldersGateway
from projectcreator.infrastructure.nextcloud_client import ResilientNextcloudClient
from projectcreator.infrastructure.ocs_directory import OcsDirectory
from projectcreator.infrastructure.webdav_files import WebDavFiles


def create_nextcloud_client(settings: Settings, transport=None) -> ResilientNextcloudClient:
    return ResilientNextcloudClient(
        base_url=settings.nextcloud_url,
        user=settings.nextcloud_user,
        app_password=settings.nextcloud_app_password,
        max_retries=settings.nextcloud_max_retries,
        base_delay_ms=settings.nextcloud_base_delay_ms,
        max_delay_ms=settings.nextcloud_max_delay_ms,
        timeout_seconds=settings.nextcloud_timeout_seconds,
        transport=transport,
    )


def build_platform(client: ResilientNextcloudClient, admin_group: str = "admin") -> Platform:
    directory = OcsDirectory(client)
    return Platform(
        groups=directory,
        users=directory,
        deck=DeckGateway(client),
        files=WebDavFiles(client),
        group_folders=GroupFoldersGateway(client),
        admin_group=admin_group,
    )

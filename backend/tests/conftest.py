"""Root conftest - shared test configuration."""

import os

# Ensure tests never reach a real Nextcloud or database
os.environ.setdefault("NEXTCLOUD_URL", "http://nextcloud.test")
os.environ.setdefault("NEXTCLOUD_APP_PASSWORD", "test-app-password")
os.environ.setdefault("WEBHOOK_SECRET", "test-webhook-secret")
os.environ.setdefault(
    "DATABASE_URL",
    "sqlite+aiosqlite:///test.db",
)

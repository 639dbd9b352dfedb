"""Infrastructure Layer - database sessions, logging and Nextcloud HTTP gateways.

Invariants:
    - Every platform call goes through ResilientNextcloudClient (retry, timeout, error mapping)
"""

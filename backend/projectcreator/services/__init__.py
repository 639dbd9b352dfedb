"""Services Layer - async orchestration over the database and the platform gateways.

Invariants:
    - Services take an AsyncSession and a Platform bundle; no module-level state
    - Pure decisions are delegated to core/
"""

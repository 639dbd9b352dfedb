"""Core Layer - pure project rules: card catalogues, visibility, planning, naming.

Invariants:
    - No module in core/ imports from services/, api/, infrastructure/, or db/
    - Functions are deterministic given their inputs (today/now passed in where needed)
"""

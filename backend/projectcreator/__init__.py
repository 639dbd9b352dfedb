"""Project Creator Package - provisioning service for Nextcloud projects.

Invariants:
    - Package root contains no executable code (no import side-effects)
"""

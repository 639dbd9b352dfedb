"""Naming - resource names derived from a project name.

Invariants:
    - Group ids are "proj-" + 16 lowercase hex chars
    - Folder names: "<name> - <suffix>", then "<name> (2) - <suffix>", "(3)", ... until unused
    - Board colours are 6 uppercase hex digits
"""

import secrets
from collections.abc import Callable

GROUP_ID_PREFIX = "proj-"
SHARED_FILES_SUFFIX = "Shared Files"
PRIVATE_FILES_SUFFIX = "Private Files"
WHITEBOARD_CONTENT = '{"elements":[],"scrollToContent":true}'


def new_group_id() -> str:
    return GROUP_ID_PREFIX + secrets.token_hex(8)


def random_board_color() -> str:
    return f"{secrets.randbelow(0x1000000):06X}"


def board_title(project_name: str) -> str:
    return f"{project_name} - Main Board"


def whiteboard_file_name(project_name: str) -> str:
    return f"{project_name}.whiteboard"


def folder_name_candidates(project_name: str, suffix: str):
    """Yield "<name> - <suffix>", "<name> (2) - <suffix>", ... forever."""
    yield f"{project_name} - {suffix}"
    counter = 2
    while True:
        yield f"{project_name} ({counter}) - {suffix}"
        counter += 1


def unique_folder_name(project_name: str, suffix: str, exists: Callable[[str], bool]) -> str:
    """First candidate for which `exists` is False."""
    return next(
        c for c in folder_name_candidates(project_name, suffix) if not exists(c)
    )

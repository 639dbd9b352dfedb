"""File Tree - nests flat WebDAV listings into {name, path, type, size, mtime, children}.

Invariants:
    - Folders sort before files, then case-insensitive by name
    - Files carry children == []; every entry below root appears exactly once
"""

import posixpath

from projectcreator.core.domain_types import FileEntry


def _node(entry: FileEntry) -> dict:
    return {
        "name": entry.name,
        "path": entry.path,
        "type": "folder" if entry.is_dir else "file",
        "size": entry.size,
        "mtime": entry.mtime,
        "children": [],
    }


def _sort_key(node: dict) -> tuple[int, str]:
    return (0 if node["type"] == "folder" else 1, node["name"].lower())


def build_tree(root: FileEntry, entries: list[FileEntry]) -> dict:
    """Build the nested tree below `root` from entries whose paths live under it."""
    nodes: dict[str, dict] = {root.path.strip("/"): _node(root)}
    for entry in sorted(entries, key=lambda e: e.path.count("/")):
        key = entry.path.strip("/")
        if key in nodes:
            continue
        nodes[key] = _node(entry)

    for key, node in nodes.items():
        parent = posixpath.dirname(key)
        if key != root.path.strip("/") and parent in nodes:
            nodes[parent]["children"].append(node)

    for node in nodes.values():
        node["children"].sort(key=_sort_key)
    return nodes[root.path.strip("/")]

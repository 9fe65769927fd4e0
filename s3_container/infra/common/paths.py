"""Path algebra for container paths and object keys."""
import posixpath
from typing import Optional

SEPARATOR = "/"


def replace_back_slashes(path: str) -> str:
    """Object keys only accept forward slashes as delimiters."""
    return path.replace("\\", SEPARATOR)


def remove_leading_slash(path: str) -> str:
    """Strip one leading separator; a rooted key would create an empty top-level folder."""
    return path[1:] if path.startswith(SEPARATOR) or path.startswith("\\") else path


def add_trailing_slash(path: str) -> str:
    """
    Ensure a listing prefix ends with the delimiter.
    
    Without it, listing "group/data" would also match "group/data-2/...".
    """
    return path if path.endswith(SEPARATOR) or path.endswith("\\") else path + SEPARATOR


def components(path: str) -> list[str]:
    """
    Split a path into its normalized components.
    
    "." is dropped and ".." removes the previous component; ".." never
    climbs above the root.
    
    Args:
        path: Container path, relative or rooted
    
    Returns:
        List of non-empty components (empty for the root)
    """
    nodes: list[str] = []
    for node in replace_back_slashes(path or "").split(SEPARATOR):
        if not node or node == ".":
            continue
        if node == "..":
            if nodes:
                nodes.pop()
            continue
        nodes.append(node)
    return nodes


def normalize(path: str) -> str:
    """
    Normalize a path.
    
    Collapses repeated separators, removes the leading separator and keeps a
    trailing separator (directory semantics) when the path is not the root.
    The empty string is the root. Idempotent.
    """
    nodes = components(path)
    if not nodes:
        return ""
    normal = SEPARATOR.join(nodes)
    if replace_back_slashes(path).endswith(SEPARATOR):
        normal += SEPARATOR
    return normal


def compose(*parts: str) -> str:
    """
    Join path parts with a single separator and normalize.
    
    Empty parts are skipped; composing nothing yields the root.
    """
    non_empty = [part for part in parts if part]
    if not non_empty:
        return ""
    return normalize(SEPARATOR.join(non_empty))


def parent(path: str) -> Optional[str]:
    """
    Get the parent path.
    
    Returns:
        Parent path ("" for a top-level path), or None for the root
    """
    nodes = components(path)
    if not nodes:
        return None
    return SEPARATOR.join(nodes[:-1])


def relativize(path: str, base: str) -> str:
    """
    Compute `path` relative to `base`.
    
    Both arguments are resolved against a synthetic root first, so plain
    relative strings and an empty `base` work the same as rooted paths.
    
    Returns:
        Relative path without trailing separator ("" when equal)
    """
    rooted_path = SEPARATOR + SEPARATOR.join(components(path))
    rooted_base = SEPARATOR + SEPARATOR.join(components(base))
    relative = posixpath.relpath(rooted_path, rooted_base)
    return "" if relative == "." else relative


def is_root(path: str) -> bool:
    """Check if a path denotes the container root."""
    return not components(path)


class ContainerKeys:
    """Derives object keys from container paths under a root key prefix."""
    
    def __init__(self, root_key: str = ""):
        """
        Initialize key builder.
        
        Args:
            root_key: Key prefix of the container inside the bucket ("" for bucket root)
        """
        self.root_key = SEPARATOR.join(components(root_key))
    
    @property
    def is_bucket_root(self) -> bool:
        """Check if the container lives at the root of the bucket."""
        return not self.root_key
    
    def key(self, path: str) -> str:
        """Object key for a container path (trailing separator preserved)."""
        return compose(self.root_key, normalize(path))
    
    def prefix(self, path: str) -> str:
        """Listing prefix for a container path ("" for the bucket root)."""
        key = self.key(path)
        return add_trailing_slash(key) if key else ""
    
    def path(self, key: str) -> str:
        """Container path of an object key."""
        return relativize(key, self.root_key)

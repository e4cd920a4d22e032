"""Relationship resolver — per-part relationship id -> root-relative archive path.

A slide at ``ppt/slides/slide3.xml`` keeps its relationships in
``ppt/slides/_rels/slide3.xml.rels``.  Targets there are relative to the
slide (``../media/image1.png``); the reader needs root-relative paths
(``ppt/media/image1.png``).
"""

import posixpath
from dataclasses import dataclass, field

from .archive import ArchiveReader
from .xmlnav import all_children_by_local_name, local_name

RELS_DIR = "_rels"
RELS_SUFFIX = ".rels"
PARENT_PREFIX = "../"


def relationships_path(part_path: str) -> str:
    """Sibling relationships part for ``part_path``."""
    directory, filename = posixpath.split(part_path)
    return posixpath.join(directory, RELS_DIR, filename + RELS_SUFFIX)


def normalize_target(target: str, part_path: str, root_prefix: str = "ppt/") -> str:
    """Rewrite a relationship target to a root-relative archive path.

    - ``../x``  -> ``<root_prefix>x``
    - ``/ppt/x`` -> ``ppt/x``
    - ``x``     -> resolved against the part's own directory
    """
    if target.startswith(PARENT_PREFIX):
        return root_prefix + target[len(PARENT_PREFIX):]
    if target.startswith("/"):
        return target.lstrip("/")
    directory = posixpath.dirname(part_path)
    return posixpath.normpath(posixpath.join(directory, target))


@dataclass
class RelationshipMap:
    """Relationship ids of one part, built fresh per slide and never persisted."""
    part_path: str
    targets: dict[str, str] = field(default_factory=dict)

    def resolve(self, rel_id: str | None) -> str | None:
        if not rel_id:
            return None
        return self.targets.get(rel_id)

    def __len__(self) -> int:
        return len(self.targets)

    def __contains__(self, rel_id: str) -> bool:
        return rel_id in self.targets


def load_relationships(archive: ArchiveReader, part_path: str,
                       root_prefix: str = "ppt/") -> RelationshipMap:
    """Build the relationship map for ``part_path``.

    An absent relationships part yields an empty map.  External targets
    (hyperlinks, linked media) are not archive paths and are left out.
    An unparsable relationships part raises ResourceMissing.
    """
    rels = RelationshipMap(part_path=part_path)
    root = archive.read_xml(relationships_path(part_path))
    if root is None:
        return rels

    candidates = [root] if local_name(root) == "Relationship" else []
    candidates += all_children_by_local_name(root, "Relationship")
    for rel in candidates:
        rel_id = rel.get("Id")
        target = rel.get("Target")
        if not rel_id or not target:
            continue
        if rel.get("TargetMode") == "External":
            continue
        rels.targets[rel_id] = normalize_target(target, part_path, root_prefix)
    return rels

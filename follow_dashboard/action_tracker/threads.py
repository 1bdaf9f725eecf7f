# follow_dashboard/action_tracker/threads.py
"""
Threaded comments: flat parent-referenced records -> reply tree.

Tree building policy:
- A comment whose parent id is unknown is promoted to the top level
- A comment that is its own parent is promoted to the top level
- In a parent cycle, the earliest member (created_at, then input position)
  is promoted to the top level, which breaks the cycle
- Duplicate ids keep the first occurrence
- Roots and every replies list are ordered by (created_at, input position)

Each degraded case is logged as a warning; none of them raise.

VERSION: 1.0.0
"""

import logging
import uuid
from dataclasses import replace
from datetime import datetime
from typing import Dict, Iterable, List, Optional

from .constants import MAX_REPLY_DEPTH
from .mentions import extract_mentions
from .models import CommentNode, ThreadComment
from .users import UserDirectory

logger = logging.getLogger(__name__)


# =============================================================================
# TREE
# =============================================================================

def build_tree(comments: Iterable[ThreadComment]) -> List[CommentNode]:
    """
    Build the reply forest from flat comments.

    Iterative throughout; a visited set bounds every parent-chain walk, so
    arbitrary (even cyclic) parent data terminates in O(n log n).
    """
    # Index, first occurrence wins
    index: Dict[str, ThreadComment] = {}
    position: Dict[str, int] = {}
    for pos, comment in enumerate(comments):
        if comment.id in index:
            logger.warning(f"Duplicate comment id '{comment.id}' ignored")
            continue
        index[comment.id] = comment
        position[comment.id] = pos

    def sort_key(comment_id: str):
        return (index[comment_id].created_at, position[comment_id])

    # Resolve parents
    parent: Dict[str, Optional[str]] = {}
    for cid, comment in index.items():
        pid = comment.parent_id
        if pid is None:
            parent[cid] = None
        elif pid == cid:
            logger.warning(f"Comment '{cid}' is its own parent; shown at top level")
            parent[cid] = None
        elif pid not in index:
            logger.warning(f"Comment '{cid}' has unknown parent '{pid}'; shown at top level")
            parent[cid] = None
        else:
            parent[cid] = pid

    # Break cycles
    resolved = set()
    for cid in index:
        path: List[str] = []
        on_path = set()
        current = cid
        while current is not None and current not in resolved:
            if current in on_path:
                cycle = path[path.index(current):]
                promoted = min(cycle, key=sort_key)
                logger.warning(
                    f"Comment parent cycle {cycle}; promoting '{promoted}' to top level"
                )
                parent[promoted] = None
                break
            on_path.add(current)
            path.append(current)
            current = parent[current]
        resolved.update(path)

    # Attach
    nodes = {cid: CommentNode(comment=comment) for cid, comment in index.items()}
    children: Dict[str, List[str]] = {cid: [] for cid in index}
    roots: List[str] = []
    for cid in index:
        pid = parent[cid]
        if pid is None:
            roots.append(cid)
        else:
            children[pid].append(cid)

    roots.sort(key=sort_key)
    for cid, child_ids in children.items():
        child_ids.sort(key=sort_key)
        nodes[cid].replies = [nodes[c] for c in child_ids]

    # Depths
    stack = [(nodes[cid], 0) for cid in roots]
    while stack:
        node, depth = stack.pop()
        node.depth = depth
        stack.extend((reply, depth + 1) for reply in node.replies)

    return [nodes[cid] for cid in roots]


def flatten_tree(tree: List[CommentNode]) -> List[CommentNode]:
    """Depth-first display order."""
    ordered = []
    stack = list(reversed(tree))
    while stack:
        node = stack.pop()
        ordered.append(node)
        stack.extend(reversed(node.replies))
    return ordered


def count_comments(tree: List[CommentNode]) -> int:
    return len(flatten_tree(tree))


def can_reply(node: CommentNode, max_depth: int = MAX_REPLY_DEPTH) -> bool:
    return node.depth < max_depth


def comments_for_action(comments: Iterable[ThreadComment], action_id: str) -> List[ThreadComment]:
    return [c for c in comments if c.action_id == action_id]


# =============================================================================
# CREATE / EDIT
# =============================================================================

def create_comment(
    action_id: str,
    author_id: str,
    content: str,
    directory: UserDirectory,
    parent_id: str = None,
    comment_id: str = None,
    now: datetime = None
) -> ThreadComment:
    """
    New comment with mentions resolved from its content.

    Raises:
        ValueError: content is empty or whitespace only
    """
    if not content or not content.strip():
        raise ValueError("Comment content must not be empty")

    now = now or datetime.now()
    comment = ThreadComment(
        id=comment_id or f"c-{uuid.uuid4().hex[:12]}",
        action_id=action_id,
        parent_id=parent_id,
        author_id=author_id,
        content=content,
        mentions=tuple(extract_mentions(content, directory)),
        reactions=(),
        created_at=now,
        updated_at=now,
        is_edited=False,
    )
    logger.info(f"Comment {comment.id} on action {action_id} by {author_id}"
                f"{' (reply to ' + parent_id + ')' if parent_id else ''}")
    return comment


def edit_comment(
    comment: ThreadComment,
    content: str,
    directory: UserDirectory,
    now: datetime = None
) -> ThreadComment:
    """Replace content, re-extract mentions and mark the comment edited."""
    if not content or not content.strip():
        raise ValueError("Comment content must not be empty")

    return replace(
        comment,
        content=content,
        mentions=tuple(extract_mentions(content, directory)),
        updated_at=now or datetime.now(),
        is_edited=True,
    )


def replace_comment(comments: Iterable[ThreadComment], updated: ThreadComment) -> List[ThreadComment]:
    """New list with the comment sharing updated.id swapped for updated."""
    return [updated if c.id == updated.id else c for c in comments]

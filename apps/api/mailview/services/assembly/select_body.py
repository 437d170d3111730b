from __future__ import annotations

from collections import deque

from mailview.services.assembly.types import MimeNode


def select_best_part(root: MimeNode) -> MimeNode | None:
    """Pick the part to display: first HTML node in BFS order, else first plain one."""
    queue: deque[MimeNode] = deque([root])
    text_plain: MimeNode | None = None

    while queue:
        node = queue.popleft()
        mime_type = (node.mime_type or "").lower()
        if mime_type == "text/html":
            return node
        if mime_type == "text/plain" and text_plain is None:
            text_plain = node
        if node.parts:
            queue.extend(node.parts)

    return text_plain

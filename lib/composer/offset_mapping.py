"""
Caret offset translation between rendered HTML and markdown.

The renderer emits one record per node. Records of container nodes overlap
the records of their children, lookups use the innermost record containing
the offset. Markdown ranges are inclusive on both ends, HTML ranges exclude
the end.
"""

import logging
from dataclasses import asdict, dataclass
from typing import Any, Callable, Dict, Optional, Sequence

from .ast_nodes import NodeType

logger = logging.getLogger(__name__)

ATOMIC_NODE_TYPES = frozenset({NodeType.MENTION, NodeType.CUSTOM_EMOJI})


@dataclass
class OffsetMappingRecord:
    htmlStart: int
    htmlEnd: int
    mdStart: int
    mdEnd: int
    nodeType: NodeType
    raw: str
    nodeId: Optional[str] = None

    def toDict(self) -> Dict[str, Any]:
        ret = asdict(self)
        ret["nodeType"] = str(self.nodeType)
        return ret


OffsetMapping = Sequence[OffsetMappingRecord]


def _findInnermost(
    mapping: OffsetMapping,
    contains: Callable[[OffsetMappingRecord], bool],
    span: Callable[[OffsetMappingRecord], int],
) -> Optional[OffsetMappingRecord]:
    # Children follow their parents, so on equal spans the later record is deeper
    found: Optional[OffsetMappingRecord] = None
    for record in mapping:
        if contains(record) and (found is None or span(record) <= span(found)):
            found = record
    return found


def mdToHtmlOffset(mapping: OffsetMapping, mdOffset: int) -> int:
    """Convert markdown caret offset to HTML caret offset."""
    record = _findInnermost(
        mapping,
        lambda r: r.mdStart <= mdOffset <= r.mdEnd,
        lambda r: r.mdEnd - r.mdStart,
    )

    if record is not None:
        relativeOffset = mdOffset - record.mdStart
        if record.nodeType in ATOMIC_NODE_TYPES:
            if mdOffset == record.mdStart:
                return record.htmlStart
            if relativeOffset > record.htmlEnd - record.htmlStart:
                return record.htmlEnd
        return min(record.htmlStart + relativeOffset, record.htmlEnd)

    lastRecord = next((r for r in reversed(mapping) if mdOffset > r.mdEnd), None)
    if lastRecord is not None:
        return lastRecord.htmlEnd + (mdOffset - lastRecord.mdEnd)

    return mdOffset


def htmlToMdOffset(mapping: OffsetMapping, htmlOffset: int) -> int:
    """Convert HTML caret offset to markdown caret offset."""
    record = _findInnermost(
        mapping,
        lambda r: r.htmlStart <= htmlOffset < r.htmlEnd,
        lambda r: r.htmlEnd - r.htmlStart,
    )

    if record is not None:
        # Caret can not stand inside an atomic node
        if record.nodeType in ATOMIC_NODE_TYPES:
            return record.mdStart if htmlOffset == record.htmlStart else record.mdEnd
        return min(record.mdStart + (htmlOffset - record.htmlStart), record.mdEnd)

    lastRecord = next((r for r in reversed(mapping) if htmlOffset >= r.htmlEnd), None)
    if lastRecord is not None:
        return lastRecord.mdEnd + (htmlOffset - lastRecord.htmlEnd)

    return htmlOffset

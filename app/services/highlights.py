"""Segments surlignés d'un block à partir des commentaires ancrés"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

from app.schemas.block import TextRun


@dataclass(frozen=True)
class HighlightAnchor:
    comment_id: int
    start: int
    end: int
    color: str


@dataclass(frozen=True)
class Segment:
    text: str
    highlighted: bool = False
    comment_id: Optional[int] = None
    color: Optional[str] = None
    start: int = field(default=0, compare=False)  # offset dans le texte du block


def anchors_from_comments(comments) -> List[HighlightAnchor]:
    """Garde les commentaires qui ont une ancre (les commentaires de block entier n'en ont pas)"""
    anchors = []
    for comment in comments:
        if comment.selection_start is None or comment.selection_end is None:
            continue
        anchors.append(HighlightAnchor(
            comment_id=comment.id,
            start=comment.selection_start,
            end=comment.selection_end,
            color=comment.author_color,
        ))
    return anchors


def compose(runs: Sequence[TextRun], anchors: Sequence[HighlightAnchor]) -> List[Segment]:
    """
    Découpe le texte concaténé en segments normaux / surlignés.

    Les ancres sont triées par start (tri stable). Les chevauchements ne sont
    pas fusionnés: une ancre qui commence avant la fin de la précédente émet
    son propre segment, le texte commun apparaît dans les deux. Les offsets
    stockés sont utilisés même si le texte a changé depuis (best effort).
    """
    text = "".join(run.content for run in runs)
    length = len(text)
    segments = []
    cursor = 0

    for anchor in sorted(anchors, key=lambda a: a.start):
        start = max(0, anchor.start)
        end = min(anchor.end, length)
        if start >= end:
            continue
        if start > cursor:
            segments.append(Segment(text=text[cursor:start], start=cursor))
        segments.append(Segment(
            text=text[start:end],
            highlighted=True,
            comment_id=anchor.comment_id,
            color=anchor.color,
            start=start,
        ))
        cursor = max(cursor, end)

    if cursor < length:
        segments.append(Segment(text=text[cursor:], start=cursor))
    return segments


def anchors_by_block(comments) -> Dict[str, List[HighlightAnchor]]:
    grouped = {}
    for comment in comments:
        for anchor in anchors_from_comments([comment]):
            grouped.setdefault(comment.block_id, []).append(anchor)
    return grouped

"""
Sélection navigateur -> ancre stable dans le texte d'un block.

Le navigateur donne des positions relatives au <span> d'un run
(data-block-id, data-run); les ancres utilisent des offsets dans la
concaténation des runs du block.
"""

from dataclasses import dataclass
from typing import List, Optional

from app.schemas.block import Block, TextRun


@dataclass(frozen=True)
class SelectionPoint:
    block_id: str
    run_index: int
    offset: int  # offset dans le texte du run


@dataclass(frozen=True)
class Anchor:
    block_id: str
    start: int
    end: int
    selected_text: str


def run_boundaries(runs: List[TextRun]) -> List[int]:
    """Offset de début de chaque run dans le texte concaténé"""
    boundaries = []
    position = 0
    for run in runs:
        boundaries.append(position)
        position += len(run.content)
    return boundaries


def to_block_offset(runs: List[TextRun], run_index: int, offset: int) -> int:
    if not runs:
        return 0
    run_index = max(0, min(run_index, len(runs) - 1))
    offset = max(0, min(offset, len(runs[run_index].content)))
    return run_boundaries(runs)[run_index] + offset


def resolve_anchor(block: Block, start: SelectionPoint, end: SelectionPoint) -> Optional[Anchor]:
    """
    Calcule l'ancre (block_id, start, end, selected_text) d'une sélection.

    - le block de référence est celui du point de départ
    - une fin dans un autre block est tronquée à la fin du texte du block
    - sélection vide ou sans texte -> None
    """
    if start.block_id != block.id:
        return None

    text = block.plain_text
    start_offset = to_block_offset(block.rich_text, start.run_index, start.offset)
    if end.block_id == block.id:
        end_offset = to_block_offset(block.rich_text, end.run_index, end.offset)
    else:
        end_offset = len(text)

    # sélection faite "à l'envers"
    if end_offset < start_offset:
        start_offset, end_offset = end_offset, start_offset

    selected = text[start_offset:end_offset]
    if not selected:
        return None

    return Anchor(block_id=block.id, start=start_offset, end=end_offset, selected_text=selected)


def anchor_is_stale(block: Block, start: int, end: int, selected_text: Optional[str]) -> bool:
    """True si le texte du block a changé depuis la création du commentaire"""
    if selected_text is None:
        return False
    return block.plain_text[start:end] != selected_text

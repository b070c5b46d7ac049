from app.schemas.block import Block, BlockKind, TextRun
from app.services.anchors import SelectionPoint, anchor_is_stale, resolve_anchor, run_boundaries, to_block_offset

BLOCK = Block(id="b1", kind=BlockKind.PARAGRAPH, rich_text=[
    TextRun(content="The quick "),
    TextRun(content="brown"),
    TextRun(content=" fox"),
])


def point(run, offset, block_id="b1"):
    return SelectionPoint(block_id=block_id, run_index=run, offset=offset)

# ========== TEST OFFSETS ==========
def test_run_boundaries():
    assert run_boundaries(BLOCK.rich_text) == [0, 10, 15]

def test_to_block_offset_clamps():
    assert to_block_offset(BLOCK.rich_text, 1, 2) == 12
    assert to_block_offset(BLOCK.rich_text, 1, 99) == 15
    assert to_block_offset(BLOCK.rich_text, 9, 0) == 15
    assert to_block_offset([], 0, 3) == 0

# ========== TEST RESOLVE ==========
def test_selection_inside_one_run():
    anchor = resolve_anchor(BLOCK, point(0, 4), point(0, 9))
    assert (anchor.start, anchor.end, anchor.selected_text) == (4, 9, "quick")

def test_selection_across_runs():
    """Tester une sélection qui commence et finit dans deux spans différents"""
    anchor = resolve_anchor(BLOCK, point(0, 4), point(2, 4))
    assert anchor.block_id == "b1"
    assert (anchor.start, anchor.end) == (4, 19)
    assert anchor.selected_text == "quick brown fox"

def test_backward_selection_is_normalised():
    anchor = resolve_anchor(BLOCK, point(1, 5), point(1, 0))
    assert (anchor.start, anchor.end, anchor.selected_text) == (10, 15, "brown")

def test_empty_selection_discarded():
    assert resolve_anchor(BLOCK, point(1, 2), point(1, 2)) is None

def test_whitespace_only_selection_is_kept():
    """Une sélection d'espaces couvre du texte: ancre gardée"""
    anchor = resolve_anchor(BLOCK, point(0, 9), point(0, 10))
    assert (anchor.start, anchor.end, anchor.selected_text) == (9, 10, " ")

def test_selection_spanning_blocks_is_truncated():
    """Tester qu'une sélection sur deux blocks est coupée à la fin du premier"""
    anchor = resolve_anchor(BLOCK, point(1, 0), point(0, 3, block_id="b2"))
    assert (anchor.start, anchor.end, anchor.selected_text) == (10, 19, "brown fox")

def test_selection_starting_in_other_block():
    assert resolve_anchor(BLOCK, point(0, 0, block_id="b2"), point(0, 3)) is None

# ========== TEST STALE ==========
def test_anchor_is_stale_after_edit():
    assert anchor_is_stale(BLOCK, 4, 9, "quick") is False
    assert anchor_is_stale(BLOCK, 4, 9, "slow!") is True
    assert anchor_is_stale(BLOCK, 4, 9, None) is False

from types import SimpleNamespace

from app.schemas.block import TextRun
from app.services.highlights import HighlightAnchor, Segment, anchors_by_block, anchors_from_comments, compose

RUNS = [TextRun(content="The quick "), TextRun(content="brown fox")]


def anchor(comment_id, start, end, color="#3B82F6"):
    return HighlightAnchor(comment_id=comment_id, start=start, end=end, color=color)

# ========== TEST COMPOSE ==========
def test_compose_without_anchors():
    assert compose(RUNS, []) == [Segment(text="The quick brown fox")]

def test_compose_single_anchor():
    """Offsets 5-10 sur "The quick brown fox" = "uick " """
    segments = compose(RUNS, [anchor(1, 5, 10)])

    assert [s.text for s in segments] == ["The q", "uick ", "brown fox"]
    assert [s.highlighted for s in segments] == [False, True, False]
    assert segments[1].comment_id == 1
    assert segments[1].color == "#3B82F6"

def test_compose_is_independent_of_input_order():
    anchors = [anchor(1, 0, 3), anchor(2, 10, 15), anchor(3, 16, 19)]
    expected = compose(RUNS, anchors)
    assert compose(RUNS, list(reversed(anchors))) == expected
    assert compose(RUNS, [anchors[1], anchors[2], anchors[0]]) == expected
    assert [s.text for s in expected] == ["The", " quick ", "brown", " ", "fox"]

def test_compose_segments_carry_block_offsets():
    segments = compose(RUNS, [anchor(1, 4, 15), anchor(2, 10, 19)])
    assert [s.start for s in segments] == [0, 4, 10]

def test_compose_clamps_end_to_text_length():
    segments = compose(RUNS, [anchor(1, 16, 50)])
    assert [s.text for s in segments] == ["The quick brown ", "fox"]

def test_compose_skips_anchor_past_text():
    """Tester une ancre dont le texte a disparu (document modifié)"""
    assert compose(RUNS, [anchor(1, 40, 45)]) == [Segment(text="The quick brown fox")]

def test_compose_overlap_is_split_not_merged():
    """Tester le comportement sur chevauchement: deux segments, pas de fusion"""
    segments = compose(RUNS, [anchor(1, 4, 15), anchor(2, 10, 19)])

    assert [(s.text, s.comment_id) for s in segments] == [
        ("The ", None),
        ("quick brown", 1),
        ("brown fox", 2),
    ]

def test_compose_equal_starts_keep_registration_order():
    segments = compose(RUNS, [anchor(1, 0, 3), anchor(2, 0, 9)])
    assert [s.comment_id for s in segments if s.highlighted] == [1, 2]

# ========== TEST ANCRES DEPUIS LES COMMENTAIRES ==========
def test_anchors_from_comments_skip_block_level_comments():
    comments = [
        SimpleNamespace(id=1, block_id="b1", selection_start=0, selection_end=3, author_color="#f00"),
        SimpleNamespace(id=2, block_id="b1", selection_start=None, selection_end=None, author_color="#0f0"),
        SimpleNamespace(id=3, block_id="b2", selection_start=2, selection_end=4, author_color="#00f"),
    ]
    assert [a.comment_id for a in anchors_from_comments(comments)] == [1, 3]
    grouped = anchors_by_block(comments)
    assert set(grouped) == {"b1", "b2"}
    assert grouped["b1"][0].color == "#f00"

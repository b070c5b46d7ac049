import pytest
from app.core.errors import NotFoundError
from app.schemas.block import BlockKind
from app.services.block_loader import fetch_block, load, parse_block, resolve_children, resolve_tree, walk
from fakes import FakeNotion, raw_block, raw_page

# ========== TEST PARSE BLOCK ==========
def test_parse_paragraph_runs():
    """Tester la conversion d'un paragraphe en runs annotés"""
    raw = raw_block("b1", "paragraph", "Hello ", "world")
    raw["paragraph"]["rich_text"][1]["annotations"]["bold"] = True
    raw["paragraph"]["rich_text"][1]["text"]["link"] = {"url": "https://example.com"}

    block = parse_block(raw)

    assert block.kind == BlockKind.PARAGRAPH
    assert block.plain_text == "Hello world"
    assert block.rich_text[1].annotations.bold is True
    assert block.rich_text[1].link == "https://example.com"
    assert block.children is None

def test_parse_unknown_type_is_unsupported():
    """Tester qu'un type inconnu devient unsupported (sans lever)"""
    block = parse_block({"id": "x", "type": "synced_block", "synced_block": {}})
    assert block.kind == BlockKind.UNSUPPORTED
    assert block.raw_type == "synced_block"

def test_parse_malformed_block_is_unsupported():
    """Tester un block dont le payload manque"""
    block = parse_block({"id": "x", "type": "paragraph"})
    assert block.kind == BlockKind.UNSUPPORTED

def test_parse_type_specific_payload():
    """Tester les payloads to_do / code / image / bookmark"""
    todo = parse_block(raw_block("t", "to_do", "Faire", checked=True))
    code = parse_block(raw_block("c", "code", "print(1)", language="python"))
    image = parse_block({"id": "i", "type": "image", "image": {
        "type": "external", "external": {"url": "https://img/a.png"}, "caption": [{"plain_text": "Légende"}]
    }})
    bookmark = parse_block({"id": "k", "type": "bookmark", "bookmark": {"url": "https://example.com"}})

    assert todo.payload["checked"] is True
    assert code.payload["language"] == "python"
    assert image.payload == {"source": "external", "url": "https://img/a.png", "caption": "Légende"}
    assert bookmark.payload["url"] == "https://example.com"

# ========== TEST LOAD ==========
def test_load_attaches_one_level_of_children():
    """Tester que load() charge les enfants directs des blocks has_children"""
    notion = FakeNotion()
    notion.add_page(raw_page("p"), [
        raw_block("toggle", "toggle", "Plus", has_children=True),
        raw_block("para", "paragraph", "Texte"),
    ])
    notion.children["toggle"] = [raw_block("inner", "bulleted_list_item", "Dedans", has_children=True)]
    notion.children["inner"] = [raw_block("deep", "paragraph", "Profond")]

    root = load(notion, "p")

    assert root.kind == BlockKind.CONTAINER
    assert [b.id for b in root.children] == ["toggle", "para"]
    toggle = root.children[0]
    assert [b.id for b in toggle.children] == ["inner"]
    # le niveau suivant n'est pas chargé automatiquement
    assert toggle.children[0].children is None
    assert not toggle.children[0].children_resolved
    assert "inner" not in notion.calls

def test_resolve_children_fetches_missing_level():
    """Tester le chargement à la demande d'un niveau manquant"""
    notion = FakeNotion()
    notion.children["inner"] = [raw_block("deep", "paragraph", "Profond")]
    block = parse_block(raw_block("inner", "toggle", "T", has_children=True))

    resolved = resolve_children(notion, block)

    assert [b.id for b in resolved.children] == ["deep"]
    assert block.children is None  # le block d'entrée n'est pas modifié

def test_load_unknown_document():
    """Tester NotFound pour un document inexistant"""
    with pytest.raises(NotFoundError):
        load(FakeNotion(), "missing")

def test_load_propagates_source_errors():
    """Tester qu'une erreur de la source remonte telle quelle"""
    class Failing(FakeNotion):
        def list_block_children(self, block_id):
            raise ConnectionError("rate limited")

    with pytest.raises(ConnectionError):
        load(Failing(), "p")

# ========== TEST ARBRE COMPLET ==========
def test_resolve_tree_loads_every_level():
    """Tester que resolve_tree charge tous les niveaux et walk les parcourt dans l'ordre"""
    notion = FakeNotion()
    notion.add_page(raw_page("p"), [
        raw_block("toggle", "toggle", "T", has_children=True),
        raw_block("para", "paragraph", "Texte"),
    ])
    notion.children["toggle"] = [raw_block("inner", "bulleted_list_item", "Dedans", has_children=True)]
    notion.children["inner"] = [raw_block("deep", "paragraph", "Profond")]

    root = resolve_tree(notion, load(notion, "p"))

    assert [b.id for b in walk(root)] == ["p", "toggle", "inner", "deep", "para"]
    assert all(b.children_resolved for b in walk(root))

def test_fetch_block():
    notion = FakeNotion()
    notion.add_page(raw_page("p"), [raw_block("b1", "quote", "Citation")])

    block = fetch_block(notion, "b1")
    assert block.kind == BlockKind.QUOTE
    assert block.plain_text == "Citation"
    with pytest.raises(NotFoundError):
        fetch_block(notion, "missing")

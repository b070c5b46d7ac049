from pydantic import BaseModel, ConfigDict
from enum import Enum
from typing import Optional, List, Any


class BlockKind(str, Enum):
    """Types de blocks Notion rendus (valeur = nom du type côté Notion)"""
    PARAGRAPH = "paragraph"
    HEADING1 = "heading_1"
    HEADING2 = "heading_2"
    HEADING3 = "heading_3"
    BULLETED_ITEM = "bulleted_list_item"
    NUMBERED_ITEM = "numbered_list_item"
    TO_DO = "to_do"
    TOGGLE = "toggle"
    CHILD_PAGE = "child_page"
    IMAGE = "image"
    DIVIDER = "divider"
    QUOTE = "quote"
    CODE = "code"
    FILE = "file"
    BOOKMARK = "bookmark"
    UNSUPPORTED = "unsupported"
    CONTAINER = "container"  # racine synthétique d'un document


LIST_KINDS = (BlockKind.BULLETED_ITEM, BlockKind.NUMBERED_ITEM)


class Annotations(BaseModel):
    model_config = ConfigDict(frozen=True)

    bold: bool = False
    italic: bool = False
    strikethrough: bool = False
    underline: bool = False
    code: bool = False
    color: str = "default"


class TextRun(BaseModel):
    model_config = ConfigDict(frozen=True)

    content: str = ""
    annotations: Annotations = Annotations()
    link: Optional[str] = None


class Block(BaseModel):
    """Noeud de l'arbre d'un document.

    children vaut None tant que le niveau n'a pas été chargé; un block
    has_children avec children None ne doit pas être rendu comme une feuille.
    """
    model_config = ConfigDict(frozen=True)

    id: str
    kind: BlockKind
    rich_text: List[TextRun] = []
    children: Optional[List["Block"]] = None
    has_children: bool = False
    payload: dict[str, Any] = {}  # checked, url, caption, language...
    raw_type: str = ""  # type d'origine, utile pour les blocks non supportés

    @property
    def plain_text(self) -> str:
        return "".join(run.content for run in self.rich_text)

    @property
    def children_resolved(self) -> bool:
        return not self.has_children or self.children is not None

Block.model_rebuild()

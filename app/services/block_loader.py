"""Chargement de l'arbre de blocks d'un document Notion"""

from concurrent.futures import ThreadPoolExecutor
from typing import Iterator, List, Optional
import logging

from app.schemas.block import Block, BlockKind, TextRun, Annotations

logger = logging.getLogger(__name__)

MAX_WORKERS = 8


def parse_rich_text(items: Optional[list]) -> List[TextRun]:
    runs = []
    for item in items or []:
        text = item.get("text") or {}
        content = text.get("content")
        if content is None:
            content = item.get("plain_text", "")
        link = (text.get("link") or {}).get("url")

        raw_annotations = item.get("annotations") or {}
        annotations = Annotations(**{
            key: value for key, value in raw_annotations.items()
            if key in Annotations.model_fields
        })
        runs.append(TextRun(content=content, annotations=annotations, link=link))
    return runs


def _media_payload(value: dict) -> dict:
    # image / file: hébergé par Notion ("file") ou externe
    source = value.get("type")
    url = (value.get(source) or {}).get("url") if source else None
    caption = value.get("caption") or []
    return {
        "source": source,
        "url": url,
        "caption": caption[0].get("plain_text", "") if caption else "",
    }


def parse_block(raw: dict) -> Block:
    """Convertit un block JSON Notion en Block (unsupported si type inconnu ou mal formé)"""
    raw_type = raw.get("type") or "unsupported"
    value = raw.get(raw_type)
    try:
        kind = BlockKind(raw_type)
    except ValueError:
        kind = BlockKind.UNSUPPORTED
    if kind == BlockKind.CONTAINER or (kind != BlockKind.UNSUPPORTED and not isinstance(value, dict)):
        kind = BlockKind.UNSUPPORTED
        value = {}
    value = value or {}

    payload = {}
    if kind == BlockKind.TO_DO:
        payload["checked"] = bool(value.get("checked"))
    elif kind == BlockKind.CODE:
        payload["language"] = value.get("language", "plain text")
    elif kind in (BlockKind.IMAGE, BlockKind.FILE):
        payload.update(_media_payload(value))
    elif kind == BlockKind.BOOKMARK:
        payload["url"] = value.get("url", "")
    elif kind == BlockKind.CHILD_PAGE:
        payload["title"] = value.get("title", "")

    children = None
    if isinstance(value.get("children"), list):
        children = [parse_block(child) for child in value["children"]]

    return Block(
        id=raw.get("id", ""),
        kind=kind,
        rich_text=parse_rich_text(value.get("rich_text")),
        children=children,
        has_children=bool(raw.get("has_children")) or children is not None,
        payload=payload,
        raw_type=raw_type,
    )


def fetch_blocks(source, container_id: str) -> List[Block]:
    """Blocks directs d'un container (page ou block), sans leurs enfants"""
    return [parse_block(raw) for raw in source.list_block_children(container_id)]


def fetch_block(source, block_id: str) -> Block:
    """Un block seul, sans ses enfants (NotFoundError s'il n'existe pas)"""
    return parse_block(source.retrieve_block(block_id))


def resolve_children(source, block: Block) -> Block:
    """Charge un niveau d'enfants manquant pour un block"""
    if block.children_resolved:
        return block
    logger.debug(f"Fetching children of block {block.id}")
    return block.model_copy(update={"children": fetch_blocks(source, block.id)})


def load(source, document_id: str) -> Block:
    """
    Charge un document: blocks de premier niveau + un niveau d'enfants.

    Les enfants des blocks has_children sont récupérés en parallèle. Les niveaux
    plus profonds restent None et sont résolus à la demande (resolve_children).
    NotFoundError si le document n'existe pas; les autres erreurs de la
    source remontent sans transformation.
    """
    top_level = fetch_blocks(source, document_id)
    pending = [block for block in top_level if not block.children_resolved]

    if pending:
        with ThreadPoolExecutor(max_workers=min(MAX_WORKERS, len(pending))) as pool:
            resolved = dict(zip(
                (block.id for block in pending),
                pool.map(lambda block: resolve_children(source, block), pending),
            ))
        top_level = [resolved.get(block.id, block) for block in top_level]

    logger.info(f"Loaded document {document_id}: {len(top_level)} blocks, {len(pending)} with children")
    return Block(
        id=document_id,
        kind=BlockKind.CONTAINER,
        children=top_level,
        has_children=True,
        raw_type="container",
    )


def resolve_tree(source, block: Block) -> Block:
    """Charge tous les niveaux manquants sous un block (pages draft: ancres sur tout l'arbre)"""
    block = resolve_children(source, block)
    if not block.children:
        return block
    return block.model_copy(update={"children": [resolve_tree(source, child) for child in block.children]})


def walk(block: Block) -> Iterator[Block]:
    """Le block puis ses descendants déjà chargés, en profondeur"""
    yield block
    for child in block.children or []:
        yield from walk(child)

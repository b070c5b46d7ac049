"""
Rendu HTML des blocks Notion.

Une fonction par type de block, table de dispatch fermée + placeholder pour
le reste. Un block qui plante au rendu devient un placeholder: une page
n'échoue jamais à cause d'un seul block.
"""

from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional
import logging

from markupsafe import Markup, escape

from app.schemas.block import Block, BlockKind, TextRun, LIST_KINDS
from app.services.anchors import run_boundaries
from app.services.highlights import HighlightAnchor, Segment, compose

logger = logging.getLogger(__name__)


@dataclass
class RenderContext:
    # ancres par block_id (pages draft uniquement)
    anchors: Dict[str, List[HighlightAnchor]] = field(default_factory=dict)
    # charge un niveau d'enfants manquant; None = pas d'appel réseau au rendu
    resolve: Optional[Callable[[Block], Block]] = None
    # ajoute data-block-id / data-run pour les sélections côté client
    interactive: bool = False


def _run_classes(run: TextRun) -> str:
    annotations = run.annotations
    classes = [
        name for name, enabled in (
            ("bold", annotations.bold),
            ("code", annotations.code),
            ("italic", annotations.italic),
            ("strikethrough", annotations.strikethrough),
            ("underline", annotations.underline),
        ) if enabled
    ]
    return " ".join(classes)


def _run_span(block: Block, index: int, run: TextRun, context: RenderContext,
              content: Optional[str] = None, offset: int = 0) -> Markup:
    attrs = Markup("")
    classes = _run_classes(run)
    if classes:
        attrs += Markup(' class="{}"').format(classes)
    if run.annotations.color != "default":
        attrs += Markup(' style="color: {}"').format(run.annotations.color)
    if context.interactive:
        attrs += Markup(' data-block-id="{}" data-run="{}"').format(block.id, index)
        if offset:
            # morceau de run coupé par un surlignage
            attrs += Markup(' data-offset="{}"').format(offset)

    inner = escape(run.content if content is None else content)
    if run.link:
        inner = Markup('<a href="{}" target="_blank" rel="noopener noreferrer">{}</a>').format(run.link, inner)
    return Markup("<span{}>{}</span>").format(attrs, inner)


def _segment_spans(block: Block, segment: Segment, context: RenderContext) -> Markup:
    """Coupe un segment aux frontières des runs (annotations et data-run conservés)"""
    end = segment.start + len(segment.text)
    pieces = []
    for index, (run, run_start) in enumerate(zip(block.rich_text, run_boundaries(block.rich_text))):
        low = max(segment.start, run_start)
        high = min(end, run_start + len(run.content))
        if low < high:
            pieces.append(_run_span(
                block, index, run, context,
                content=run.content[low - run_start:high - run_start], offset=low - run_start
            ))
    return Markup("").join(pieces)


def render_text(block: Block, context: RenderContext) -> Markup:
    """Texte du block: runs annotés, découpés en segments surlignés s'il y a des ancres"""
    anchors = context.anchors.get(block.id)
    if not anchors:
        return Markup("").join(
            _run_span(block, index, run, context) for index, run in enumerate(block.rich_text)
        )

    parts = []
    for segment in compose(block.rich_text, anchors):
        spans = _segment_spans(block, segment, context)
        if segment.highlighted:
            spans = Markup(
                '<mark class="comment-highlight" data-comment-id="{}" style="background-color: {}">{}</mark>'
            ).format(segment.comment_id, segment.color, spans)
        parts.append(spans)
    return Markup("").join(parts)


def _children(block: Block, context: RenderContext) -> Optional[List[Block]]:
    if block.children_resolved:
        return block.children or []
    if context.resolve is not None:
        return context.resolve(block).children or []
    return None


def _pending(block: Block) -> Markup:
    return Markup('<div class="children-pending" data-block-id="{}"></div>').format(block.id)


def _list_wrapper(items: List[Block], context: RenderContext) -> Markup:
    # le type de liste est celui du premier item
    tag = "ol" if items[0].kind == BlockKind.NUMBERED_ITEM else "ul"
    inner = Markup("").join(render(item, context) for item in items)
    return Markup("<{tag}>{inner}</{tag}>").format(tag=Markup(tag), inner=inner)


def render_blocks(blocks: List[Block], context: RenderContext = None) -> Markup:
    """Rend une suite de blocks frères, les items de liste consécutifs dans un seul wrapper"""
    context = context or RenderContext()
    parts = []
    pending_items = []
    for block in blocks:
        if block.kind in LIST_KINDS:
            pending_items.append(block)
            continue
        if pending_items:
            parts.append(_list_wrapper(pending_items, context))
            pending_items = []
        parts.append(render(block, context))
    if pending_items:
        parts.append(_list_wrapper(pending_items, context))
    return Markup("\n").join(parts)


def _paragraph(block, context):
    return Markup('<p class="my-5 leading-7">{}</p>').format(render_text(block, context))


def _heading(tag):
    def _render(block, context):
        return Markup("<{tag}>{text}</{tag}>").format(tag=Markup(tag), text=render_text(block, context))
    return _render


def _list_item(block, context):
    children = _children(block, context)
    nested = Markup("")
    if children is None:
        nested = _pending(block)
    elif children:
        nested = _list_wrapper(children, context)
    return Markup('<li class="pl-4 my-2">{}{}</li>').format(render_text(block, context), nested)


def _to_do(block, context):
    checked = Markup(" checked") if block.payload.get("checked") else Markup("")
    return Markup(
        '<div><label for="{id}"><input type="checkbox" id="{id}"{checked} disabled> {text}</label></div>'
    ).format(id=block.id, checked=checked, text=render_text(block, context))


def _toggle(block, context):
    children = _children(block, context)
    body = _pending(block) if children is None else render_blocks(children, context)
    return Markup("<details><summary>{}</summary>{}</details>").format(render_text(block, context), body)


def _child_page(block, context):
    return Markup("<p>{}</p>").format(block.payload.get("title", ""))


def _image(block, context):
    url = block.payload.get("url")
    if not url:
        return Markup("")
    caption = block.payload.get("caption", "")
    figcaption = Markup("<figcaption>{}</figcaption>").format(caption) if caption else Markup("")
    return Markup(
        '<figure class="relative"><img src="{}" alt="{}" class="my-5 rounded-lg object-cover">{}</figure>'
    ).format(url, caption, figcaption)


def _divider(block, context):
    return Markup("<hr>")


def _quote(block, context):
    return Markup(
        '<div class="bg-gray-100 border-l-4 border-gray-500 text-gray-700 p-4 my-4 rounded">'
        "<blockquote>{}</blockquote></div>"
    ).format(render_text(block, context))


def _code(block, context):
    return Markup('<pre class="pre"><code class="code_block language-{}">{}</code></pre>').format(
        block.payload.get("language", "plain text").replace(" ", "-"), block.plain_text
    )


def _file(block, context):
    url = block.payload.get("url") or ""
    name = url.split("/")[-1].split("?")[0]
    caption = block.payload.get("caption", "")
    figcaption = Markup("<figcaption>{}</figcaption>").format(caption) if caption else Markup("")
    return Markup('<figure><div class="file">📎 <a href="{}">{}</a></div>{}</figure>').format(
        url, name, figcaption
    )


def _bookmark(block, context):
    url = block.payload.get("url", "")
    return Markup('<a href="{url}" target="_blank" class="bookmark">{url}</a>').format(url=url)


def _container(block, context):
    children = _children(block, context)
    return _pending(block) if children is None else render_blocks(children, context)


def render_unsupported(block: Block) -> Markup:
    label = "unsupported by Notion API" if block.raw_type in ("", "unsupported") else block.raw_type
    return Markup('<p class="unsupported-block">❌ Unsupported block ({})</p>').format(label)


RENDERERS = {
    BlockKind.PARAGRAPH: _paragraph,
    BlockKind.HEADING1: _heading("h1"),
    BlockKind.HEADING2: _heading("h2"),
    BlockKind.HEADING3: _heading("h3"),
    BlockKind.BULLETED_ITEM: _list_item,
    BlockKind.NUMBERED_ITEM: _list_item,
    BlockKind.TO_DO: _to_do,
    BlockKind.TOGGLE: _toggle,
    BlockKind.CHILD_PAGE: _child_page,
    BlockKind.IMAGE: _image,
    BlockKind.DIVIDER: _divider,
    BlockKind.QUOTE: _quote,
    BlockKind.CODE: _code,
    BlockKind.FILE: _file,
    BlockKind.BOOKMARK: _bookmark,
    BlockKind.CONTAINER: _container,
}


def render(block: Block, context: RenderContext = None) -> Markup:
    """Rend un block (et ses enfants). Ne lève jamais: placeholder en cas de problème."""
    context = context or RenderContext()
    renderer = RENDERERS.get(block.kind)
    if renderer is None:
        return render_unsupported(block)
    try:
        return renderer(block, context)
    except Exception as e:
        logger.warning(f"Failed to render block {block.id} ({block.raw_type}): {e}")
        return render_unsupported(block)

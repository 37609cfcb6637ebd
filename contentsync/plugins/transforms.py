# ContentSync Content Transforms
# JSONPath-targeted document rewrites and the built-in transform plugins

import html
from collections.abc import Callable, Iterable, Mapping
from typing import Any, Optional, Union

from markdown_it import MarkdownIt

from contentsync.config.schema import TransformName
from contentsync.logger import SyncLogger
from contentsync.plugins.driver import HookContext, HookEvent, Plugin
from contentsync.store import DataStore, Document

TransformFn = Callable[[Any], Any]


def apply_transform(
    store: DataStore,
    path: str,
    fn: TransformFn,
    *,
    namespace: Optional[str] = None,
    keys: Optional[Iterable[str]] = None,
    logger: SyncLogger,
) -> int:
    """
    Apply ``fn`` to every node matching ``path`` in the selected documents.

    A failing document is logged and left untouched; the others are still
    transformed.

    Args:
        store: Data store holding the documents.
        path: JSONPath expression.
        fn: Transform applied to each matched node.
        namespace: Restrict to one namespace. All namespaces if None.
        keys: Document ids to transform. Every document if None.
        logger: Logger for progress and failures.

    Returns:
        Number of documents transformed successfully.
    """
    transformed = 0
    for document in _select_documents(store, namespace, keys, logger):
        logger.debug(f"Applying transform to '{path}' for '{document.namespace}/{document.id}'")
        result = document.apply(path, fn)
        if result.is_err:
            logger.error(f"Could not apply transform to '{path}' for '{document.namespace}/{document.id}'")
            logger.error(result.error)
            continue
        transformed += 1
    return transformed


def _select_documents(
    store: DataStore,
    namespace: Optional[str],
    keys: Optional[Iterable[str]],
    logger: SyncLogger,
) -> list[Document]:
    if namespace is None:
        documents = list(store.all_documents())
    else:
        result = store.documents(namespace)
        if result.is_err:
            logger.warning(result.error)
            return []
        documents = list(result.value)

    if keys is None:
        return documents

    wanted = set(keys)
    selected = [doc for doc in documents if doc.id in wanted]
    for missing in sorted(wanted - {doc.id for doc in selected}):
        logger.warning(f"No document '{missing}' to transform")
    return selected


# Markdown


def _italic_bold_rule(self, tokens, idx, options, env):
    token = tokens[idx]
    if token.markup in ("*", "_"):
        token.tag = "i"
    elif token.markup in ("**", "__"):
        token.tag = "b"
    return self.renderToken(tokens, idx, options, env)


def _markdown_renderer(simplified: bool) -> MarkdownIt:
    # Raw HTML in the source is escaped, not passed through
    md = MarkdownIt("commonmark", {"html": False})
    if simplified:
        for rule in ("em_open", "em_close", "strong_open", "strong_close"):
            md.add_render_rule(rule, _italic_bold_rule)
    return md


def markdown_to_html(content: Any, simplified: bool = False) -> str:
    """
    Render a markdown string to HTML.

    Simplified mode renders inline (no wrapping paragraph) with ``<i>``/``<b>``.

    Raises:
        TypeError: If content is not a string.
    """
    if not isinstance(content, str):
        raise TypeError("Can't convert non-string content to html")
    md = _markdown_renderer(simplified)
    if simplified:
        return md.renderInline(content)
    return md.render(content)


# Sanity portable text

_MARK_HTML = {
    "strong": "strong",
    "em": "em",
    "code": "code",
    "underline": "u",
    "strike-through": "del",
}
_MARK_MD = {
    "strong": "**",
    "em": "_",
    "code": "`",
    "strike-through": "~~",
}
_STYLE_HTML = {
    "normal": "p",
    "h1": "h1",
    "h2": "h2",
    "h3": "h3",
    "h4": "h4",
    "h5": "h5",
    "h6": "h6",
    "blockquote": "blockquote",
}


def is_block(content: Any) -> bool:
    """Check for a portable text block (``{"_type": "block", ...}``)."""
    return isinstance(content, dict) and content.get("_type") == "block"


def _is_block_with_children(content: Any) -> bool:
    children = content.get("children") if is_block(content) else None
    if not isinstance(children, list):
        return False
    return all(isinstance(child, dict) and "text" in child for child in children)


def _as_blocks(content: Any) -> list[dict]:
    blocks = content if isinstance(content, list) else [content]
    if not blocks or not all(_is_block_with_children(block) for block in blocks):
        raise ValueError(f"Content is not a valid Sanity text block: {content!r}")
    return blocks


def sanity_block_to_plain(content: Any) -> str:
    """Join the text of a block's children."""
    if not _is_block_with_children(content):
        raise ValueError(f"Content is not a valid Sanity text block: {content!r}")
    return "".join(str(child["text"]) for child in content["children"])


def _link_defs(block: dict) -> dict[str, str]:
    return {
        mark["_key"]: mark.get("href", "")
        for mark in block.get("markDefs") or []
        if isinstance(mark, dict) and mark.get("_type") == "link" and "_key" in mark
    }


def _span_to_markdown(span: dict, links: dict[str, str]) -> str:
    text = str(span["text"])
    if not text:
        return text
    for mark in span.get("marks") or []:
        if mark in _MARK_MD:
            wrap = _MARK_MD[mark]
            text = f"{wrap}{text}{wrap}"
        elif mark in links:
            text = f"[{text}]({links[mark]})"
    return text


def _span_to_html(span: dict, links: dict[str, str]) -> str:
    text = html.escape(str(span["text"]))
    for mark in span.get("marks") or []:
        if mark in _MARK_HTML:
            tag = _MARK_HTML[mark]
            text = f"<{tag}>{text}</{tag}>"
        elif mark in links:
            text = f'<a href="{html.escape(links[mark], quote=True)}">{text}</a>'
    return text


def sanity_to_markdown_text(content: Any) -> str:
    """Render one block or a list of blocks to markdown."""
    lines: list[str] = []
    previous_list: Optional[str] = None
    number = 0

    for block in _as_blocks(content):
        links = _link_defs(block)
        text = "".join(_span_to_markdown(child, links) for child in block["children"])
        style = block.get("style") or "normal"
        list_item = block.get("listItem")

        if list_item:
            if previous_list != list_item:
                number = 0
            number += 1
            indent = "  " * max(int(block.get("level") or 1) - 1, 0)
            bullet = f"{number}." if list_item == "number" else "-"
            lines.append(f"{indent}{bullet} {text}")
        else:
            if previous_list is not None:
                lines.append("")
            if style.startswith("h") and style[1:].isdigit():
                text = f"{'#' * int(style[1:])} {text}"
            elif style == "blockquote":
                text = f"> {text}"
            lines.extend([text, ""])
        previous_list = list_item

    return "\n".join(lines).strip()


def sanity_to_html_text(content: Any) -> str:
    """Render one block or a list of blocks to HTML."""
    parts: list[str] = []
    open_list: Optional[str] = None

    for block in _as_blocks(content):
        links = _link_defs(block)
        text = "".join(_span_to_html(child, links) for child in block["children"])
        list_item = block.get("listItem")

        if open_list and open_list != list_item:
            parts.append(f"</{open_list}>")
            open_list = None

        if list_item:
            tag = "ol" if list_item == "number" else "ul"
            if open_list != tag:
                parts.append(f"<{tag}>")
                open_list = tag
            parts.append(f"<li>{text}</li>")
            continue

        tag = _STYLE_HTML.get(block.get("style") or "normal", "p")
        parts.append(f"<{tag}>{text}</{tag}>")

    if open_list:
        parts.append(f"</{open_list}>")
    return "".join(parts)


# Plugins


def transform_plugin(name: str, path: str, fn: TransformFn, keys: Optional[Iterable[str]] = None) -> Plugin:
    """
    Wrap a transform function as a plugin running on ``FETCH_DONE``.

    The transform only touches the namespace of the source that triggered
    the event.
    """
    key_list = list(keys) if keys is not None else None

    def on_fetch_done(ctx: HookContext, source_id: Optional[str] = None, **_: Any) -> None:
        apply_transform(ctx.store, path, fn, namespace=source_id, keys=key_list, logger=ctx.logger)

    return Plugin(name=name, hooks={HookEvent.FETCH_DONE: on_fetch_done})


def md_to_html(path: str, simplified: bool = False, keys: Optional[Iterable[str]] = None) -> Plugin:
    """Markdown strings at ``path`` become HTML."""
    return transform_plugin("md-to-html", path, lambda content: markdown_to_html(content, simplified), keys)


def sanity_to_plain(path: str, keys: Optional[Iterable[str]] = None) -> Plugin:
    """Sanity blocks at ``path`` become plain text."""
    return transform_plugin("sanity-to-plain", path, sanity_block_to_plain, keys)


def sanity_to_markdown(path: str, keys: Optional[Iterable[str]] = None) -> Plugin:
    """Sanity blocks at ``path`` become markdown."""
    return transform_plugin("sanity-to-markdown", path, sanity_to_markdown_text, keys)


def sanity_to_html(path: str, keys: Optional[Iterable[str]] = None) -> Plugin:
    """Sanity blocks at ``path`` become HTML."""
    return transform_plugin("sanity-to-html", path, sanity_to_html_text, keys)


_FACTORIES: dict[TransformName, Callable[[str], Plugin]] = {
    TransformName.MD_TO_HTML: md_to_html,
    TransformName.MARKDOWN_TO_HTML: md_to_html,
    TransformName.MD_TO_HTML_SIMPLIFIED: lambda path: md_to_html(path, simplified=True),
    TransformName.MARKDOWN_TO_HTML_SIMPLIFIED: lambda path: md_to_html(path, simplified=True),
    TransformName.SANITY_TO_PLAIN: sanity_to_plain,
    TransformName.SANITY_TO_MD: sanity_to_markdown,
    TransformName.SANITY_TO_MARKDOWN: sanity_to_markdown,
    TransformName.SANITY_TO_HTML: sanity_to_html,
}


def plugins_from_config(
    content_transforms: Mapping[str, Union[TransformName, list[TransformName]]],
) -> list[Plugin]:
    """
    Build transform plugins from a ``{path: name | [names]}`` table.

    Plugins are returned in table order, and per path in list order.
    """
    plugins: list[Plugin] = []
    for path, names in content_transforms.items():
        for name in names if isinstance(names, list) else [names]:
            plugins.append(_FACTORIES[TransformName(name)](path))
    return plugins

"""Card body rendering: markdown-it HTML plus embed and task checkbox post-processing"""

import html
import re
from pathlib import PurePosixPath
from typing import Iterator

from markdown_it import MarkdownIt
from markdown_it.token import Token


IMAGE_EXTENSIONS = {'.png', '.jpg', '.jpeg', '.gif', '.svg', '.bmp', '.webp'}

EMBED_RE = re.compile(r'!\[\[([^\]|]+)(?:\|([^\]]*))?\]\]')
TASK_MARK_RE = re.compile(r'^\[( |x)\](?=\s|$)')


def _make_parser(preset: str) -> MarkdownIt:
    """Build a MarkdownIt instance for the given preset name."""
    return MarkdownIt(preset, options_update={"linkify": False})


def resolve_embed(target: str, source_path: str) -> str:
    """Resolve an embed target relative to the directory of the source document."""
    if target.startswith('/'):
        return target.lstrip('/')
    parent = PurePosixPath(source_path).parent
    return str(parent / target) if str(parent) != '.' else target


def _task_items(tokens: list[Token]) -> Iterator[tuple[Token, Token, bool]]:
    """Yield (list item, inline, checked) for every '- [ ]'/'- [x]' item in document order.

    Only '-' bullets count; '*', '+' and ordered items are left as text.
    """
    for i, token in enumerate(tokens):
        if token.type != 'list_item_open' or token.markup != '-':
            continue
        inline = next((t for t in tokens[i + 1:i + 3] if t.type == 'inline'), None)
        if inline is None or not inline.children:
            continue
        first = inline.children[0]
        if first.type == 'text' and (m := TASK_MARK_RE.match(first.content)):
            yield token, inline, m.group(1) == 'x'


class MarkdownRenderer:
    """Render card markdown to HTML."""

    def __init__(self, preset: str = 'gfm-like'):
        self._md = _make_parser(preset)

    def render(self, markdown: str, source_path: str = '') -> str:
        tokens = self._md.parse(markdown)
        self._task_checkboxes(tokens)
        out = self._md.renderer.render(tokens, self._md.options, {})
        return self._embed_images(out, source_path)

    def task_lines(self, markdown: str) -> list[int]:
        """Source line of each task item, indexed by the data-task number render() gives it."""
        return [item.map[0] for item, _, _ in _task_items(self._md.parse(markdown))]

    @staticmethod
    def _embed_images(out: str, source_path: str) -> str:
        """Turn '![[file.png|alt]]' placeholders into <img> tags; other embeds stay text."""
        def _img(m: re.Match) -> str:
            target = html.unescape(m.group(1)).strip()
            if PurePosixPath(target).suffix.lower() not in IMAGE_EXTENSIONS:
                return m.group(0)
            alt = html.unescape(m.group(2) or target)
            src = resolve_embed(target, source_path)
            return (f'<img class="internal-embed image-embed" '
                    f'src="{html.escape(src)}" alt="{html.escape(alt)}">')
        return EMBED_RE.sub(_img, out)

    @staticmethod
    def _task_checkboxes(tokens: list[Token]) -> None:
        """Replace the '[ ]'/'[x]' marker of each task item with a numbered checkbox."""
        for n, (_, inline, checked) in enumerate(list(_task_items(tokens))):
            first = inline.children[0]
            first.content = TASK_MARK_RE.sub('', first.content).lstrip()
            box = Token('html_inline', '', 0, content=(
                f'<input type="checkbox" class="task-list-item-checkbox" '
                f'data-task="{n}"{" checked" if checked else ""}> '))
            inline.children.insert(0, box)

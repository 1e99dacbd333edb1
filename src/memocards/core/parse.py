"""Line-oriented block parser, frontmatter capture, and section metadata grammar"""

import logging
import re
from typing import Optional

import yaml

from memocards.core.models import Block, BlockType, ParsedDoc


logger = logging.getLogger(__name__)

SECTION_RE  = re.compile(r'^##\s')
HEADING_RE  = re.compile(r'^#{1,6}\s')
DIVIDER_RE  = re.compile(r'^(-{3,}|\*{3,}|_{3,})$')
LIST_RE     = re.compile(r'^(\d+\.|[-*+])\s')
FENCE       = '```'

# Section heading metadata, applied in this order
CHECKBOX_RE  = re.compile(r'^\[( |x)\]\s+(.+)$')
DRAFT_RE     = re.compile(r'^(.*?)\s+%%quickadd-draft%%\s*$')
COLLAPSED_RE = re.compile(r'^(.*?)\s+\[collapsed::\s*(true|false)\]\s*$')
BLOCK_ID_RE  = re.compile(r'^(.*?)\s+\^([\w-]+)$', re.ASCII)


def _frontmatter_end(lines: list[str]) -> int:
    """Return the index of the closing '---' line, or -1 when there is no frontmatter."""
    if not lines or lines[0].strip() != '---':
        return -1
    for i in range(1, len(lines)):
        if lines[i].strip() == '---':
            return i
    return -1


def _read_title(header_body: str) -> Optional[str]:
    """Return the YAML 'title' field of a frontmatter body, or None."""
    try:
        data = yaml.safe_load(header_body) if header_body.strip() else None
    except yaml.YAMLError as e:
        logger.debug("Unreadable frontmatter, ignoring title: %s", e)
        return None
    if not isinstance(data, dict) or data.get('title') is None:
        return None
    return str(data['title']).strip() or None


def split_frontmatter(text: str) -> tuple[str, Optional[str]]:
    """Return (verbatim frontmatter header, title) for text; ('', None) without one.

    The header covers the delimiters plus any whitespace-only lines directly
    after the closing '---', so reconstruction can prepend it unchanged.
    """
    lines = text.split('\n')
    end = _frontmatter_end(lines)
    if end < 0:
        return '', None

    stop = end + 1
    while stop < len(lines) - 1 and lines[stop].strip() == '':
        stop += 1
    header = '\n'.join(lines[:stop]) + '\n'
    return header, _read_title('\n'.join(lines[1:end]))


def parse_section_heading(text: str) -> dict:
    """Split a level-2 heading's text into heading text and its metadata fields.

    Checkbox prefix, draft flag, collapsed field and block id are each
    optional; the suffixes are stripped right to left so the block id, the
    most general trailing token, is matched last.
    """
    meta: dict = {'checked': None, 'is_draft': None, 'collapsed': None, 'id': None}

    if m := CHECKBOX_RE.match(text):
        meta['checked'] = m.group(1) == 'x'
        text = m.group(2)
    if m := DRAFT_RE.match(text):
        meta['is_draft'] = True
        text = m.group(1).strip()
    if m := COLLAPSED_RE.match(text):
        meta['collapsed'] = m.group(2) == 'true'
        text = m.group(1).strip()
    if m := BLOCK_ID_RE.match(text):
        meta['id'] = m.group(2)
        text = m.group(1).strip()

    meta['text'] = text
    return meta


def _is_block_start(stripped: str) -> bool:
    """True if a trimmed line would open a non-paragraph block."""
    return bool(
        HEADING_RE.match(stripped)
        or stripped.startswith(FENCE)
        or stripped.startswith('>')
        or LIST_RE.match(stripped)
        or DIVIDER_RE.match(stripped)
    )


def _raw(lines: list[str], start: int, end: int) -> str:
    return '\n'.join(lines[start:end + 1])


def _parse_section(lines: list[str], start: int) -> Block:
    """Consume a '## ' heading and every line up to the next '## ' heading."""
    line = lines[start].strip()
    m = re.match(r'^##\s+(.+)$', line)
    heading = m.group(1) if m else re.sub(r'^##\s*', '', line)
    meta = parse_section_heading(heading)

    end = start
    for i in range(start + 1, len(lines)):
        if SECTION_RE.match(lines[i].strip()):
            break
        end = i

    body = lines[start + 1:end + 1]
    while body and not body[0].strip():
        body.pop(0)
    while body and not body[-1].strip():
        body.pop()
    content = meta['text'] + ('\n\n' + '\n'.join(body) if body else '')

    logger.debug("Section %r at lines %d-%d (id=%s)", meta['text'], start, end, meta['id'])
    return Block(
        type=BlockType.heading,
        content=content,
        start_line=start,
        end_line=end,
        level=2,
        raw=_raw(lines, start, end),
        checked=meta['checked'],
        id=meta['id'],
        is_draft=meta['is_draft'],
        collapsed=meta['collapsed'],
    )


def _parse_heading(lines: list[str], start: int) -> Block:
    line = lines[start]
    m = re.match(r'^(#{1,6})\s+(.+)$', line)
    if not m:
        return Block(type=BlockType.paragraph, content=line, start_line=start, end_line=start, raw=line)
    return Block(
        type=BlockType.heading,
        content=m.group(2),
        start_line=start,
        end_line=start,
        level=len(m.group(1)),
        raw=line,
    )


def _parse_code(lines: list[str], start: int) -> Block:
    """Consume a fenced code block; an unterminated fence runs to end of document."""
    language = lines[start].strip()[3:].strip() or 'text'
    end = len(lines) - 1
    body_end = len(lines)
    for i in range(start + 1, len(lines)):
        if lines[i].strip().startswith(FENCE):
            end = body_end = i
            break
    return Block(
        type=BlockType.code_block,
        content='\n'.join(lines[start + 1:body_end]),
        start_line=start,
        end_line=end,
        language=language,
        raw=_raw(lines, start, end),
    )


def _parse_blockquote(lines: list[str], start: int) -> Block:
    end = start
    for i in range(start + 1, len(lines)):
        if not lines[i].strip().startswith('>'):
            break
        end = i
    content = '\n'.join(re.sub(r'^>\s?', '', l.lstrip()) for l in lines[start:end + 1])
    return Block(type=BlockType.blockquote, content=content, start_line=start, end_line=end,
                 raw=_raw(lines, start, end))


def _parse_list(lines: list[str], start: int) -> Block:
    """Consume list items plus indented continuation lines."""
    end = start
    for i in range(start + 1, len(lines)):
        line = lines[i]
        if not line.strip():
            break
        if not (LIST_RE.match(line.strip()) or line[:1] in (' ', '\t')):
            break
        end = i
    raw = _raw(lines, start, end)
    return Block(type=BlockType.list, content=raw, start_line=start, end_line=end, raw=raw)


def _parse_paragraph(lines: list[str], start: int) -> Block:
    end = start
    for i in range(start + 1, len(lines)):
        stripped = lines[i].strip()
        if not stripped or _is_block_start(stripped):
            break
        end = i
    raw = _raw(lines, start, end)
    return Block(type=BlockType.paragraph, content=raw, start_line=start, end_line=end, raw=raw)


def parse_blocks(text: str) -> list[Block]:
    """Split markdown text into ordered blocks covering every non-frontmatter line.

    Never raises: anything unrecognised becomes a paragraph.
    """
    lines = text.split('\n')
    blocks: list[Block] = []
    i = 0

    fm_end = _frontmatter_end(lines)
    if fm_end > 0:
        i = fm_end + 1

    while i < len(lines):
        line = lines[i]
        stripped = line.strip()

        if SECTION_RE.match(stripped):
            block = _parse_section(lines, i)
        elif HEADING_RE.match(stripped):
            block = _parse_heading(lines, i)
        elif stripped.startswith(FENCE):
            block = _parse_code(lines, i)
        elif DIVIDER_RE.match(stripped):
            block = Block(type=BlockType.divider, content='', start_line=i, end_line=i, raw=line)
        elif stripped.startswith('>'):
            block = _parse_blockquote(lines, i)
        elif LIST_RE.match(stripped):
            block = _parse_list(lines, i)
        elif not stripped:
            block = Block(type=BlockType.empty, content='', start_line=i, end_line=i, raw=line)
        else:
            block = _parse_paragraph(lines, i)

        blocks.append(block)
        i = block.end_line + 1

    return blocks


def parse_document(text: str) -> ParsedDoc:
    """Parse text into its frontmatter header, title and blocks."""
    frontmatter, title = split_frontmatter(text)
    return ParsedDoc(frontmatter=frontmatter, title=title, blocks=parse_blocks(text))

"""Data models for parsed blocks, documents, and card view state"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from pydantic import BaseModel


class BlockType(str, Enum):
    """Structural kinds a markdown line range can be split into"""
    heading = "heading"
    paragraph = "paragraph"
    code_block = "code-block"
    list = "list"
    blockquote = "blockquote"
    divider = "divider"
    empty = "empty"


class Block(BaseModel):
    """A single structural unit of a markdown document."""
    type:       BlockType
    content:    str
    start_line: int = 0
    end_line:   int = 0
    level:      Optional[int] = None    # heading level (1-6); None for non-headings
    language:   Optional[str] = None    # code fence language; "text" when absent
    raw:        str = ""                # exact source lines covered by the block
    # Section (level-2 heading) metadata; always None elsewhere
    checked:    Optional[bool] = None
    id:         Optional[str] = None
    is_draft:   Optional[bool] = None
    collapsed:  Optional[bool] = None

    @property
    def is_section(self) -> bool:
        return self.type == BlockType.heading and self.level == 2

    def logical(self) -> dict:
        """Field dump without source positions, for round-trip comparison."""
        return self.model_dump(exclude={"start_line", "end_line", "raw"})


class CardState(BaseModel):
    """Per-card UI state cached outside the document."""
    collapsed: bool = False


@dataclass
class ParsedDoc:
    """Parse result for one document; rebuilt from disk on every operation."""
    frontmatter: str                   # verbatim header incl. delimiters, '' if none
    title:       Optional[str]
    blocks:      list[Block] = field(default_factory=list)   # includes empty blocks

    def content_blocks(self) -> list[Block]:
        """Blocks addressed by mutation indices (empty blocks filtered out)."""
        return [b for b in self.blocks if b.type != BlockType.empty]

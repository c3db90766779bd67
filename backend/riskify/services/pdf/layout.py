"""
Layout description for SWMS documents.

A document is an ordered list of ``Section``s, each holding a flat list of
nodes. Nodes say *what* to show; ``PdfRenderer`` decides where it goes,
when to break pages and how a ``Theme`` colours it.
"""
from dataclasses import dataclass, field
from typing import List, Optional, Tuple, Union

from riskify.services.risk import RiskLevel


@dataclass
class Badge:
    """Coloured risk pill inside a table cell"""
    level: Optional[RiskLevel]
    text: str


Cell = Union[str, List[str], Badge]


@dataclass
class Column:
    title: str
    weight: float = 1.0


class Node:
    """Base class for layout nodes"""


@dataclass
class TextBlock(Node):
    text: str
    style: str = "body"  # 'body', 'small', 'muted', 'heading'


@dataclass
class BulletList(Node):
    items: List[str]


@dataclass
class KeyValueGrid(Node):
    pairs: List[Tuple[str, str]]
    columns: int = 2


@dataclass
class Table(Node):
    kind: str
    columns: List[Column]
    rows: List[List[Cell]]
    repeat_header: bool = True


@dataclass
class Placeholder(Node):
    text: str
    height: float = 40


@dataclass
class ImageBox(Node):
    """Image (e.g. company logo); ``image`` is None when nothing was supplied"""
    image: Optional[bytes]
    placeholder: str
    width: float = 120
    height: float = 60


@dataclass
class RiskMatrix(Node):
    likelihood: List[str]
    consequence: List[str]
    rows: List[dict]
    bands: List[dict]


@dataclass
class SignatureEntry:
    role: str
    name: str
    signed_at: str = ""
    image: Optional[bytes] = None
    typed: Optional[str] = None


@dataclass
class SignatureBlock(Node):
    entries: List[SignatureEntry]


@dataclass
class Card(Node):
    """Framed group of small nodes kept together on one page"""
    title: Optional[str]
    children: List[Node]


@dataclass
class Section:
    key: str
    title: str
    nodes: List[Node] = field(default_factory=list)
    new_page: bool = False


@dataclass
class DocumentLayout:
    title: str
    header_lines: List[str]
    footer_text: str
    watermark: str
    sections: List[Section]

    def section(self, key: str) -> Section:
        for section in self.sections:
            if section.key == key:
                return section
        raise KeyError(key)

    def tables(self, kind: str) -> List[Table]:
        found = []
        for section in self.sections:
            for node in _walk(section.nodes):
                if isinstance(node, Table) and node.kind == kind:
                    found.append(node)
        return found

    def nodes_of(self, section_key: str, node_type: type) -> List[Node]:
        return [node for node in _walk(self.section(section_key).nodes) if isinstance(node, node_type)]


def _walk(nodes: List[Node]):
    for node in nodes:
        yield node
        if isinstance(node, Card):
            yield from _walk(node.children)

"""zapgen AST nodes.

Expressions: Const, Path, Call
Structure: Template, Data, Output, Block, Partial
"""

from zapgen.nodes.base import Node
from zapgen.nodes.expressions import Call, Const, Expr, Path
from zapgen.nodes.structure import Block, Data, Output, Partial, Template

__all__ = [
    "Block",
    "Call",
    "Const",
    "Data",
    "Expr",
    "Node",
    "Output",
    "Partial",
    "Path",
    "Template",
]

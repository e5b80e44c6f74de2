import re
from typing import Callable, List, Tuple, Optional

from .config import CompilerOptions
from .nodes import Node, NodeKind, Tree, Text, Markup, Code, Comment, Filter, FILTER

COMMENT_MARKER = re.compile(r'^(/|-#)')
CODE_MARKER = re.compile(r'^(-|=|!=)')
MARKUP_MARKER = re.compile(r'^(%[-\w:]|[.#][-\w]|!)')

NODE_CLASSES = {
    NodeKind.TEXT: Text,
    NodeKind.MARKUP: Markup,
    NodeKind.CODE: Code,
    NodeKind.COMMENT: Comment,
    NodeKind.FILTER: Filter,
}

Rule = Tuple[Callable[[str, Optional[Node], Node], bool], NodeKind]


def _blank_filter_line(expression: str, previous: Optional[Node], parent: Node) -> bool:
    return expression == '' and isinstance(previous, Filter)


def _filter(expression: str, previous: Optional[Node], parent: Node) -> bool:
    return isinstance(parent, Filter) or bool(FILTER.match(expression))


def _comment(expression: str, previous: Optional[Node], parent: Node) -> bool:
    return bool(COMMENT_MARKER.match(expression))


def _code(expression: str, previous: Optional[Node], parent: Node) -> bool:
    return bool(CODE_MARKER.match(expression))


def _markup(expression: str, previous: Optional[Node], parent: Node) -> bool:
    return bool(MARKUP_MARKER.match(expression))


# Order matters: `-#` is both a comment and a code marker, and any line under
# an open filter is filter content whatever it looks like.
RULES: List[Rule] = [
    (_blank_filter_line, NodeKind.FILTER),
    (_filter, NodeKind.FILTER),
    (_comment, NodeKind.COMMENT),
    (_code, NodeKind.CODE),
    (_markup, NodeKind.MARKUP),
]


class NodeFactory:
    """Classifies expressions into node kinds and wires the nodes into a tree."""

    def __init__(self, tree: Tree, options: CompilerOptions):
        self.tree = tree
        self.options = options

    def classify(self, expression: str, previous: Optional[Node], parent: Node) -> Tuple[NodeKind, Node]:
        """
        Returns the node kind for `expression` and the node it must be attached to.
        Depends only on the expression, the previous node and the parent.
        """
        for matches, kind in RULES:
            if matches(expression, previous, parent):
                if matches is _blank_filter_line:
                    # blank lines never close a filter: they belong to the filter that opened the block
                    return kind, self.tree.get(previous.top_index())
                return kind, parent
        return NodeKind.TEXT, parent

    def create(self, expression: str, previous: Optional[Node], parent: Node,
               block_level: int, code_block_level: int, indent: int = 0) -> Node:
        kind, structural_parent = self.classify(expression, previous, parent)
        options = dict(
            block_level=block_level,
            indent=indent,
            code_block_level=code_block_level,
            output_level=structural_parent.child_output_level(),
            escape_html=self.options.escape_html,
            format=self.options.format,
        )
        if kind == NodeKind.FILTER and isinstance(structural_parent, Filter):
            node = Filter(expression, top=structural_parent.top_index(), **options)
        else:
            node = NODE_CLASSES[kind](expression, **options)
        return self.tree.add(node, structural_parent)

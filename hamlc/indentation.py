from dataclasses import dataclass, field
from typing import List, Optional

from .errors import TemplateIndentationError, BlockTooDeepError
from .nodes import NodeKind, Tree


@dataclass
class ParserState:
    """
    Bookkeeping for one parse call. Nodes are referred to by their index in the tree.
    A tab unit of 0 means it has not been inferred yet.
    """

    current_indent: int = 0
    previous_indent: int = 0
    tab_unit: int = 0
    current_block_level: int = 0
    previous_block_level: int = 0
    delta: int = 0
    stack: List[int] = field(default_factory=list)
    parent: int = 0
    node: Optional[int] = None
    current_code_block_level: int = 1
    line_number: int = 0


class IndentationTracker:
    """Turns indentation width changes into block levels and parent stack moves."""

    def __init__(self, tree: Tree):
        self.tree = tree

    def indent_changed(self, state: ParserState) -> bool:
        return state.current_indent != state.previous_indent

    def is_indent(self, state: ParserState) -> bool:
        return state.current_indent > state.previous_indent

    def update_tab_unit(self, state: ParserState):
        """The first indentation change fixes the tab unit for the rest of the document."""
        if state.tab_unit == 0:
            state.tab_unit = abs(state.current_indent - state.previous_indent)

    def update_block_level(self, state: ParserState):
        if state.current_indent % state.tab_unit:
            raise TemplateIndentationError(
                f"Indentation of {state.current_indent} is not a multiple of {state.tab_unit}.",
                state.line_number)
        state.current_block_level = state.current_indent // state.tab_unit
        if state.current_block_level - state.previous_block_level > 1 and not self.in_raw_block(state.node):
            raise BlockTooDeepError(
                f"Block level too deep, went from {state.previous_block_level} to {state.current_block_level}.",
                state.line_number)
        state.delta = state.previous_block_level - state.current_block_level

    def in_raw_block(self, index: Optional[int]) -> bool:
        """True if the node at `index` is, or sits inside, a filter or comment; their bodies may nest freely."""
        while index is not None:
            node = self.tree.get(index)
            if node.kind in (NodeKind.FILTER, NodeKind.COMMENT):
                return True
            index = node.parent
        return False

    def update_parent(self, state: ParserState):
        if self.is_indent(state):
            self.push_parent(state)
        else:
            self.pop_parent(state)

    def push_parent(self, state: ParserState):
        if state.node is None:
            raise TemplateIndentationError("Indented line without a parent.", state.line_number)
        state.stack.append(state.parent)
        # a raw line can go several levels deeper at once; each extra level pops back to the new parent
        levels = state.current_block_level - state.previous_block_level
        state.stack.extend([state.node] * (levels - 1))
        state.parent = state.node

    def pop_parent(self, state: ParserState):
        for _ in range(state.delta):
            state.parent = state.stack.pop()

    def update_code_block_level(self, state: ParserState):
        parent = self.tree.get(state.parent)
        if parent.kind == NodeKind.CODE:
            state.current_code_block_level = parent.code_block_level + 1
        else:
            state.current_code_block_level = parent.code_block_level

    def resolve(self, state: ParserState):
        """Applies an indentation change: tab unit, block level, parent stack, code block level."""
        self.update_tab_unit(state)
        self.update_block_level(state)
        self.update_parent(state)
        self.update_code_block_level(state)

import re
from dataclasses import dataclass
from typing import List, Tuple, Optional

from .attributes import opens_attribute_list
from .config import CompilerOptions
from .errors import CompileError, ErrorKind, error_for
from .factory import NodeFactory
from .indentation import IndentationTracker, ParserState
from .nodes import Node, NodeKind, Tree

LINE = re.compile(r'^(\s*)(.*?)\s*$')
# `key: value` / `'key': value` / `:key => value` or `key=value`
ATTRIBUTE_LINE = re.compile(r'''^\s*(?:(?:['"]?:?[-\w:@]+['"]?)\s*(?::|=>)\s*\S|[-\w:@]+\s*=\s*\S)''')
MARKER_LINE = re.compile(r'^\s*[-=&!~.%#</]')


@dataclass(frozen=True)
class ParseError:
    kind: ErrorKind
    line: int
    message: str

    def to_exception(self) -> CompileError:
        return error_for(self.kind)(self.message, self.line)


@dataclass
class ParseResult:
    """Either a complete tree or the error that stopped parsing."""

    tree: Optional[Tree] = None
    error: Optional[ParseError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> Tree:
        if self.error is not None:
            raise self.error.to_exception()
        return self.tree


def split_line(line: str) -> Tuple[str, str]:
    """Splits a physical line into leading whitespace and expression."""
    m = LINE.match(line)
    return m.group(1), m.group(2)


def continues_attributes(expression: str, next_line: str) -> bool:
    """True if `next_line` carries more attributes for the still-open attribute list of `expression`."""
    return (opens_attribute_list(expression)
            and not MARKER_LINE.match(next_line)
            and bool(ATTRIBUTE_LINE.match(next_line)))


class Parser:
    """
    Builds a node tree from template source, one physical line at a time.
    Nesting comes from indentation only; see IndentationTracker.
    """

    def __init__(self, options: Optional[CompilerOptions] = None):
        self.options = options or CompilerOptions()

    def parse(self, source: str) -> ParseResult:
        tree = Tree()
        root = tree.add(Node('', block_level=0, code_block_level=1,
                             escape_html=self.options.escape_html, format=self.options.format))
        state = ParserState(parent=root.index)
        tracker = IndentationTracker(tree)
        factory = NodeFactory(tree, self.options)

        try:
            self._parse_lines(source.splitlines(), state, tracker, factory)
        except CompileError as error:
            return ParseResult(error=ParseError(kind=error.kind, line=error.line, message=error.reason))
        return ParseResult(tree=tree)

    def _parse_lines(self, lines: List[str], state: ParserState,
                     tracker: IndentationTracker, factory: NodeFactory):
        tree = tracker.tree
        i = 0
        while i < len(lines):
            state.line_number = i + 1
            whitespace, expression = split_line(lines[i])
            i += 1

            # Look ahead for attributes continued on the following lines
            while i < len(lines) and continues_attributes(expression, lines[i]):
                expression += ' ' + lines[i].strip()
                i += 1

            previous = tree.get(state.node) if state.node is not None else None

            # Blank lines are not significant; inside a filter they are kept as content
            if not expression:
                if previous is not None and previous.kind == NodeKind.FILTER:
                    node = factory.create('', previous, tree.get(state.parent),
                                          state.current_block_level, state.current_code_block_level)
                    state.node = node.index
                continue

            state.current_indent = len(whitespace)
            if tracker.indent_changed(state):
                tracker.resolve(state)

            node = factory.create(expression, previous, tree.get(state.parent),
                                  state.current_block_level, state.current_code_block_level,
                                  indent=state.current_indent)
            state.node = node.index

            state.previous_block_level = state.current_block_level
            state.previous_indent = state.current_indent

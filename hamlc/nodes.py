"""
Document tree for compiled templates.

Nodes live in a `Tree` arena and refer to their parent and children by index.
Every node renders to generated Python source: statements that append output
lines to the accumulator `o`, escaping through `e`.
"""
import re
from enum import Enum
from typing import List, Tuple, Optional

from .attributes import (Fragment, escape_html, interpolate, parse_attributes, render_attributes,
                         split_balanced, to_expression)
from .config import OutputFormat

CODE_INDENT = '    '  # one code block level in the generated function
HTML_INDENT = '  '  # one nesting level in the rendered markup

CODE = re.compile(r'^(-|!=|=)\s*(.*)$', re.S)
COMMENT = re.compile(r'^(/|-#)(\[[^\]]*\])?\s*(.*)$', re.S)
FILTER = re.compile(r'^:(escaped|preserve|css|javascript|plain|cdata|python)\b')
MARKUP = re.compile(r'^(?:%(?P<tag>[-\w:]+))?(?P<shorthand>(?:[.#][-\w]+)*)')
DOCTYPE = re.compile(r'^!!!\s*(.*)$')

VOID_ELEMENTS = set('''
    area base br col embed hr img input link meta param source track wbr
'''.split())

DOCTYPES = {
    OutputFormat.XHTML: {
        '': '<!DOCTYPE html PUBLIC "-//W3C//DTD XHTML 1.0 Transitional//EN" "http://www.w3.org/TR/xhtml1/DTD/xhtml1-transitional.dtd">',
        'strict': '<!DOCTYPE html PUBLIC "-//W3C//DTD XHTML 1.0 Strict//EN" "http://www.w3.org/TR/xhtml1/DTD/xhtml1-strict.dtd">',
        'frameset': '<!DOCTYPE html PUBLIC "-//W3C//DTD XHTML 1.0 Frameset//EN" "http://www.w3.org/TR/xhtml1/DTD/xhtml1-frameset.dtd">',
        '5': '<!DOCTYPE html>',
        '1.1': '<!DOCTYPE html PUBLIC "-//W3C//DTD XHTML 1.1//EN" "http://www.w3.org/TR/xhtml11/DTD/xhtml11.dtd">',
        'basic': '<!DOCTYPE html PUBLIC "-//W3C//DTD XHTML Basic 1.1//EN" "http://www.w3.org/TR/xhtml-basic/xhtml-basic11.dtd">',
        'mobile': '<!DOCTYPE html PUBLIC "-//WAPFORUM//DTD XHTML Mobile 1.2//EN" "http://www.openmobilealliance.org/tech/DTD/xhtml-mobile12.dtd">',
    },
    OutputFormat.HTML4: {
        '': '<!DOCTYPE html PUBLIC "-//W3C//DTD HTML 4.01 Transitional//EN" "http://www.w3.org/TR/html4/loose.dtd">',
        'strict': '<!DOCTYPE html PUBLIC "-//W3C//DTD HTML 4.01//EN" "http://www.w3.org/TR/html4/strict.dtd">',
        'frameset': '<!DOCTYPE html PUBLIC "-//W3C//DTD HTML 4.01 Frameset//EN" "http://www.w3.org/TR/html4/frameset.dtd">',
    },
    OutputFormat.HTML5: {
        '': '<!DOCTYPE html>',
    },
}


class NodeKind(Enum):
    TEXT = 'text'
    MARKUP = 'markup'
    CODE = 'code'
    COMMENT = 'comment'
    FILTER = 'filter'


class Tree:
    """Arena of nodes. Index 0 is the synthetic root."""

    def __init__(self):
        self.nodes: List['Node'] = []

    def add(self, node: 'Node', parent: Optional['Node'] = None) -> 'Node':
        node.index = len(self.nodes)
        self.nodes.append(node)
        if parent is not None:
            node.parent = parent.index
            parent.children.append(node.index)
        return node

    @property
    def root(self) -> 'Node':
        return self.nodes[0]

    def get(self, index: int) -> 'Node':
        return self.nodes[index]

    def children(self, node: 'Node') -> List['Node']:
        return [self.nodes[i] for i in node.children]

    def parent(self, node: 'Node') -> Optional['Node']:
        return None if node.parent is None else self.nodes[node.parent]

    def depth(self) -> int:
        """Deepest nesting in the tree; children of the root are at depth 0."""
        depths = {0: -1}
        # parents always precede their children in the arena
        for node in self.nodes[1:]:
            depths[node.index] = depths[node.parent] + 1
        return max(depths.values()) if len(self.nodes) > 1 else 0

    def dump(self) -> str:
        """Indented one-node-per-line view of the tree, for debugging."""
        lines = []

        def walk(node, depth):
            lines.append('|   ' * depth + repr(node))
            for child in self.children(node):
                walk(child, depth + 1)

        for child in self.children(self.root):
            walk(child, 0)
        return '\n'.join(lines)


class Node:
    """Base tree element; also used directly for the synthetic root."""

    kind: Optional[NodeKind] = None

    def __init__(self, expression: str = '', block_level: int = 0, code_block_level: int = 1,
                 output_level: int = 0, escape_html: bool = True,
                 format: OutputFormat = OutputFormat.HTML5, indent: int = 0):
        self.expression = expression
        self.indent = indent  # leading whitespace width of the source line
        self.block_level = block_level
        self.code_block_level = code_block_level
        self.output_level = output_level
        self.escape_html = escape_html
        self.format = format
        self.index: Optional[int] = None
        self.parent: Optional[int] = None
        self.children: List[int] = []

    def __repr__(self):
        name = self.kind.name if self.kind else 'Root'
        return f'{name}({self.expression!r}, block_level={self.block_level}, code_block_level={self.code_block_level})'

    def child_output_level(self) -> int:
        """Markup indentation depth for this node's children."""
        if self.kind is None:
            return 0
        return self.output_level + 1

    # --- Statement helpers ---

    def code_indent(self) -> str:
        return CODE_INDENT * self.code_block_level

    def html_indent(self, extra: int = 0) -> str:
        return HTML_INDENT * (self.output_level + extra)

    def run(self, code: str) -> str:
        """A verbatim statement at this node's code block level."""
        return f"{self.code_indent()}{code}\n"

    def push(self, fragments: List[Fragment]) -> str:
        """A statement appending one output line to the accumulator."""
        return self.run(f"o.append({to_expression(fragments)})")

    def push_text(self, text: str, extra: int = 0) -> str:
        return self.push([(False, self.html_indent(extra) + text)])

    # --- Render contract ---

    def opener(self, tree: Tree) -> str:
        return ''

    def closer(self, tree: Tree) -> str:
        return ''

    def render(self, tree: Tree) -> str:
        output = self.opener(tree)
        for child in tree.children(self):
            output += child.render(tree)
        output += self.closer(tree)
        return output


class Text(Node):
    """Plain content, with `#{}` interpolation."""

    kind = NodeKind.TEXT

    def opener(self, tree):
        text = self.expression
        # `\` escapes a leading marker; `\#{` is left for interpolate()
        if text.startswith('\\') and not text.startswith('\\#{'):
            text = text[1:]
        return self.push([(False, self.html_indent())] + interpolate(text, self.escape_html))


class Code(Node):
    """Embedded Python: `- statement`, `= escaped output`, `!= unescaped output`."""

    kind = NodeKind.CODE

    def __init__(self, expression: str = '', **kwargs):
        super().__init__(expression, **kwargs)
        m = CODE.match(expression)
        self.marker, self.code = m.groups() if m else ('-', expression)
        self.code = self.code.strip()
        self.escape = self.marker == '=' and self.escape_html

    def child_output_level(self):
        return self.output_level

    def opener(self, tree):
        if self.marker == '-':
            return self.run(self.code) if self.code else ''
        wrapper = 'e' if self.escape else 'str'
        return self.push([(False, self.html_indent()), (True, f"{wrapper}({self.code})")])

    def render(self, tree):
        body = ''.join(child.render(tree) for child in tree.children(self))
        if self.children and not body:
            # a block whose content renders nothing, e.g. only silent comments
            body = CODE_INDENT * (self.code_block_level + 1) + 'pass\n'
        return self.opener(tree) + body


class Comment(Node):
    """HTML comments (`/`, `/[if IE]`) and silent comments (`-#`)."""

    kind = NodeKind.COMMENT

    def __init__(self, expression: str = '', **kwargs):
        super().__init__(expression, **kwargs)
        m = COMMENT.match(expression)
        marker, condition, text = m.groups() if m else ('/', None, expression)
        self.silent = marker == '-#'
        self.condition = condition
        self.text = text.strip()

    def _delimiters(self) -> Tuple[str, str]:
        if self.condition:
            return f'<!--{self.condition}>', '<![endif]-->'
        return '<!--', '-->'

    def render(self, tree):
        if self.silent:
            return ''
        return super().render(tree)

    def opener(self, tree):
        start, end = self._delimiters()
        if not self.children:
            return self.push_text(f'{start} {self.text} {end}' if self.text else f'{start}{end}')
        output = self.push_text(start)
        if self.text:
            output += self.push_text(self.text, extra=1)
        return output

    def closer(self, tree):
        if not self.children:
            return ''
        return self.push_text(self._delimiters()[1])


class Markup(Node):
    """Elements (`%tag#id.class{attrs}`), doctypes (`!!!`) and unescaped literal lines (`! text`)."""

    kind = NodeKind.MARKUP

    def __init__(self, expression: str = '', **kwargs):
        super().__init__(expression, **kwargs)
        self.doctype: Optional[str] = None
        self.literal: Optional[str] = None
        self.tag = 'div'
        self.tag_id: Optional[str] = None
        self.classes: List[str] = []
        self.attributes: List[Tuple[str, str]] = []
        self.self_closing = False
        self.content = ''
        self.content_marker: Optional[str] = None
        self._parse(expression)

    def _parse(self, expression: str):
        m = DOCTYPE.match(expression)
        if m:
            self.doctype = m.group(1).strip()
            return
        if expression.startswith('!'):
            self.literal = expression[1:].lstrip()
            return

        m = MARKUP.match(expression)
        self.tag = m.group('tag') or 'div'
        for kind, value in re.findall(r'([.#])([-\w]+)', m.group('shorthand')):
            if kind == '#':
                self.tag_id = value
            else:
                self.classes.append(value)

        rest = expression[m.end():]
        while rest[:1] in ('{', '('):
            group, rest = split_balanced(rest)
            if not group:
                break
            self.attributes += parse_attributes(group)

        if rest.startswith('/'):
            self.self_closing = True
            rest = rest[1:]
        if rest.startswith('!='):
            self.content_marker, self.content = '!=', rest[2:].strip()
        elif rest.startswith('='):
            self.content_marker, self.content = '=', rest[1:].strip()
        else:
            self.content = rest.strip()

        if self.tag.lower() in VOID_ELEMENTS:
            self.self_closing = True

    def _doctype_line(self) -> str:
        words = self.doctype.split()
        if words and words[0].lower() == 'xml':
            if self.format != OutputFormat.XHTML:
                return ''
            encoding = words[1] if len(words) > 1 else 'utf-8'
            return f"<?xml version='1.0' encoding='{encoding}' ?>"
        doctypes = DOCTYPES[self.format]
        return doctypes.get(self.doctype.lower(), doctypes[''])

    def _inline_content(self) -> List[Fragment]:
        if self.content_marker == '=':
            return [(True, f"e({self.content})" if self.escape_html else f"str({self.content})")]
        if self.content_marker == '!=':
            return [(True, f"str({self.content})")]
        return interpolate(self.content, self.escape_html)

    def opener(self, tree):
        if self.doctype is not None:
            line = self._doctype_line()
            return self.push_text(line) if line else ''
        if self.literal is not None:
            return self.push([(False, self.html_indent())] + interpolate(self.literal, escape=False))

        start = [(False, self.html_indent() + '<' + self.tag)]
        start += render_attributes(self.tag_id, self.classes, self.attributes, self.format)
        if self.self_closing:
            return self.push(start + [(False, ' />' if self.format == OutputFormat.XHTML else '>')])

        start.append((False, '>'))
        if not self.children:
            return self.push(start + self._inline_content() + [(False, f'</{self.tag}>')])
        output = self.push(start)
        if self.content:
            output += self.push([(False, self.html_indent(1))] + self._inline_content())
        return output

    def closer(self, tree):
        if self.doctype is not None or self.literal is not None or self.self_closing or not self.children:
            return ''
        return self.push_text(f'</{self.tag}>')


class Filter(Node):
    """
    Raw content block (`:plain`, `:javascript`, ...).

    The filter opening line is the top filter; every content line below it,
    blank ones included, is a Filter node whose `top` is the opening node's
    index. The top filter renders all of them in creation order.
    """

    kind = NodeKind.FILTER

    def __init__(self, expression: str = '', top: Optional[int] = None, **kwargs):
        super().__init__(expression, **kwargs)
        self.top = top
        self.name: Optional[str] = None
        if top is None:
            m = FILTER.match(expression)
            self.name = m.group(1) if m else 'plain'

    def top_index(self) -> int:
        return self.index if self.top is None else self.top

    def lines(self, tree: Tree) -> List[Tuple[int, str]]:
        """
        (relative indent, text) of every content line in creation order.
        Indents are whitespace widths measured from the shallowest content line;
        trailing blank lines are dropped.
        """
        indices = []
        pending = list(self.children)
        while pending:
            index = pending.pop()
            indices.append(index)
            pending.extend(tree.get(index).children)
        # arena indices follow creation order, which keeps blank lines in place
        nodes = [tree.get(index) for index in sorted(indices)]

        base = min((node.indent for node in nodes if node.expression), default=0)
        lines = [(node.indent - base if node.expression else 0, node.expression) for node in nodes]
        while lines and not lines[-1][1]:
            lines.pop()
        return lines

    def render(self, tree):
        if self.top is not None:
            return ''
        return getattr(self, f'_render_{self.name}')(self.lines(tree))

    def _content(self, lines, extra: int = 0, escape: bool = False) -> str:
        output = ''
        for indent, text in lines:
            if not text:
                output += self.push([])
                continue
            fragments = interpolate(text, escape)
            if escape:
                fragments = [(is_code, value if is_code else escape_html(value)) for is_code, value in fragments]
            output += self.push([(False, self.html_indent(extra) + ' ' * indent)] + fragments)
        return output

    def _render_plain(self, lines):
        return self._content(lines)

    def _render_escaped(self, lines):
        return self._content(lines, escape=True)

    def _render_preserve(self, lines):
        text = '&#x000A;'.join(' ' * indent + text for indent, text in lines)
        return self.push([(False, self.html_indent())] + interpolate(text, escape=False))

    def _render_cdata(self, lines):
        return self.push_text('<![CDATA[') + self._content(lines, extra=1) + self.push_text(']]>')

    def _render_css(self, lines):
        opening = '<style>' if self.format == OutputFormat.HTML5 else '<style type="text/css">'
        if self.format == OutputFormat.XHTML:
            body = self.push_text('/*<![CDATA[*/', extra=1) + self._content(lines, extra=1) + self.push_text('/*]]>*/', extra=1)
        else:
            body = self._content(lines, extra=1)
        return self.push_text(opening) + body + self.push_text('</style>')

    def _render_javascript(self, lines):
        opening = '<script>' if self.format == OutputFormat.HTML5 else '<script type="text/javascript">'
        if self.format == OutputFormat.XHTML:
            body = self.push_text('//<![CDATA[', extra=1) + self._content(lines, extra=1) + self.push_text('//]]>', extra=1)
        else:
            body = self._content(lines, extra=1)
        return self.push_text(opening) + body + self.push_text('</script>')

    def _render_python(self, lines):
        return ''.join(self.run(' ' * indent + text) for indent, text in lines if text)

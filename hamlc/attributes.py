"""
Leaf rendering helpers shared by the node kinds.

Generated output statements are built from fragments: `(False, text)` is
literal output, `(True, code)` is a Python expression producing a string.
`to_expression()` turns a fragment list into one Python expression.
"""
import ast
import re
from typing import List, Tuple, Optional, Any

from .config import OutputFormat

Fragment = Tuple[bool, str]

HASH_ENTRY = re.compile(r"""^\s*(?:(['"])(?P<quoted>.+?)\1|:?(?P<name>[-\w:]+))\s*(?::|=>)\s*(?P<value>.*?)\s*$""", re.S)
HTML_ENTRY = re.compile(r"""\s*(?P<name>[-\w:@.]+)(?:\s*=\s*(?P<value>"(?:[^"\\]|\\.)*"|'(?:[^'\\]|\\.)*'|[^\s"']+))?""")

TAG_PREFIX = re.compile(r'^(?:%[-\w:]+|[.#][-\w]+)(?:[.#][-\w]+)*')

OPENERS = {'(': ')', '[': ']', '{': '}'}


def escape_html(text: str) -> str:
    """Compile-time counterpart of the generated escape function."""
    return (text.replace('&', '&amp;')
                .replace('<', '&lt;')
                .replace('>', '&gt;')
                .replace('"', '&quot;'))


def _scan(text: str):
    """Yields (index, char, depth) for characters outside string literals."""
    depth = 0
    quote = None
    i = 0
    while i < len(text):
        char = text[i]
        if quote:
            if char == '\\':
                i += 2
                continue
            if char == quote:
                quote = None
        elif char in ('"', "'"):
            quote = char
        else:
            if char in OPENERS:
                depth += 1
            elif char in OPENERS.values():
                depth -= 1
            yield i, char, depth
        i += 1


def split_balanced(line: str) -> Tuple[str, str]:
    """
    Splits a leading bracketed group off `line`.
    Returns (group including brackets, rest); the group is empty if `line` does
    not start with a bracket or the bracket is never closed.
    """
    if not line or line[0] not in OPENERS:
        return '', line
    for index, char, depth in _scan(line):
        if depth == 0:
            return line[:index + 1], line[index + 1:]
    return '', line


def opens_attribute_list(expression: str) -> bool:
    """True for a markup line whose attribute list is not closed on this line."""
    m = TAG_PREFIX.match(expression)
    if not m:
        return False
    rest = expression[m.end():]
    return bool(rest) and rest[0] in '{(' and not split_balanced(rest)[0]


def split_top_level(text: str, separator: str = ',') -> List[str]:
    """Splits on `separator` outside of brackets and string literals."""
    parts = []
    start = 0
    for index, char, depth in _scan(text):
        if char == separator and depth == 0:
            parts.append(text[start:index])
            start = index + 1
    parts.append(text[start:])
    return [part for part in parts if part.strip()]


def literal_value(expression: str) -> Tuple[bool, Any]:
    """Evaluates `expression` if it is a plain Python literal, so it can be rendered at compile time."""
    try:
        return True, ast.literal_eval(expression.strip())
    except (ValueError, SyntaxError):
        return False, None


def parse_hash_attributes(source: str) -> List[Tuple[str, str]]:
    """Parses `{key: value, 'data-x': expr}` into (name, python expression) pairs."""
    inner = source.strip()[1:-1]
    pairs = []
    for entry in split_top_level(inner):
        m = HASH_ENTRY.match(entry)
        if not m:
            continue
        name = m.group('quoted') or m.group('name')
        pairs.append((name, m.group('value')))
    return pairs


def parse_html_attributes(source: str) -> List[Tuple[str, str]]:
    """Parses `(key="value" key=expr flag)`; bare flags become `True`."""
    inner = source.strip()[1:-1]
    pairs = []
    for m in HTML_ENTRY.finditer(inner):
        if not m.group('name'):
            continue
        pairs.append((m.group('name'), m.group('value') or 'True'))
    return pairs


def parse_attributes(source: str) -> List[Tuple[str, str]]:
    if source.startswith('{'):
        return parse_hash_attributes(source)
    if source.startswith('('):
        return parse_html_attributes(source)
    return []


def _class_fragments(shorthand: List[str], values: List[str]) -> List[Fragment]:
    static = list(shorthand)
    dynamic = []
    for value in values:
        is_literal, literal = literal_value(value)
        if is_literal:
            if isinstance(literal, (list, tuple)):
                static.extend(str(item) for item in literal if item)
            elif literal:
                static.append(str(literal))
        else:
            dynamic.append(value)
    if not static and not dynamic:
        return []
    fragments = [(False, ' class="' + escape_html(' '.join(static)))]
    for i, value in enumerate(dynamic):
        if static or i:
            fragments.append((False, ' '))
        fragments.append((True, f"e({value})"))
    fragments.append((False, '"'))
    return fragments


def _id_fragments(shorthand: Optional[str], values: List[str]) -> List[Fragment]:
    parts: List[Fragment] = []
    if shorthand:
        parts.append((False, escape_html(shorthand)))
    for value in values:
        is_literal, literal = literal_value(value)
        if is_literal and not literal:
            continue
        if parts:
            parts.append((False, '_'))
        parts.append((False, escape_html(str(literal))) if is_literal else (True, f"e({value})"))
    if not parts:
        return []
    return [(False, ' id="')] + parts + [(False, '"')]


def render_attributes(tag_id: Optional[str], classes: List[str],
                      pairs: List[Tuple[str, str]], output_format: OutputFormat) -> List[Fragment]:
    """Serializes id, class and the remaining attributes, in that order."""
    id_values = [value for name, value in pairs if name == 'id']
    class_values = [value for name, value in pairs if name == 'class']

    fragments = _id_fragments(tag_id, id_values) + _class_fragments(classes, class_values)
    for name, value in pairs:
        if name in ('id', 'class'):
            continue
        is_literal, literal = literal_value(value)
        if not is_literal:
            fragments += [(False, f' {name}="'), (True, f"e({value})"), (False, '"')]
        elif literal is True:
            fragments.append((False, f' {name}="{name}"' if output_format == OutputFormat.XHTML else f' {name}'))
        elif literal is False or literal is None:
            continue
        else:
            fragments.append((False, f' {name}="{escape_html(str(literal))}"'))
    return fragments


def interpolate(text: str, escape: bool) -> List[Fragment]:
    """
    Splits `text` on `#{expr}` interpolations. `\\#{` yields a literal `#{`.
    Expressions are wrapped in `e()` when escaping, `str()` otherwise.
    """
    fragments: List[Fragment] = []
    literal = ''
    i = 0
    while i < len(text):
        if text.startswith('\\#{', i):
            literal += '#{'
            i += 3
            continue
        if text.startswith('#{', i):
            group, _ = split_balanced(text[i + 1:])
            if group:
                if literal:
                    fragments.append((False, literal))
                    literal = ''
                expression = group[1:-1].strip()
                fragments.append((True, f"e({expression})" if escape else f"str({expression})"))
                i += 1 + len(group)
                continue
        literal += text[i]
        i += 1
    if literal:
        fragments.append((False, literal))
    return fragments


def to_expression(fragments: List[Fragment]) -> str:
    """Joins fragments into a single Python string expression, merging adjacent literals."""
    merged: List[Fragment] = []
    for is_code, text in fragments:
        if not is_code and not text:
            continue
        if not is_code and merged and not merged[-1][0]:
            merged[-1] = (False, merged[-1][1] + text)
        else:
            merged.append((is_code, text))
    if not merged:
        return "''"
    return ' + '.join(text if is_code else repr(text) for is_code, text in merged)

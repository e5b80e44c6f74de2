import re
from pathlib import PurePath
from typing import List, Optional

from .config import CompilerOptions
from .nodes import CODE_INDENT, Tree

SEPARATORS = re.compile(r'(\s|-)+')

DEFAULT_ESCAPE = '''\
if not hasattr({root}, 'html_escape'):
    def _html_escape(value):
        if value is None:
            return ''
        return (str(value)
                .replace('&', '&amp;')
                .replace('<', '&lt;')
                .replace('>', '&gt;')
                .replace('"', '&quot;'))
    {root}.html_escape = _html_escape
'''


def template_name(path, base=None) -> str:
    """
    Dotted template name for a template file: `users/show-item.haml` becomes
    `users.show_item`. `base` is stripped from the front of the path first.
    """
    path = PurePath(path)
    if base is not None:
        path = path.relative_to(base)
    parts = path.with_suffix('').parts
    if path.anchor:
        parts = parts[1:]
    name = '.'.join(parts)
    return SEPARATORS.sub('_', name)


def name_segments(namespace: str, name: str) -> List[str]:
    return [segment for segment in SEPARATORS.sub('_', f"{namespace}.{name}").split('.') if segment]


class CodeEmitter:
    """Wraps a rendered tree into a module that defines and registers one template function."""

    def __init__(self, options: Optional[CompilerOptions] = None):
        self.options = options or CompilerOptions()

    def emit(self, tree: Tree, name: str, namespace: Optional[str] = None) -> str:
        segments = name_segments(namespace or self.options.namespace, name)
        if len(segments) < 2:
            raise ValueError(f"Cannot derive a template name from {name!r}.")
        function_name = segments.pop()
        root = segments[0]

        # --- Namespace scaffold ---
        output = 'import types as _types\n\n'
        output += f"{root} = globals().get({root!r}) or _types.SimpleNamespace()\n"
        container = root
        for segment in segments[1:]:
            output += f"if not hasattr({container}, {segment!r}):\n"
            output += f"{CODE_INDENT}setattr({container}, {segment!r}, _types.SimpleNamespace())\n"
            container = f"getattr({container}, {segment!r})"

        if self.options.custom_html_escape:
            escape = self.options.custom_html_escape
        else:
            escape = f"{root}.html_escape"
            output += DEFAULT_ESCAPE.format(root=root)

        # --- Template function ---
        output += '\n\ndef _template(context):\n'
        output += f"{CODE_INDENT}o = []\n"
        output += f"{CODE_INDENT}e = {escape}\n"
        output += tree.root.render(tree)
        output += f"{CODE_INDENT}return '\\n'.join(o)\n"
        output += f"\n\nsetattr({container}, {function_name!r}, _template)\n"
        return output

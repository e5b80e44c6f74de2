"""
Loading generated template code in-process.

    namespace = load(HamlCompiler().compile(source, 'users.show'))
    html = resolve(namespace, 'HAML.users.show')({'name': 'Ann'})
"""
from typing import Any, Callable, Dict, Optional

from .attributes import escape_html


def html_escape(value: Any) -> str:
    """Same escaping as the function generated into template modules."""
    if value is None:
        return ''
    return escape_html(str(value))


def load(code: str, extra_globals: Optional[Dict[str, Any]] = None,
         filename: str = '<haml>') -> Dict[str, Any]:
    """Executes generated code in a fresh globals dict and returns it."""
    namespace = dict(extra_globals or {})
    exec(compile(code, filename, 'exec'), namespace)
    return namespace


def resolve(namespace: Dict[str, Any], dotted_name: str) -> Callable[[Any], str]:
    root, *rest = dotted_name.split('.')
    target = namespace[root]
    for part in rest:
        target = getattr(target, part)
    return target


def render(code: str, dotted_name: str, context: Any = None,
           extra_globals: Optional[Dict[str, Any]] = None) -> str:
    return resolve(load(code, extra_globals), dotted_name)(context)

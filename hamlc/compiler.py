import logging
from pathlib import Path
from typing import Optional

from .config import CompilerOptions
from .emitter import CodeEmitter, template_name
from .nodes import Tree
from .parser import Parser, ParseResult

log = logging.getLogger(__name__)


class HamlCompiler:
    """
    Haml Compiler
    Compiles Haml templates to Python source defining one template function.

    Features:
    - Indentation-based hierarchy (tab unit inferred from the first indent)
    - Tags with id/class shorthands, hash `{}` and html `()` attribute lists
    - Attribute lists continued over several lines
    - Embedded Python: `-` statements, `=` escaped and `!=` unescaped output
    - `#{}` interpolation in text
    - HTML, conditional and silent comments
    - Filters: plain, escaped, preserve, css, javascript, cdata, python
    - html5, html4 and xhtml output formats
    - Fatal errors for inconsistent indentation and skipped nesting levels
    """

    def __init__(self, options: Optional[CompilerOptions] = None):
        self.options = options or CompilerOptions()
        self.parser = Parser(self.options)
        self.emitter = CodeEmitter(self.options)

    def parse(self, source: str) -> ParseResult:
        """Parses template source into a tree, or the error that stopped it."""
        return self.parser.parse(source)

    def render(self, tree: Tree, name: str, namespace: Optional[str] = None) -> str:
        """Generates the Python source for a parsed tree."""
        return self.emitter.emit(tree, name, namespace)

    def compile(self, source: str, name: str = 'template', namespace: Optional[str] = None) -> str:
        """Compiles template source. Raises CompileError on invalid indentation."""
        tree = self.parse(source).unwrap()
        return self.render(tree, name, namespace)

    def compile_file(self, path, base_path=None, namespace: Optional[str] = None,
                     name: Optional[str] = None) -> str:
        """Compiles a template file; the template name defaults to its path relative to `base_path`."""
        path = Path(path)
        name = name or template_name(path, base_path)
        log.debug("Compiling %s as %s", path, name)
        with open(path, "r") as f:
            return self.compile(f.read(), name, namespace)

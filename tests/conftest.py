import textwrap
from pathlib import Path

import pytest

from hamlc import HamlCompiler, CompilerOptions
from hamlc.runtime import load, resolve


def write(path: Path, text: str) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text)
    return path


def haml(source: str) -> str:
    """Dedented template source without the surrounding blank lines."""
    return textwrap.dedent(source).strip('\n')


def compile_and_render(source: str, context=None, name: str = 'template', **options) -> str:
    compiler = HamlCompiler(CompilerOptions(**options))
    code = compiler.compile(haml(source), name)
    return resolve(load(code), f"{compiler.options.namespace}.{name}")(context)


@pytest.fixture
def render():
    return compile_and_render


@pytest.fixture
def project(tmp_path: Path):
    """Two templates and a config compiling them into build/."""
    write(tmp_path / "templates" / "index.haml", haml("""
        %h1 Welcome
        %p= context['name']
    """))
    write(tmp_path / "templates" / "users" / "show-item.haml", "%li.user= context['name']\n")
    write(tmp_path / "hamlc.yml", haml("""
        options:
          escape_html: true
          format: html5
        base: templates
        write:
          - src: templates/index.haml
            dst: build/index.py
          - src: templates/users/show-item.haml
            dst: build/users/show_item.py
        watch:
          - "templates/**/*.haml"
    """))
    return tmp_path

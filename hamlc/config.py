import yaml
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import List, Dict, Optional, Any

from .errors import ConfigError


class OutputFormat(str, Enum):
    HTML5 = 'html5'
    HTML4 = 'html4'
    XHTML = 'xhtml'


@dataclass(frozen=True)
class CompilerOptions:
    """Options shared by every template compiled by one compiler."""

    escape_html: bool = True
    format: OutputFormat = OutputFormat.HTML5
    custom_html_escape: Optional[str] = None
    namespace: str = 'HAML'

    def __post_init__(self):
        if not isinstance(self.format, OutputFormat):
            object.__setattr__(self, 'format', OutputFormat(self.format))

    @classmethod
    def from_mapping(cls, data: Optional[Dict[str, Any]]) -> 'CompilerOptions':
        """Builds options from a plain mapping, e.g. the `options` key of a YAML config."""
        if data is None:
            return cls()
        if not isinstance(data, dict):
            raise ConfigError("Compiler options must be a mapping.")

        unknown = set(data) - {'escape_html', 'format', 'custom_html_escape', 'namespace'}
        if unknown:
            raise ConfigError(f"Unknown compiler option(s): {', '.join(sorted(unknown))}.")

        escape_html = data.get('escape_html', True)
        if not isinstance(escape_html, bool):
            raise ConfigError("Option 'escape_html' must be true or false.")

        try:
            output_format = OutputFormat(data.get('format', OutputFormat.HTML5.value))
        except ValueError:
            allowed = ', '.join(f.value for f in OutputFormat)
            raise ConfigError(f"Option 'format' must be one of: {allowed}.") from None

        custom_html_escape = data.get('custom_html_escape')
        if custom_html_escape is not None and not isinstance(custom_html_escape, str):
            raise ConfigError("Option 'custom_html_escape' must be a string.")

        namespace = data.get('namespace', 'HAML')
        if not isinstance(namespace, str) or not all(part.isidentifier() for part in namespace.split('.')):
            raise ConfigError("Option 'namespace' must be a dotted name, e.g. 'HAML' or 'app.templates'.")

        return cls(escape_html=escape_html, format=output_format,
                   custom_html_escape=custom_html_escape or None, namespace=namespace)


@dataclass(frozen=True)
class WritePair:
    src: Path
    dst: Path


@dataclass
class ProjectConfig:
    """A batch of templates to compile, as described by a YAML config file."""

    options: CompilerOptions = field(default_factory=CompilerOptions)
    base: Optional[Path] = None
    write: List[WritePair] = field(default_factory=list)
    watch: List[str] = field(default_factory=list)
    root: Path = Path('.')

    def watch_paths(self) -> set:
        """Resolves the `watch` globs against the config directory."""
        return {path for pattern in self.watch for path in self.root.glob(pattern)}


def load_config(path) -> ProjectConfig:
    """Reads a project config. Relative paths resolve against the config file's directory."""
    path = Path(path)
    with open(path, "r") as f:
        cfg = yaml.safe_load(f)
    return parse_config(cfg, root=path.parent)


def parse_config(cfg: Any, root: Path = Path('.')) -> ProjectConfig:
    if cfg is None:
        cfg = {}
    if not isinstance(cfg, dict):
        raise ConfigError("Config file must contain a mapping.")

    options = CompilerOptions.from_mapping(cfg.get('options'))

    write_pairs = []
    for entry in cfg.get('write') or []:
        if not isinstance(entry, dict) or 'src' not in entry or 'dst' not in entry:
            raise ConfigError("Each 'write' entry needs 'src' and 'dst'.")
        write_pairs.append(WritePair(src=root / entry['src'], dst=root / entry['dst']))

    watch = cfg.get('watch') or []
    if isinstance(watch, str):
        watch = [watch]

    base = root / cfg['base'] if cfg.get('base') else None
    return ProjectConfig(options=options, base=base, write=write_pairs, watch=list(watch), root=root)

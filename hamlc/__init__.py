from .compiler import HamlCompiler
from .config import CompilerOptions, OutputFormat, ProjectConfig, load_config
from .emitter import template_name
from .errors import CompileError, TemplateIndentationError, BlockTooDeepError, ConfigError, ErrorKind
from .parser import Parser, ParseResult, ParseError

__all__ = [
    'HamlCompiler', 'CompilerOptions', 'OutputFormat', 'ProjectConfig', 'load_config', 'template_name',
    'CompileError', 'TemplateIndentationError', 'BlockTooDeepError', 'ConfigError', 'ErrorKind',
    'Parser', 'ParseResult', 'ParseError',
]

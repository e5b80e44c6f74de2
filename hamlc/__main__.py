import yaml
from .compiler import HamlCompiler
from .config import CompilerOptions, OutputFormat, load_config
from .emitter import template_name
from .errors import CompileError, ConfigError
from .watcher import run_watcher, trigger_recompile
import argparse
import logging
from pathlib import Path
import sys
import time


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
                        prog='hamlc',
                        description='Compile Haml templates into Python template functions.',
                        epilog='Pass a YAML project config, or a single template with --input.')
    parser.add_argument('config', nargs='?', help='YAML project config')
    parser.add_argument('-w', '--watch', action='store_true', help='recompile when templates change')
    parser.add_argument('-i', '--input', help='single template to compile')
    parser.add_argument('-o', '--output', help='output file (default: stdout)')
    parser.add_argument('-n', '--namespace', help='namespace holding the template function')
    parser.add_argument('-t', '--template', help='dotted template name (default: input file name)')
    parser.add_argument('-f', '--format', choices=[f.value for f in OutputFormat])
    parser.add_argument('--no-escape-html', action='store_true', help='do not escape `=` output')
    parser.add_argument('--custom-html-escape', help='name of the escape function to call')
    return parser


def compile_input(args) -> int:
    options = {
        'escape_html': not args.no_escape_html,
        'format': args.format,
        'custom_html_escape': args.custom_html_escape,
        'namespace': args.namespace,
    }
    compiler = HamlCompiler(CompilerOptions.from_mapping({k: v for k, v in options.items() if v is not None}))
    input_path = Path(args.input)
    code = compiler.compile_file(input_path, name=args.template or template_name(input_path.name))
    if args.output:
        with open(args.output, "w+") as f:
            f.write(code)
    else:
        sys.stdout.write(code)
    return 0


def build_project(config_path) -> int:
    cfg = load_config(config_path)
    failures = trigger_recompile(cfg.write, HamlCompiler(cfg.options), cfg.base or cfg.root)
    return 1 if failures else 0


def watch_project(config_path) -> int:
    while True:
        try:
            cfg = load_config(config_path)
            compiler = HamlCompiler(cfg.options)
            trigger_recompile(cfg.write, compiler, cfg.base or cfg.root)
            run_watcher(cfg, compiler)
            return 0
        except (ConfigError, OSError, yaml.YAMLError) as e:
            print(f"Error: {e}")
            print("Please check your configuration and try again, attempting to reload in 3 seconds...")
            time.sleep(3)
            continue


def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(level=logging.INFO,
                        format='%(asctime)s - %(message)s',
                        datefmt='%Y-%m-%d %H:%M:%S')

    if not args.input and not args.config:
        parser.error("a config file or --input is required")

    try:
        if args.input:
            return compile_input(args)
        if args.watch:
            return watch_project(args.config)
        return build_project(args.config)
    except (CompileError, ConfigError, OSError, yaml.YAMLError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == '__main__':
    sys.exit(main())

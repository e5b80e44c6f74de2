from watchdog.observers import Observer
from watchdog.events import FileSystemEventHandler
import logging
from pathlib import Path
from typing import Iterable, List, Tuple
from .compiler import HamlCompiler
from .config import ProjectConfig, WritePair
from .errors import CompileError

log = logging.getLogger(__name__)


def trigger_recompile(write_pairs: Iterable[WritePair], compiler: HamlCompiler,
                      base_path=None) -> List[Tuple[WritePair, Exception]]:
    """
    Compiles every src template into its dst module.
    A failing template is logged and skipped; the failures are returned.
    """
    failures = []
    for pair in write_pairs:
        try:
            code = compiler.compile_file(pair.src, base_path)
        except (CompileError, OSError) as error:
            log.error("Failed to compile %s: %s", pair.src, error)
            failures.append((pair, error))
            continue
        pair.dst.parent.mkdir(parents=True, exist_ok=True)
        with open(pair.dst, "w+") as f:
            f.write(code)
        log.info("Compiled %s -> %s", pair.src, pair.dst)
    return failures


class ChangeHandler(FileSystemEventHandler):
    def __init__(self, files_to_watch, config: ProjectConfig, compiler: HamlCompiler):
        self.files_to_watch = {Path(x).resolve() for x in files_to_watch}  # absolute paths (sources + watched)
        self.config = config
        self.compiler = compiler
        log.info("Handler initialized. Monitoring for changes...")

    def on_modified(self, event):
        if event.is_directory:
            return

        # Resolve path and check if it's one we care about
        src_path_abs = Path(event.src_path).resolve()
        if src_path_abs in self.files_to_watch:
            log.info("Detected modification in: %s", src_path_abs)
            trigger_recompile(self.config.write, self.compiler, self.config.base or self.config.root)


def run_watcher(config: ProjectConfig, compiler: HamlCompiler):
    """Sets up and runs the watchdog observer."""
    files_to_watch = {pair.src for pair in config.write} | config.watch_paths()
    dirs_to_watch = {p.resolve().parent for p in files_to_watch}

    if not dirs_to_watch:
        log.error("No valid directories provided to watch.")
        return

    event_handler = ChangeHandler(files_to_watch, config, compiler)
    observer = Observer()

    scheduled_count = 0
    for dir_path in dirs_to_watch:
        if not dir_path.is_dir():
            log.warning("Directory '%s' does not exist. Cannot watch.", dir_path)
            continue

        # recursive=False: only events directly within this directory
        observer.schedule(event_handler, str(dir_path), recursive=False)
        scheduled_count += 1
        log.info("Scheduled watcher for directory: %s", dir_path)

    if scheduled_count == 0:
        log.error("No watchers were successfully scheduled. Exiting.")
        return

    observer.start()
    log.info("Watching for file changes in %d director%s. Press Ctrl+C to stop.",
             scheduled_count, 'y' if scheduled_count == 1 else 'ies')

    try:
        while observer.is_alive():
            observer.join(timeout=1)  # Wait for observer thread, check status periodically
    except KeyboardInterrupt:
        log.info("Stopping watcher (Ctrl+C pressed)...")
    finally:
        if observer.is_alive():
            observer.stop()
        # Wait for the observer thread to fully finish shutting down
        observer.join()
        log.info("Watcher stopped completely.")

import argparse
import asyncio
import importlib.util
import sys
import uuid
from pathlib import Path

from oak.oak_config import RuntimeConfig, load_config
from oak.oak_runtime import Runtime


def load_bundle(path: Path):
    """Imports a compiled bundle file and returns its `bundle(runtime)` hook."""
    mod_name = f"oak_bundle_{uuid.uuid4().hex}"
    spec = importlib.util.spec_from_file_location(mod_name, str(path))
    if spec is None or spec.loader is None:
        raise ImportError(f"cannot load bundle {path}")
    mod = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(mod)
    hook = getattr(mod, "bundle", None)
    if not callable(hook):
        raise ImportError(f"bundle {path} does not define bundle(runtime)")
    return hook


async def run_bundle(bundle_path: str, config: RuntimeConfig) -> int:
    """Run a compiled bundle and return the process exit status."""
    p = Path(bundle_path)
    if not p.is_file():
        print(f"Error: file not found: {bundle_path}", file=sys.stderr)
        return 1
    runtime = Runtime(config)
    hook = load_bundle(p)
    hook(runtime)
    result = await runtime.run()
    if result.status == 'error':
        print(result.format_error(), file=sys.stderr)
        return 1
    return 0


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(prog="oakrun", description="Run a compiled Oak bundle.")
    parser.add_argument("bundle", help="Python file defining bundle(runtime)")
    parser.add_argument("--config", help="YAML, TOML or JSON runtime config")
    parser.add_argument("--entry", help="module to import (default: the config's entry, '')")
    parser.add_argument("--debug", action="store_true", help="print [DBG] traces to stderr")
    parser.add_argument("args", nargs=argparse.REMAINDER, help="arguments exposed through args()")
    ns = parser.parse_args(argv)

    config = load_config(ns.config) if ns.config else RuntimeConfig()
    if ns.args or not ns.config:
        config.argv = [ns.bundle] + list(ns.args)
    if ns.entry is not None:
        config.entry = ns.entry
    if ns.debug:
        config.debug = True
    return asyncio.run(run_bundle(ns.bundle, config))


if __name__ == "__main__":
    sys.exit(main())

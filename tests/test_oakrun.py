import importlib.util
import sys
import uuid
from pathlib import Path

import pytest

from oak.oak_config import RuntimeConfig
from oak.oak_datatypes import OakString
from oak.oak_runtime import Runtime

ROOT = Path(__file__).resolve().parents[1]
BUNDLE = Path(__file__).resolve().parent / "bundles" / "proxy_path.py"


def _load_runner_module():
    """Dynamically load the top-level oakrun.py as a module with a unique name."""
    mod_name = f"oakrun_for_test_{uuid.uuid4().hex}"
    spec = importlib.util.spec_from_file_location(mod_name, str(ROOT / "oakrun.py"))
    mod = importlib.util.module_from_spec(spec)
    sys.modules[mod_name] = mod
    assert spec.loader is not None
    spec.loader.exec_module(mod)
    return mod


@pytest.fixture
def runner():
    return _load_runner_module()


@pytest.fixture
def proxy_path(runner):
    rt = Runtime(RuntimeConfig(argv=["bundle"]))
    runner.load_bundle(BUNDLE)(rt)
    return rt.import_module("")["inputURLToProxyPath"]


@pytest.mark.parametrize(
    "url,expected",
    [
        (
            "https://github.com/user/repo/blob/main/src/x.py#L10-L20",
            "/highlight/https://raw.githubusercontent.com/user/repo/main/src/x.py?start=10&end=20",
        ),
        (
            "https://github.com/user/repo/blob/main/src/x.py",
            "/highlight/https://raw.githubusercontent.com/user/repo/main/src/x.py",
        ),
        (
            "github.com/a/b/blob/dev/README.md#L3",
            "/highlight/https://raw.githubusercontent.com/a/b/dev/README.md",
        ),
        (
            "https://example.com/a/b",
            "/highlight/https://example.com/a/b",
        ),
    ],
    ids=["line_range", "no_hash", "single_line", "not_github"],
)
def test_proxy_path(proxy_path, url, expected):
    assert proxy_path(OakString(url)) == expected


def test_main_runs_bundle_with_args(runner, capsys):
    url = "https://github.com/u/r/blob/main/x.py#L1-L5"
    status = runner.main([str(BUNDLE), url])
    assert status == 0
    out = capsys.readouterr().out
    assert out == "/highlight/https://raw.githubusercontent.com/u/r/main/x.py?start=1&end=5\n"


def test_main_reads_config(runner, tmp_path, capsys):
    config = tmp_path / "oak.yaml"
    config.write_text("argv: [bundle, 'https://example.com/z']\n", encoding="utf-8")
    assert runner.main(["--config", str(config), str(BUNDLE)]) == 0
    assert capsys.readouterr().out == "/highlight/https://example.com/z\n"


def test_main_missing_bundle(runner, tmp_path, capsys):
    status = runner.main([str(tmp_path / "nope.py")])
    assert status == 1
    assert "Error: file not found" in capsys.readouterr().err


def test_main_reports_runtime_errors(runner, tmp_path, capsys):
    bundle = tmp_path / "broken.py"
    bundle.write_text(
        "def bundle(runtime):\n"
        "    runtime.modules.register('', lambda: runtime.import_module('missing'))\n",
        encoding="utf-8",
    )
    assert runner.main([str(bundle)]) == 1
    err = capsys.readouterr().err
    assert 'UnresolvedModuleError: Could not import Oak module "missing" at runtime' in err


def test_main_unknown_entry(runner, capsys):
    assert runner.main(["--entry", "elsewhere", str(BUNDLE)]) == 1
    assert "elsewhere" in capsys.readouterr().err


def test_load_bundle_requires_hook(runner, tmp_path):
    bundle = tmp_path / "empty.py"
    bundle.write_text("x = 1\n", encoding="utf-8")
    with pytest.raises(ImportError, match="bundle"):
        runner.load_bundle(bundle)
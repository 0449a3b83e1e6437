"""
Tests for the jsbind command line.
"""

import json

import pytest

from jsbind import __version__
from jsbind.main import create_parser, main

WINDOW_SIG = """
type window = private Ojs.t
val current : window [@@js.global "window"]
val title : window -> string
val close : window -> unit
"""


@pytest.fixture
def signature_file(tmp_path):
    path = tmp_path / "window.mli"
    path.write_text(WINDOW_SIG, encoding="utf-8")
    return path


class TestParser:
    def test_defaults(self):
        args = create_parser().parse_args(["a.mli"])
        assert args.signature == "a.mli"
        assert args.output is None
        assert not args.fragment
        assert not args.no_comments
        assert args.log_level is None

    def test_version(self, capsys):
        with pytest.raises(SystemExit) as exc_info:
            main(["--version"])
        assert exc_info.value.code == 0
        assert __version__ in capsys.readouterr().out


class TestMain:
    def test_prints_bindings(self, signature_file, capsys):
        assert main([str(signature_file)]) == 0
        captured = capsys.readouterr()
        assert "from jsbind.runtime import ojs" in captured.out
        assert "def title(this: window) -> str:" in captured.out
        assert "Warnings" in captured.err
        assert "[@@js.meth]" in captured.err

    def test_writes_output_file(self, signature_file, tmp_path, capsys):
        output = tmp_path / "window.py"
        assert main([str(signature_file), "-o", str(output)]) == 0
        assert "def title" in output.read_text(encoding="utf-8")
        captured = capsys.readouterr()
        assert captured.out == ""
        assert "Bindings saved" in captured.err

    def test_fragment(self, signature_file, capsys):
        assert main([str(signature_file), "--fragment", "--no-comments"]) == 0
        out = capsys.readouterr().out
        assert not out.startswith("from __future__")
        assert out.startswith("window = ojs.t")

    def test_runtime_module(self, signature_file, capsys):
        assert main([str(signature_file), "--runtime-module", "app.js"]) == 0
        assert "from app.js import ojs" in capsys.readouterr().out

    def test_verbose_metadata(self, signature_file, capsys):
        assert main([str(signature_file), "--verbose"]) == 0
        err = capsys.readouterr().err
        assert "Generation Metadata" in err
        assert "Binding Kinds" in err
        assert "PropertyGet" in err

    def test_stdin(self, monkeypatch, capsys):
        import io

        monkeypatch.setattr("sys.stdin", io.StringIO("val version : string"))
        assert main(["-"]) == 0
        assert "version: str" in capsys.readouterr().out

    def test_config_file(self, signature_file, tmp_path, capsys):
        config = tmp_path / "jsbind.json"
        config.write_text(json.dumps({"type_hints": False, "strict": True}), encoding="utf-8")
        assert main([str(signature_file), "--config", str(config)]) == 0
        captured = capsys.readouterr()
        assert "def title(this):" in captured.out
        assert "Unknown configuration key: strict" in captured.err


class TestFailures:
    def test_missing_file(self, tmp_path, capsys):
        assert main([str(tmp_path / "missing.mli")]) == 1
        assert "File not found" in capsys.readouterr().err

    def test_binding_error(self, tmp_path, capsys):
        path = tmp_path / "bad.mli"
        path.write_text("val f : widget -> int\n", encoding="utf-8")
        assert main([str(path)]) == 2
        captured = capsys.readouterr()
        assert captured.out == ""
        assert f'File "{path}", line 1' in captured.err
        assert "Unbound type widget" in captured.err

    def test_bad_config(self, signature_file, tmp_path, capsys):
        config = tmp_path / "jsbind.json"
        config.write_text("{oops", encoding="utf-8")
        assert main([str(signature_file), "--config", str(config)]) == 1
        assert "Configuration error" in capsys.readouterr().err

    def test_unwritable_output(self, signature_file, tmp_path, capsys):
        output = tmp_path / "missing" / "out.py"
        assert main([str(signature_file), "-o", str(output)]) == 1
        assert "Failed to write" in capsys.readouterr().err

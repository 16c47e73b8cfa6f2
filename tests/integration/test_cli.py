#!/usr/bin/env python3
"""
Tests for the command-line entry point.
"""

import sexpdata
from rsluau.__main__ import main


def _write(tmp_path, source, name="main.rs"):
    path = tmp_path / name
    path.write_text(source, encoding="utf-8")
    return path


class TestCli:
    """`rsluau -f file.rs` and its output options."""

    def test_emit_luau_to_stdout(self, tmp_path, capsys):
        path = _write(tmp_path, "fn main() { for i in 0..3 { print(i) } }")
        assert main(["-f", str(path)]) == 0
        out = capsys.readouterr().out
        assert out.startswith("local function main()\n    for i = 0, 2 do\n")

    def test_call_main(self, tmp_path, capsys):
        path = _write(tmp_path, "fn main() { print(1) }")
        assert main(["-f", str(path), "--call-main"]) == 0
        assert capsys.readouterr().out.endswith("end\n\nmain()\n")

    def test_output_file(self, tmp_path, capsys):
        path = _write(tmp_path, "fn main() {}")
        target = tmp_path / "main.luau"
        assert main(["-f", str(path), "-o", str(target)]) == 0
        assert target.read_text(encoding="utf-8") == "local function main()\nend\n"
        assert capsys.readouterr().out == ""

    def test_emit_ast(self, tmp_path, capsys):
        path = _write(tmp_path, "fn main() {}")
        assert main(["-f", str(path), "--emit", "ast"]) == 0
        data = sexpdata.loads(capsys.readouterr().out)
        assert data[0] == sexpdata.Symbol("program")

    def test_emit_source(self, tmp_path, capsys):
        path = _write(tmp_path, "fn   main()   {\n}\n")
        assert main(["-f", str(path), "--emit", "source"]) == 0
        assert capsys.readouterr().out == "fn main() {}\n"

    def test_compile_error(self, tmp_path, capsys):
        path = _write(tmp_path, 'fn main() { let s = "abc; }')
        assert main(["-f", str(path), "--color", "never"]) == 1
        captured = capsys.readouterr()
        assert captured.out == ""
        assert "error[LexError]: unterminated double quote string" in captured.err
        assert f"{path}:1:21" in captured.err
        assert "aborting due to 1 previous error" in captured.err

    def test_missing_file(self, tmp_path, capsys):
        assert main(["-f", str(tmp_path / "absent.rs")]) == 1
        assert "file not found" in capsys.readouterr().err

    def test_directory_is_not_a_file(self, tmp_path, capsys):
        assert main(["-f", str(tmp_path)]) == 1
        assert "not a file" in capsys.readouterr().err

"""Tests for the command-line interface."""
import pytest

import converter
from font_loader import FontConfig
from main import build_parser, main


@pytest.fixture(autouse=True)
def standard_fonts(monkeypatch):
    monkeypatch.setattr(converter, "find_font", lambda: FontConfig())


@pytest.fixture
def notes(tmp_path):
    (tmp_path / "one.md").write_text("# One\n\nFirst file.", encoding="utf-8")
    (tmp_path / "two.md").write_text("# Two\n\n- a\n- b", encoding="utf-8")
    (tmp_path / "readme.txt").write_text("ignored", encoding="utf-8")
    return tmp_path


def test_parser_defaults():
    args = build_parser().parse_args(["doc.md"])
    assert args.paper == "A4"
    assert args.margin == "default"
    assert not args.skip_validation


def test_single_file_default_output(notes, capsys):
    assert main([str(notes / "one.md")]) == 0
    assert (notes / "one.pdf").exists()
    out = capsys.readouterr().out
    assert "Inspection: PASS" in out
    assert "[PASS ] one.md" in out


def test_explicit_output_and_options(notes):
    target = notes / "pdf" / "custom.pdf"
    code = main([str(notes / "one.md"), "-o", str(target), "-p", "a3", "-m", "DENSE",
                 "--skip-validation"])
    assert code == 0
    assert target.exists()


def test_directory_mode(notes, tmp_path_factory, capsys):
    out_dir = tmp_path_factory.mktemp("pdfs")
    assert main(["-d", str(notes), "--output-dir", str(out_dir)]) == 0
    assert sorted(p.name for p in out_dir.iterdir()) == ["one.pdf", "two.pdf"]
    assert "Processing 2 file(s)" in capsys.readouterr().out


def test_empty_directory(tmp_path, capsys):
    assert main(["-d", str(tmp_path)]) == 0
    assert "No markdown files found" in capsys.readouterr().out


@pytest.mark.parametrize("argv", [
    [],
    ["missing.md"],
    ["-d", "no-such-dir"],
    ["doc.md", "--paper", "Letter"],
    ["doc.md", "--margin", "huge"],
])
def test_argument_errors(argv, capsys):
    assert main(argv) == 1
    assert "Error:" in capsys.readouterr().out


def test_failed_conversion_sets_exit_code(notes, monkeypatch, capsys):
    def boom(*args, **kwargs):
        raise RuntimeError("layout exploded")

    monkeypatch.setattr("main.convert", boom)
    assert main([str(notes / "one.md")]) == 1
    out = capsys.readouterr().out
    assert "RuntimeError: layout exploded" in out
    assert "[ERROR] one.md" in out


def test_version(capsys):
    with pytest.raises(SystemExit) as exc:
        main(["--version"])
    assert exc.value.code == 0
    assert "md2pdf v" in capsys.readouterr().out

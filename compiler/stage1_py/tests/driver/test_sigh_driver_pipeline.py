#  SPDX-License-Identifier: MIT OR Apache-2.0
#  Copyright (c) 2026 gwz

import pytest

from sigh_context import CompilationContext, LogLevel
from sigh_driver import SighDriver
from sigh_lexer import LexerError, TokenKind
from sigh_logger import log, log_stage
from sigh_parser import ParseError


def test_analyze_file(write_sigh_file):
    path = write_sigh_file("demo.sigh", """
        fun add(a: Int, b: Int): Int { return a + b }
        var x: Int = add(1, 2)
    """)

    result = SighDriver().analyze_file(path)

    assert result.root is not None
    assert result.filename == str(path)
    assert result.diagnostics == []


def test_analyze_file_reports_locations(write_sigh_file):
    path = write_sigh_file("bad.sigh", """
        var x: Int = 1
        var y: String = x
    """)

    result = SighDriver().analyze_file(path)

    assert len(result.diagnostics) == 1
    diag = result.diagnostics[0]
    assert diag.filename == str(path)
    assert (diag.line, diag.column) == (3, 17)


def test_analyze_missing_file(tmp_path):
    result = SighDriver().analyze_file(tmp_path / "nowhere.sigh")

    assert result.root is None
    assert [d.code for d in result.diagnostics] == ["DRV-0010"]
    assert result.has_errors()


def test_lexer_error_becomes_single_diagnostic(analyze_source):
    result = analyze_source("var x: Int = 1\nvar y: Int = @")

    assert result.root is None
    assert len(result.diagnostics) == 1
    diag = result.diagnostics[0]
    assert diag.code == "LEX-0040"
    assert (diag.line, diag.column) == (2, 14)


def test_parse_error_becomes_single_diagnostic(analyze_source):
    result = analyze_source("var x Int = 1")

    assert result.root is None
    assert len(result.diagnostics) == 1
    diag = result.diagnostics[0]
    assert diag.code == "PAR-0032"
    assert (diag.line, diag.column, diag.end_column) == (1, 7, 10)


def test_earlier_stages_raise():
    driver = SighDriver()

    tokens = driver.tokenize_source("var x: Int = 1")
    assert tokens[-1].kind is TokenKind.EOF

    with pytest.raises(LexerError):
        driver.tokenize_source("var x: Int = 1 | 2")
    with pytest.raises(ParseError):
        driver.parse_source("var x: Int =")


def test_default_level_is_quiet(capsys):
    SighDriver().analyze_source("var x: Int = 1")

    assert capsys.readouterr().err == ""


def test_info_logging(capsys):
    driver = SighDriver(CompilationContext(log_level=LogLevel.INFO))

    driver.analyze_source("var x: Int = \"a\"")

    err = capsys.readouterr().err
    assert "Starting analysis of '<input>'" in err
    assert "Parsing '<input>'" in err
    assert "Analysing semantics '<input>'" in err
    assert "Analysis complete: 1 total diagnostic(s), 1 error(s)" in err
    assert "Lexed" not in err


def test_debug_logging(capsys):
    driver = SighDriver(CompilationContext(log_level=LogLevel.DEBUG))

    driver.analyze_source("fun f(): Int { return 1 }", filename="f.sigh")

    err = capsys.readouterr().err
    assert "Lexed 11 token(s) from f.sigh" in err
    assert "Parsed 1 top-level statement(s)" in err
    assert "Semantic analysis: 1 signature(s) registered" in err
    assert "Reactor:" in err


def test_rich_log_format(capsys):
    context = CompilationContext(log_rich_format=True, log_level=LogLevel.INFO)

    log_stage(context, "Parsing", "demo.sigh")
    log_stage(context, "Checking")

    lines = capsys.readouterr().err.splitlines()
    assert lines[0].endswith("[INFO] Parsing 'demo.sigh'")
    assert lines[1].endswith("[INFO] Checking...")


def test_log_without_context(capsys):
    log(None, LogLevel.DEBUG, "hello")

    assert capsys.readouterr().err.splitlines() == ["No context provided for logging.", "hello"]

#  SPDX-License-Identifier: MIT OR Apache-2.0
#  Copyright (c) 2025-2026 gwz

import argparse
from dataclasses import fields, is_dataclass
from pathlib import Path
from typing import Dict, Iterator, List, Optional

from sigh_analysis import AnalysisResult
from sigh_ast import Node, Declaration
from sigh_ast_printer import format_root
from sigh_context import CompilationContext, LogLevel
from sigh_diagnostics import Diagnostic
from sigh_driver import SighDriver
from sigh_internal_error import InternalCompilerError
from sigh_lexer import TokenKind, LexerError
from sigh_logger import log_error, log_warning
from sigh_parser import ParseError
from sigh_types import format_type


def _load_file_lines(path: str, cache: Dict[str, List[str]]) -> List[str]:
    if path not in cache:
        text = Path(path).read_text(encoding="utf-8")
        cache[path] = text.splitlines()
    return cache[path]


def print_diagnostics(result: AnalysisResult, context: CompilationContext) -> None:
    file_cache: Dict[str, List[str]] = {}
    for diag in result.diagnostics:
        print_diagnostic_with_snippet(diag, file_cache, context)


def print_diagnostic_with_snippet(diag: Diagnostic, file_cache: Dict[str, List[str]],
                                  context: Optional[CompilationContext] = None) -> None:
    emit = log_error if diag.kind == "error" else log_warning

    # First line: header
    emit(context, diag.format())

    if not diag.filename or diag.line is None:
        return

    try:
        lines = _load_file_lines(diag.filename, file_cache)
    except OSError:
        # Can't read file; header only
        return

    line_idx = diag.line - 1
    if not (0 <= line_idx < len(lines)):
        return

    src_line = lines[line_idx]

    # "N | ..." with a gutter wide enough for multi-digit line numbers
    width = max(5, len(str(diag.line)))
    gutter = f"{diag.line:>{width}} | "
    emit(context, gutter + src_line)

    if diag.column is None:
        return

    start_col = max(1, diag.column)
    if diag.end_line is None or diag.end_column is None:
        end_col = start_col
    elif diag.end_line == diag.line:
        end_col = max(start_col, diag.end_column)
    else:
        end_col = len(src_line) + 1

    caret_width = max(1, end_col - start_col)
    caret_prefix = " " * width + " | " + " " * (start_col - 1)
    emit(context, caret_prefix + "^" * caret_width)


def build_compilation_context(args: argparse.Namespace) -> CompilationContext:
    """Build a CompilationContext from command-line arguments."""
    verbosity = getattr(args, 'verbosity', 0)
    if verbosity >= 3:
        log_level = LogLevel.DEBUG
    elif verbosity >= 1:
        log_level = LogLevel.INFO
    else:
        log_level = LogLevel.WARNING

    return CompilationContext(
        log_rich_format=getattr(args, 'log', False),
        log_level=log_level,
        strict_signatures=getattr(args, 'strict_signatures', False),
    )


def _run_analysis(args: argparse.Namespace):
    """Run the analysis pipeline, returning (result, context, exit_code)."""
    context = build_compilation_context(args)
    driver = SighDriver(context=context)
    try:
        result = driver.analyze_file(args.source)
    except InternalCompilerError as e:
        log_error(context, e.format())
        return None, context, 1
    print_diagnostics(result, context=context)
    exit_code = 1 if (result.root is None or result.has_errors()) else 0
    return result, context, exit_code


def cmd_check(args: argparse.Namespace) -> int:
    _, _, exit_code = _run_analysis(args)
    return exit_code


def _read_source(path: Path, context: CompilationContext) -> Optional[str]:
    try:
        return path.read_text(encoding="utf-8")
    except OSError as e:
        log_error(context, f"error: [DRV-0010] cannot read Sigh source file: {e}")
        return None


def cmd_tok(args: argparse.Namespace) -> int:
    """Dump lexer tokens."""
    context = build_compilation_context(args)
    path = Path(args.source)
    text = _read_source(path, context)
    if text is None:
        return 1

    try:
        tokens = SighDriver(context=context).tokenize_source(text, filename=str(path))
    except LexerError as e:
        log_error(context, f"{e.filename}:{e.line}:{e.column}: error: {e.message}")
        return 1

    for tok in tokens:
        if not args.include_eof and tok.kind is TokenKind.EOF:
            continue
        # Format: file:line:col: KIND  'text'
        print(f"{path}:{tok.line}:{tok.column}:\t{tok.kind.name:<12} {tok.text!r}")
    return 0


def cmd_ast(args: argparse.Namespace) -> int:
    """
    Pretty-print the parsed syntax tree.
    With --types, analyze the program first and show the type of each node.
    """
    context = build_compilation_context(args)

    if args.types:
        result, context, exit_code = _run_analysis(args)
        if result is None or result.root is None:
            return 1

        def annotate(node: Node) -> str:
            t = result.type_of(node)
            return format_type(t) if t is not None else ""

        print(format_root(result.root, annotate=annotate))
        return exit_code

    path = Path(args.source)
    text = _read_source(path, context)
    if text is None:
        return 1
    try:
        root = SighDriver(context=context).parse_source(text, filename=str(path))
    except LexerError as e:
        log_error(context, f"{e.filename}:{e.line}:{e.column}: error: {e.message}")
        return 1
    except ParseError as e:
        where = f"{e.token.line}:{e.token.column}: " if e.token is not None else ""
        log_error(context, f"{e.filename or path}:{where}error: {e.message}")
        return 1
    print(format_root(root))
    return 0


def _declarations(node: Node) -> Iterator[Declaration]:
    if isinstance(node, Declaration):
        yield node
    if not is_dataclass(node):
        return
    for f in fields(node):
        value = getattr(node, f.name)
        children = value if isinstance(value, list) else [value]
        for child in children:
            if isinstance(child, Node):
                yield from _declarations(child)


def cmd_type(args: argparse.Namespace) -> int:
    """Dump the resolved type of every declaration, in source order."""
    result, _, exit_code = _run_analysis(args)
    if result is None or result.root is None:
        return 1

    for decl in _declarations(result.root):
        span = decl.span
        where = f"{span.start_line}:{span.start_column}" if span is not None else "?"
        name = getattr(decl, "name", "?")
        declared = result.declared(decl)
        typ = declared if declared is not None else result.type_of(decl)
        type_str = format_type(typ) if typ is not None else "<unresolved>"
        print(f"{where:<8} {decl.declared_thing:<24} {name}: {type_str}")
    return exit_code


def _add_source_arg(parser: argparse.ArgumentParser) -> None:
    """Add the source file argument."""
    parser.add_argument("source", help="Sigh source file (e.g. 'examples/fizz.si')")


def main(argv=None) -> None:
    parser = argparse.ArgumentParser(prog="sighc", description="Sigh semantic front end")
    subparsers = parser.add_subparsers(dest="command", required=True, help="Command to run")

    parser.add_argument("-v", "--verbose",
                        action='count',
                        default=0,
                        dest='verbosity',
                        help="Increase verbosity: -v=INFO, -vvv=DEBUG")
    parser.add_argument("-l", "--log",
                        action='store_true',
                        default=False,
                        help="Enable rich log formatting (timestamps, levels)")
    parser.add_argument("--strict-signatures",
                        action='store_true',
                        default=False,
                        help="Report redeclared function signatures as errors instead of warnings")

    ###########################
    # check command
    ###########################
    p_check = subparsers.add_parser("check", help="Parse and analyze a program", aliases=["analyze"])
    _add_source_arg(p_check)
    p_check.set_defaults(func=cmd_check)

    ###########################
    # tok command
    ###########################
    p_tok = subparsers.add_parser("tok", help="Dump lexer tokens", aliases=["tokens"])
    p_tok.add_argument("--include-eof", "-I", action="store_true",
                       help="Include the EOF token in the output")
    _add_source_arg(p_tok)
    p_tok.set_defaults(func=cmd_tok)

    ###########################
    # ast command
    ###########################
    p_ast = subparsers.add_parser("ast", help="Pretty-print the syntax tree")
    p_ast.add_argument("--types", "-t", action="store_true",
                       help="Analyze the program and show the type of each node")
    _add_source_arg(p_ast)
    p_ast.set_defaults(func=cmd_ast)

    ###########################
    # type command
    ###########################
    p_type = subparsers.add_parser("type", help="Dump the types of all declarations", aliases=["types"])
    _add_source_arg(p_type)
    p_type.set_defaults(func=cmd_type)

    args = parser.parse_args(argv)

    rc = args.func(args)
    raise SystemExit(rc)


if __name__ == "__main__":
    main()

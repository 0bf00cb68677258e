#  SPDX-License-Identifier: MIT OR Apache-2.0
#  Copyright (c) 2025-2026 gwz

from pathlib import Path
from typing import List, Optional

from sigh_analysis import AnalysisResult, SemanticAnalysis
from sigh_ast import Root
from sigh_context import CompilationContext
from sigh_diagnostics import Diagnostic, diag_from_token
from sigh_lexer import Lexer, LexerError, Token
from sigh_logger import log_info, log_debug, log_stage
from sigh_parser import Parser, ParseError


class SighDriver:
    """
    Front-end pipeline for a single Sigh source:

      - read file
      - tokenize
      - parse
      - semantic analysis (scopes, types, overloads, returns)

    Entry points:
      - analyze_file(path) / analyze_source(text): full pipeline, never raises
        on user errors; problems are reported as diagnostics.
      - tokenize_source(text) / parse_source(text): earlier stages only,
        raising LexerError / ParseError.
    """

    def __init__(self, context: CompilationContext | None = None):
        self.context = context or CompilationContext.default()

    # --- Public API ---

    def analyze_file(self, path: str | Path) -> AnalysisResult:
        path = Path(path)
        try:
            text = path.read_text(encoding="utf-8")
        except OSError as e:
            result = AnalysisResult(context=self.context, filename=str(path))
            result.diagnostics.append(
                Diagnostic(kind="error", message=f"[DRV-0010] cannot read Sigh source file: {e}", filename=str(path))
            )
            return result
        return self.analyze_source(text, filename=str(path))

    def analyze_source(self, text: str, filename: Optional[str] = None) -> AnalysisResult:
        """
        High-level front-end pipeline:

          1. Lex and parse the source into a syntax tree.
          2. Walk the tree, registering declarations and rules.
          3. Resolve the rules and collect diagnostics.

        Returns an AnalysisResult. On syntax errors, root is None and
        diagnostics hold the single syntax error.
        """
        name = filename or "<input>"
        log_info(self.context, f"Starting analysis of '{name}'")
        result = AnalysisResult(context=self.context, filename=filename)

        log_stage(self.context, "Parsing", name)
        try:
            root = self.parse_source(text, filename=filename)
        except LexerError as e:
            result.diagnostics.append(
                Diagnostic(
                    kind="error",
                    message=e.message,
                    filename=filename,
                    line=e.line,
                    column=e.column,
                )
            )
            return result
        except ParseError as e:
            result.diagnostics.append(
                diag_from_token(
                    kind="error",
                    message=e.message,
                    token=e.token,
                    filename=filename,
                )
            )
            return result

        log_stage(self.context, "Analysing semantics", name)
        result = SemanticAnalysis(self.context, filename).analyze(root)

        errors = len([d for d in result.diagnostics if d.kind == "error"])
        log_info(self.context, f"Analysis complete: {len(result.diagnostics)} total diagnostic(s), {errors} error(s)")
        return result

    def tokenize_source(self, text: str, filename: Optional[str] = None) -> List[Token]:
        lexer = Lexer(text, filename=filename or "<input>")
        tokens = lexer.tokenize()
        log_debug(self.context, f"Lexed {len(tokens)} token(s) from {filename or '<input>'}")
        return tokens

    def parse_source(self, text: str, filename: Optional[str] = None) -> Root:
        tokens = self.tokenize_source(text, filename)
        parser = Parser(tokens, filename=filename)
        root = parser.parse_root()
        log_debug(self.context, f"Parsed {len(root.statements)} top-level statement(s)")
        return root

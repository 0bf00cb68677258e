#  SPDX-License-Identifier: MIT OR Apache-2.0
#  Copyright (c) 2025-2026 gwz

import os
from dataclasses import dataclass
from typing import Optional

from sigh_ast import Node
from sigh_lexer import Token


DIAGNOSTIC_CODE_FAMILIES = {
    "LEX": [
        "LEX-0010",
        "LEX-0040",
        "LEX-0041",
        "LEX-0042",
        "LEX-0059",
        "LEX-0061",
        "LEX-0062",
        "LEX-0070",
    ],
    "PAR": [
        "PAR-0010",
        "PAR-0020",
        "PAR-0021",
        "PAR-0030",
        "PAR-0031",
        "PAR-0032",
        "PAR-0040",
        "PAR-0041",
        "PAR-0042",
        "PAR-0043",
        "PAR-0050",
        "PAR-0051",
        "PAR-0060",
        "PAR-0070",
        "PAR-0071",
        "PAR-0072",
        "PAR-0073",
        "PAR-0074",
        "PAR-0075",
        "PAR-0076",
        "PAR-0080",
        "PAR-0081",
        "PAR-0082",
        "PAR-0090",
        "PAR-0091",
        "PAR-0092",
        "PAR-0093",
        "PAR-0094",
        "PAR-0095",
        "PAR-0100",
        "PAR-0110",
        "PAR-0120",
        "PAR-0130",
        "PAR-0200",
        "PAR-0210",
        "PAR-0211",
        "PAR-0220",
        "PAR-0221",
        "PAR-0222",
        "PAR-0223",
        "PAR-0230",
        "PAR-0231",
        "PAR-0232",
        "PAR-0233",
        "PAR-0234",
        "PAR-0235",
        "PAR-0236",
    ],
    "DRV": [
        "DRV-0010",
    ],
    "RES": [
        "RES-0010",
        "RES-0020",
        "RES-0030",
        "RES-0031",
        "RES-0040",
        "RES-0041",
        "RES-0042",
    ],
    "TYP": [
        "TYP-0010", "TYP-0020", "TYP-0021", "TYP-0030", "TYP-0040",
        "TYP-0041", "TYP-0042", "TYP-0043", "TYP-0050", "TYP-0051",
        "TYP-0052", "TYP-0053", "TYP-0060", "TYP-0061", "TYP-0070",
        "TYP-0071", "TYP-0072", "TYP-0080", "TYP-0081", "TYP-0082",
        "TYP-0090", "TYP-0091", "TYP-0100", "TYP-0101", "TYP-0110",
        "TYP-0111", "TYP-0112", "TYP-0120", "TYP-0130",
    ],
    "SIG": [
        "SIG-0010",
        "SIG-0020",
        "SIG-0021",
        "SIG-0022",
        "SIG-0030",
        "SIG-0040",
        "SIG-0041",
    ],
    # ICE codes are internal compiler errors raised as exceptions,
    # not user-facing diagnostics; they are excluded from this registry.
    "ENG": [
        "ENG-0010",
    ],
}


@dataclass
class Diagnostic:
    kind: str  # "error" or "warning"
    message: str
    filename: Optional[str] = None  # file path

    # Primary location (start of the span)
    line: Optional[int] = None
    column: Optional[int] = None

    # Optional end of span (exclusive)
    end_line: Optional[int] = None
    end_column: Optional[int] = None

    # Return the one-line header; snippets are printed at the call site
    def format(self) -> str:
        loc = ""
        if self.filename is not None:
            loc += f"{os.path.abspath(str(self.filename))}"
        if self.line is not None:
            loc += f":{self.line}"
            if self.column is not None:
                loc += f":{self.column}"
        if loc:
            loc += ": "
        return f"{loc}{self.kind}: {self.message}"

    @property
    def code(self) -> Optional[str]:
        """The `FAM-NNNN` code prefixed to the message, if any."""
        if self.message.startswith("[") and "]" in self.message:
            return self.message[1:self.message.index("]")]
        return None


def diag_from_node(
        kind: str,
        message: str,
        *,
        filename: Optional[str],
        node: Optional[Node],
) -> Diagnostic:
    line = column = end_line = end_column = None
    if node is not None and node.span is not None:
        s = node.span
        line = s.start_line
        column = s.start_column
        end_line = s.end_line
        end_column = s.end_column
    return Diagnostic(
        kind=kind,
        message=message,
        filename=filename,
        line=line,
        column=column,
        end_line=end_line,
        end_column=end_column,
    )


def diag_from_token(
        kind: str,
        message: str,
        *,
        filename: Optional[str],
        token: Optional[Token],
) -> Diagnostic:
    line = column = end_line = end_column = None
    if token is not None:
        line = token.line
        column = token.column
        end_line = token.line
        end_column = token.column + max(len(token.text), 1)
    return Diagnostic(
        kind=kind,
        message=message,
        filename=filename,
        line=line,
        column=column,
        end_line=end_line,
        end_column=end_column,
    )

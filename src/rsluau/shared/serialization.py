"""
AST Serialization to S-Expressions
==================================

Converts the AST to a canonical S-expression form for testing and debugging
(`--emit ast`). Fields that take part in node equality are serialized;
locations only on request, so two trees parsed from differently formatted
text serialize identically.

Uses structured sexpr (nested lists + sexpdata.Symbol),
then pretty-prints for readable output.
"""

from dataclasses import fields
from enum import Enum
from typing import Any

import sexpdata

from .nodes import ASTNode, Parameter, TypeAnnotation


def _pretty_dumps(sexpr: Any, indent: int = 0, indent_str: str = "  ", max_line: int = 100) -> str:
    """
    Pretty-print structured sexpr. Keeps short forms on one line; breaks only when needed.
    """
    if isinstance(sexpr, bool):
        return "true" if sexpr else "false"
    if isinstance(sexpr, (int, float)):
        return repr(sexpr)
    # Check Symbol before str (sexpdata.Symbol subclasses str)
    if isinstance(sexpr, sexpdata.Symbol):
        return sexpr.value()
    if isinstance(sexpr, str):
        escaped = sexpr.replace("\\", "\\\\").replace('"', '\\"').replace("\n", "\\n")
        return f'"{escaped}"'
    if isinstance(sexpr, list):
        if not sexpr:
            return "()"
        parts = [_pretty_dumps(e, indent + 1, indent_str, max_line) for e in sexpr]
        one_line = "(" + " ".join(parts) + ")"
        if len(one_line) <= max_line and "\n" not in one_line:
            return one_line
        prefix = indent_str * indent
        next_prefix = indent_str * (indent + 1)
        # First element on same line as ( to avoid orphan (
        rest = "\n".join(next_prefix + p for p in parts[1:])
        inner = parts[0] + ("\n" + rest if rest else "")
        return f"({inner}\n{prefix})"
    return str(sexpr)


def serialize_ast(node: ASTNode, include_location: bool = False, pretty: bool = True) -> str:
    """
    Serialize an AST node to an S-expression string.

    Args:
        node: AST node to serialize
        include_location: Append `:loc (file line column)` to every node
        pretty: Use pretty-printed format (default True). Set False for compact single-line.
    """
    sexpr = ASTSerializer(include_location=include_location).serialize_to_sexpr(node)
    if pretty:
        return _pretty_dumps(sexpr)
    return sexpdata.dumps(sexpr)


class ASTSerializer:
    """
    AST to structured S-expression serializer.

    Each node becomes `(node-type :field value ...)` over its compared
    fields. Node-specific `_serialize_<ClassName>` methods take precedence
    over the generic field walk.
    """

    def __init__(self, include_location: bool = False):
        self.include_location = include_location

    def _sym(self, s: str) -> sexpdata.Symbol:
        """Convert string to symbol (no quotes in output)."""
        return sexpdata.Symbol(s)

    def serialize_to_sexpr(self, node: Any) -> Any:
        """Serialize any AST value to structured sexpr (list/Symbol/str/number)."""
        if node is None:
            return self._sym("nil")
        if isinstance(node, bool):
            return self._sym("true" if node else "false")
        if isinstance(node, Enum):
            return self._sym(node.value)
        if isinstance(node, list):
            return [self.serialize_to_sexpr(item) for item in node]
        if isinstance(node, (int, float, str)):
            return node

        method = getattr(self, f"_serialize_{type(node).__name__}", None)
        if method is not None:
            return method(node)
        return self._serialize_generic(node)

    def _serialize_generic(self, node: ASTNode) -> list:
        out: list = [self._sym(node.node_type.value.replace("_", "-"))]
        for f in fields(node):
            if not f.compare:
                continue
            out.append(self._sym(":" + f.name.replace("_", "-")))
            out.append(self.serialize_to_sexpr(getattr(node, f.name)))
        return self._add_location(node, out)

    def _add_location(self, node: Any, core: list) -> list:
        loc = getattr(node, "location", None)
        if self.include_location and loc is not None:
            core.extend([self._sym(":loc"), [loc.file, loc.line, loc.column]])
        return core

    def _serialize_TypeAnnotation(self, annotation: TypeAnnotation) -> list:
        return self._add_location(annotation, [self._sym("type"), annotation.name])

    def _serialize_Parameter(self, param: Parameter) -> list:
        return self._add_location(param, [
            self._sym("param"), param.name, self.serialize_to_sexpr(param.type_annotation),
        ])

"""AST-based extraction of declarations from a Python file."""

from __future__ import annotations

import ast
import copy
from pathlib import Path

from kotto.prompts.models import Declaration, DeclarationKind

INDENT = "    "


def parse_file(file_path: Path, root_path: Path) -> list[Declaration]:
    """Parse a Python file and return its class, method and function declarations."""
    rel = str(file_path.relative_to(root_path))
    try:
        source = file_path.read_text(encoding="utf-8", errors="replace")
        tree = ast.parse(source, filename=str(file_path))
    except (SyntaxError, UnicodeDecodeError):
        return []
    return parse_tree(tree, rel)


def parse_source(source: str, file_path: str = "<string>") -> list[Declaration]:
    return parse_tree(ast.parse(source, filename=file_path), file_path)


def parse_tree(tree: ast.Module, rel: str) -> list[Declaration]:
    declarations: list[Declaration] = []
    for stmt in ast.iter_child_nodes(tree):
        if isinstance(stmt, ast.ClassDef):
            _handle_class(stmt, rel, declarations)
        elif isinstance(stmt, (ast.FunctionDef, ast.AsyncFunctionDef)):
            declarations.append(
                Declaration(
                    id=stmt.name,
                    kind=DeclarationKind.FUNCTION,
                    text=render_function(stmt),
                    file_path=rel,
                    line_start=stmt.lineno,
                    docstring=ast.get_docstring(stmt) or "",
                )
            )
    return declarations


def _handle_class(stmt: ast.ClassDef, rel: str, declarations: list[Declaration]) -> None:
    declarations.append(
        Declaration(
            id=stmt.name,
            kind=DeclarationKind.CLASS,
            text=render_class(stmt),
            file_path=rel,
            line_start=stmt.lineno,
            docstring=ast.get_docstring(stmt) or "",
        )
    )
    for item in ast.iter_child_nodes(stmt):
        if isinstance(item, (ast.FunctionDef, ast.AsyncFunctionDef)):
            declarations.append(
                Declaration(
                    id=f"{stmt.name}.{item.name}",
                    kind=DeclarationKind.METHOD,
                    text=render_function(item, bound=not _is_static(item)),
                    file_path=rel,
                    line_start=item.lineno,
                    docstring=ast.get_docstring(item) or "",
                )
            )


def render_class(stmt: ast.ClassDef) -> str:
    bases = [ast.unparse(b) for b in stmt.bases]
    header = f"class {stmt.name}({', '.join(bases)}):" if bases else f"class {stmt.name}:"
    return _with_body(header, ast.get_docstring(stmt))


def render_function(func: ast.FunctionDef | ast.AsyncFunctionDef, bound: bool = False) -> str:
    """Render ``func`` as a stub: signature, docstring, ``...``.

    ``bound`` drops the first parameter (``self``/``cls``), which the model
    never passes.
    """
    args = copy.copy(func.args)
    if bound:
        if args.posonlyargs:
            args.posonlyargs = args.posonlyargs[1:]
        elif args.args:
            args.args = args.args[1:]
    ret = f" -> {ast.unparse(func.returns)}" if func.returns else ""
    prefix = "async " if isinstance(func, ast.AsyncFunctionDef) else ""
    header = f"{prefix}def {func.name}({ast.unparse(args)}){ret}:"
    return _with_body(header, ast.get_docstring(func))


def _with_body(header: str, docstring: str | None) -> str:
    lines = [header]
    if docstring:
        doc_lines = docstring.splitlines()
        if len(doc_lines) == 1:
            lines.append(f'{INDENT}"""{doc_lines[0]}"""')
        else:
            lines.append(f'{INDENT}"""{doc_lines[0]}')
            lines.extend(f"{INDENT}{line}".rstrip() for line in doc_lines[1:])
            lines.append(f'{INDENT}"""')
    lines.append(f"{INDENT}...")
    return "\n".join(lines)


def _is_static(func: ast.FunctionDef | ast.AsyncFunctionDef) -> bool:
    for decorator in func.decorator_list:
        if isinstance(decorator, ast.Name) and decorator.id == "staticmethod":
            return True
    return False

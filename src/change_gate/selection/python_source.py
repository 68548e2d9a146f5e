"""Test class detection for Python sources.

Follows pytest and unittest collection rules: classes named ``Test*`` or
deriving from a ``*TestCase`` base, with methods named ``test*``.
"""

from __future__ import annotations

import ast
import logging

from change_gate.selection.models import MethodSpan, TestClassSpan


logger = logging.getLogger(__name__)


def _base_name(node: ast.expr) -> str:
    if isinstance(node, ast.Name):
        return node.id
    if isinstance(node, ast.Attribute):
        return node.attr
    return ''


def _first_line(node: ast.ClassDef | ast.FunctionDef | ast.AsyncFunctionDef) -> int:
    return min([node.lineno, *(decorator.lineno for decorator in node.decorator_list)])


class TestClassVisitor(ast.NodeVisitor):
    """AST visitor that collects module-level test classes."""

    __test__ = False

    def __init__(self) -> None:
        self.test_classes: list[TestClassSpan] = []

    def visit_Module(self, node: ast.Module) -> None:
        """Only top-level classes are collected; nested ones lie inside them."""
        for child in node.body:
            if isinstance(child, ast.ClassDef):
                self.visit_ClassDef(child)

    def visit_ClassDef(self, node: ast.ClassDef) -> None:
        """Collect a class if it follows test naming or inheritance rules."""
        is_test = node.name.startswith('Test') or any(
            _base_name(base).endswith('TestCase') for base in node.bases
        )
        if not is_test:
            return
        methods = tuple(
            MethodSpan(child.name, _first_line(child), child.end_lineno or child.lineno)
            for child in node.body
            if isinstance(child, ast.FunctionDef | ast.AsyncFunctionDef) and child.name.startswith('test')
        )
        self.test_classes.append(
            TestClassSpan(node.name, _first_line(node), node.end_lineno or node.lineno, methods)
        )


class PythonTestClassDetector:
    """Detects pytest/unittest test classes with the ``ast`` module."""

    @property
    def name(self) -> str:
        return 'python'

    def supports(self, path: str) -> bool:
        return path.endswith('.py')

    def detect(self, source: str) -> list[TestClassSpan]:
        try:
            tree = ast.parse(source)
        except (SyntaxError, ValueError) as exc:
            logger.debug('Cannot parse Python source: %s', exc)
            return []
        visitor = TestClassVisitor()
        visitor.visit(tree)
        return visitor.test_classes

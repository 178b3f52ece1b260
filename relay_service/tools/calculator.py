import ast
import operator
import re

from pydantic import Field

from relay_service.core.logging import logger
from relay_service.tools.base import BaseTool, ToolParams

_ALLOWED_CHARS = re.compile(r"[^0-9+\-*/%().]")
_MAX_EXPONENT = 1000

_BINARY = {
    ast.Add: operator.add,
    ast.Sub: operator.sub,
    ast.Mult: operator.mul,
    ast.Div: operator.truediv,
    ast.FloorDiv: operator.floordiv,
    ast.Mod: operator.mod,
    ast.Pow: operator.pow,
}
_UNARY = {ast.UAdd: operator.pos, ast.USub: operator.neg}


def _eval(node):
    if isinstance(node, ast.Expression):
        return _eval(node.body)
    if isinstance(node, ast.Constant) and isinstance(node.value, (int, float)):
        return node.value
    if isinstance(node, ast.BinOp) and type(node.op) in _BINARY:
        left, right = _eval(node.left), _eval(node.right)
        if isinstance(node.op, ast.Pow) and abs(right) > _MAX_EXPONENT:
            raise ValueError("exponent too large")
        return _BINARY[type(node.op)](left, right)
    if isinstance(node, ast.UnaryOp) and type(node.op) in _UNARY:
        return _UNARY[type(node.op)](_eval(node.operand))
    raise ValueError(f"unsupported expression: {type(node).__name__}")


def format_number(value) -> str:
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def evaluate(expression: str):
    """Evaluate plain arithmetic; anything but digits, operators and parentheses is stripped first."""
    sanitized = _ALLOWED_CHARS.sub("", expression)
    if not sanitized:
        raise ValueError("empty expression")
    return _eval(ast.parse(sanitized, mode="eval"))


class CalculatorTool(BaseTool):
    """Useful for performing mathematical calculations"""

    class Params(ToolParams):
        expression: str = Field(..., description="The mathematical expression to evaluate")

    marker_field = "expression"

    async def run(self, params: Params) -> str:
        logger.info(f"Calculating: {params.expression}")
        try:
            return format_number(evaluate(params.expression))
        except (SyntaxError, ValueError, ZeroDivisionError, OverflowError) as e:
            logger.warning(f"calculator: cannot evaluate {params.expression!r}: {e}")
            return "Error: Invalid mathematical expression"

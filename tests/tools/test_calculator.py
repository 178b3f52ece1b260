import pytest

from relay_service.tools.calculator import CalculatorTool, evaluate, format_number


@pytest.mark.parametrize("expression, expected", [
    ("2+2", 4),
    ("(1 + 2) * 3", 9),
    ("7 / 2", 3.5),
    ("2 ** 10", 1024),
    ("-3 + 5", 2),
    ("what is 6*7?", 42),
])
def test_evaluate(expression, expected):
    assert evaluate(expression) == expected


def test_format_number():
    assert format_number(4.0) == "4"
    assert format_number(3.5) == "3.5"
    assert format_number(12) == "12"


def test_huge_exponent_is_refused():
    with pytest.raises(ValueError):
        evaluate("9**99999")


@pytest.mark.asyncio
async def test_run():
    tool = CalculatorTool()
    assert await tool.run(tool.Params(expression="10 / 4")) == "2.5"


@pytest.mark.asyncio
@pytest.mark.parametrize("expression", ["", "1/0", "2 +", "import os"])
async def test_invalid_expressions(expression):
    tool = CalculatorTool()
    assert await tool.run(tool.Params(expression=expression)) == "Error: Invalid mathematical expression"

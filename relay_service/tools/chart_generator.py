"""Mermaid chart rendering. Output is a ```mermaid block shown to the user as-is."""
import math
from typing import List, Literal, Optional, Union

from pydantic import ConfigDict, Field

from relay_service.tools.base import BaseTool, ToolParams

Row = List[Union[str, float]]


def _num(value) -> str:
    number = float(value)
    return str(int(number)) if number.is_integer() else str(number)


def _axes(labels, x_label, y_label, y_min, y_max, title) -> str:
    chart = "xychart-beta\n"
    if title:
        chart += f'title "{title}"\n'
    quoted = ",".join(f'"{label}"' for label in labels)
    chart += f'x-axis "{x_label or ""}" [{quoted}]\n'
    chart += f'y-axis "{y_label or ""}" {_num(y_min)} --> {_num(y_max)}\n'
    return chart


def line_chart(data: List[Row], title=None, x_label=None, y_label=None) -> str:
    labels = [str(row[0]) for row in data]
    values = [float(row[1]) for row in data]
    chart = _axes(labels, x_label, y_label, min(values), max(values), title)
    return chart + f"line [{','.join(_num(v) for v in values)}]\n"


def bar_chart(data: List[Row], title=None, x_label=None, y_label=None) -> str:
    labels = [str(row[0]) for row in data]
    values = [float(row[1]) for row in data]
    # 20% headroom above the tallest bar
    chart = _axes(labels, x_label, y_label, 0, math.ceil(max(values) * 1.2), title)
    return chart + f"bar [{','.join(_num(v) for v in values)}]\n"


def pie_chart(data: List[Row], title=None) -> str:
    chart = "pie\n"
    if title:
        chart += f'    title "{title}"\n'
    for label, value, *_ in data:
        chart += f'    "{label}" : {_num(value)}\n'
    return chart


def gantt_chart(data: List[Row], title=None) -> str:
    chart = "gantt\n"
    if title:
        chart += f'    title "{title}"\n'
    chart += "    dateFormat YYYY-MM-DD\n"
    for task, start, end, *_ in data:
        chart += f"    {task} : {start}, {end}\n"
    return chart


def sankey_chart(data: List[Row]) -> str:
    chart = "sankey-beta\n"
    for source, target, value, *_ in data:
        chart += f"{source},{target},{_num(value)}\n"
    return chart


class ChartGeneratorTool(BaseTool):
    """Useful for generating Mermaid charts from data"""

    class Params(ToolParams):
        type: Literal["line", "bar", "pie", "gantt", "sankey"] = Field(..., description="Type of chart to generate")
        data: List[Row] = Field(
            ...,
            min_length=1,
            description=(
                "Array of data points. For line/bar/pie: [[label, value], ...]. "
                "For gantt: [[task, start, end], ...]. For sankey: [[source, target, value], ...]"
            ),
        )
        title: Optional[str] = Field(None, description="Chart title")
        x_label: Optional[str] = Field(None, alias="xLabel", description="X-axis label")
        y_label: Optional[str] = Field(None, alias="yLabel", description="Y-axis label")

        model_config = ConfigDict(populate_by_name=True)

    verbatim = True

    async def run(self, params: Params) -> str:
        if params.type == "line":
            code = line_chart(params.data, params.title, params.x_label, params.y_label)
        elif params.type == "bar":
            code = bar_chart(params.data, params.title, params.x_label, params.y_label)
        elif params.type == "pie":
            code = pie_chart(params.data, params.title)
        elif params.type == "gantt":
            code = gantt_chart(params.data, params.title)
        else:
            code = sankey_chart(params.data)
        return f"```mermaid\n{code.strip()}\n```"

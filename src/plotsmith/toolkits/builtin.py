"""Built-in toolkit definitions."""

from __future__ import annotations

from collections.abc import Mapping
from pathlib import Path
from typing import TYPE_CHECKING, Any

from plotsmith.core.attributes import parse_bool
from plotsmith.core.formats import SaveFormat

from .base import Toolkit


if TYPE_CHECKING:
    from plotsmith.core.spec import FigureSpec


F = SaveFormat


class MatplotlibToolkit(Toolkit):
    """Matplotlib scripts saved with ``plt.savefig``."""

    def normalise_extra(self, extra: Mapping[str, str]) -> dict[str, str]:
        return {key: str(parse_bool(value)) for key, value in extra.items()}

    def template_values(self, spec: FigureSpec, figure_path: Path) -> dict[str, Any]:
        values = super().template_values(spec, figure_path)
        values["transparent"] = parse_bool(str(values.get("transparent", "False")))
        tight = parse_bool(str(values.get("tight_bbox", "False")))
        values["bbox"] = "'tight'" if tight else "None"
        return values


class PlotlyPythonToolkit(Toolkit):
    """Plotly figures found in the script globals and written to disk."""

    def capture(self, spec: FigureSpec, figure_path: Path) -> str:
        writer = (
            'write_html(r"{figure}", include_plotlyjs="cdn")'
            if spec.save_format is SaveFormat.HTML
            else 'write_image(r"{figure}")'
        )
        statements = "\n".join(
            [
                "import plotly.graph_objects as go",
                "__plotsmith_figure = next(",
                "    obj for obj in reversed(list(globals().values()))",
                "    if isinstance(obj, go.Figure)",
                ")",
                f"__plotsmith_figure.{writer}",
            ]
        )
        return f"{spec.script}\n{statements.format(figure=figure_path.as_posix())}\n"


class PlotlyRToolkit(Toolkit):
    """Plotly for R, saving the last plot as a widget or a static image."""

    def capture(self, spec: FigureSpec, figure_path: Path) -> str:
        if spec.save_format is SaveFormat.HTML:
            statement = 'htmlwidgets::saveWidget(plotly::last_plot(), "{figure}")'
        else:
            statement = 'plotly::save_image(plotly::last_plot(), "{figure}")'
        statement = statement.format(figure=figure_path.as_posix())
        return f"{spec.script}\nlibrary(plotly)\n{statement}\n"


class GnuplotToolkit(Toolkit):
    """gnuplot needs the terminal and output selected before plotting."""

    _TERMINALS = {
        SaveFormat.PNG: "pngcairo",
        SaveFormat.SVG: "svg",
        SaveFormat.EPS: "postscript eps",
        SaveFormat.GIF: "gif",
        SaveFormat.JPG: "jpeg",
        SaveFormat.PDF: "pdfcairo",
    }

    def capture(self, spec: FigureSpec, figure_path: Path) -> str:
        terminal = self._TERMINALS[spec.save_format]
        header = f"set terminal {terminal}\nset output '{figure_path.as_posix()}'"
        return f"{header}\n{spec.script}\n"


MATPLOTLIB = MatplotlibToolkit(
    tag="matplotlib",
    name="Matplotlib",
    executable="python",
    comment_prefix="#",
    script_suffix=".py",
    supported_formats=(F.PNG, F.PDF, F.SVG, F.JPG, F.EPS, F.GIF, F.TIF),
    arguments=("{executable}", "{script}"),
    capture_template=(
        "import matplotlib.pyplot as plt\n"
        'plt.savefig(r"{figure}", dpi={dpi}, transparent={transparent}, bbox_inches={bbox})'
    ),
    availability_check=("{executable}", "-c", "import matplotlib"),
    extra_attributes={"tight_bbox": "False", "transparent": "False"},
)

PLOTLY_PYTHON = PlotlyPythonToolkit(
    tag="plotly_python",
    name="Plotly/Python",
    executable="python",
    comment_prefix="#",
    script_suffix=".py",
    supported_formats=(F.PNG, F.JPG, F.WEBP, F.PDF, F.SVG, F.EPS, F.HTML),
    arguments=("{executable}", "{script}"),
    availability_check=("{executable}", "-c", "import plotly.graph_objects"),
)

PLOTLY_R = PlotlyRToolkit(
    tag="plotly_r",
    name="Plotly/R",
    executable="Rscript",
    comment_prefix="#",
    script_suffix=".r",
    supported_formats=(F.PNG, F.PDF, F.SVG, F.JPG, F.EPS, F.HTML),
    arguments=("{executable}", "{script}"),
    availability_check=("{executable}", "-e", "library(plotly)"),
)

MATLAB = Toolkit(
    tag="matlabplot",
    name="MATLAB",
    executable="matlab",
    comment_prefix="%",
    script_suffix=".m",
    supported_formats=(F.PNG, F.PDF, F.SVG, F.JPG, F.EPS, F.GIF, F.TIF),
    arguments=("{executable}", "-batch", "run('{script}')"),
    capture_template="saveas(gcf, '{figure}')",
    availability_check=("{executable}", "-h"),
)

MATHEMATICA = Toolkit(
    tag="mathplot",
    name="Mathematica",
    executable="math",
    comment_prefix="(*",
    comment_suffix="*)",
    script_suffix=".m",
    supported_formats=(F.PNG, F.PDF, F.JPG, F.EPS, F.GIF, F.TIF),
    arguments=("{executable}", "-script", "{script}"),
    capture_template='Export["{figure}", %, ImageResolution -> {dpi}]',
    availability_check=("{executable}", "-h"),
)

OCTAVE = Toolkit(
    tag="octaveplot",
    name="GNU Octave",
    executable="octave",
    comment_prefix="%",
    script_suffix=".m",
    supported_formats=(F.PNG, F.PDF, F.SVG, F.JPG, F.EPS, F.GIF, F.TIF),
    arguments=("{executable}", "--no-gui", "--no-window-system", "{script}"),
    capture_template='print("{figure}", "-r{dpi}")',
    availability_check=("{executable}", "-h"),
)

GGPLOT2 = Toolkit(
    tag="ggplot2",
    name="ggplot2",
    executable="Rscript",
    comment_prefix="#",
    script_suffix=".r",
    supported_formats=(F.PNG, F.PDF, F.SVG, F.JPG, F.EPS, F.TIF),
    arguments=("{executable}", "{script}"),
    capture_template='ggsave("{figure}", plot = last_plot(), dpi = {dpi})',
    availability_check=("{executable}", "-e", "library(ggplot2)"),
    default_preamble="library(ggplot2)",
)

GNUPLOT = GnuplotToolkit(
    tag="gnuplot",
    name="gnuplot",
    executable="gnuplot",
    comment_prefix="#",
    script_suffix=".gp",
    supported_formats=(F.PNG, F.SVG, F.EPS, F.GIF, F.JPG, F.PDF),
    arguments=("{executable}", "-c", "{script}"),
    availability_check=("{executable}", "-h"),
)

GRAPHVIZ = Toolkit(
    tag="graphviz",
    name="Graphviz",
    executable="dot",
    comment_prefix="//",
    script_suffix=".dot",
    supported_formats=(F.PNG, F.PDF, F.SVG, F.JPG, F.EPS, F.GIF, F.TIF, F.WEBP),
    arguments=("{executable}", "-T{format}", "-Gdpi={dpi}", "-o", "{figure}", "{script}"),
    availability_check=("{executable}", "-V"),
)


BUILTIN_TOOLKITS: tuple[Toolkit, ...] = (
    MATPLOTLIB,
    PLOTLY_PYTHON,
    PLOTLY_R,
    MATLAB,
    MATHEMATICA,
    OCTAVE,
    GGPLOT2,
    GNUPLOT,
    GRAPHVIZ,
)


__all__ = [
    "BUILTIN_TOOLKITS",
    "GGPLOT2",
    "GNUPLOT",
    "GRAPHVIZ",
    "MATHEMATICA",
    "MATLAB",
    "MATPLOTLIB",
    "OCTAVE",
    "PLOTLY_PYTHON",
    "PLOTLY_R",
    "GnuplotToolkit",
    "MatplotlibToolkit",
    "PlotlyPythonToolkit",
    "PlotlyRToolkit",
]

from pathlib import Path

from pydantic import ValidationError
import pytest

from plotsmith.core.config import Configuration, ToolkitSettings, load_configuration
from plotsmith.core.exceptions import ConfigurationError
from plotsmith.core.formats import SaveFormat


def test_defaults():
    configuration = load_configuration()
    assert configuration.directory == Path("plots")
    assert configuration.format is SaveFormat.PNG
    assert configuration.dpi == 80
    assert configuration.source is False
    assert configuration.workers >= 1
    assert configuration.toolkit_settings("matplotlib") == ToolkitSettings()


def test_load_yaml_with_toolkit_sections(tmp_path):
    (tmp_path / "style.py").write_text("import numpy as np\n", encoding="utf-8")
    config_file = tmp_path / ".plotsmith.yml"
    config_file.write_text(
        "\n".join(
            [
                "directory: figures",
                "format: SVG",
                "dpi: 120",
                "source: true",
                "workers: 2",
                "timeout: 30",
                "dependencies: [data.csv]",
                "matplotlib:",
                "  preamble: style.py",
                "  executable: python3",
                "  tight_bbox: true",
                "graphviz:",
                "  executable: /usr/local/bin/dot",
            ]
        ),
        encoding="utf-8",
    )

    configuration = load_configuration(config_file)

    assert configuration.directory == Path("figures")
    assert configuration.format is SaveFormat.SVG
    assert configuration.dpi == 120
    assert configuration.source is True
    assert configuration.workers == 2
    assert configuration.timeout == 30
    assert configuration.dependencies == (Path("data.csv"),)
    matplotlib = configuration.toolkit_settings("matplotlib")
    assert matplotlib.preamble == "import numpy as np\n"
    assert matplotlib.executable == "python3"
    assert matplotlib.extra == {"tight_bbox": "True"}
    assert configuration.toolkit_settings("graphviz").executable == "/usr/local/bin/dot"


def test_load_yaml_with_nested_toolkits(tmp_path):
    config_file = tmp_path / "plots.yml"
    config_file.write_text("toolkits:\n  gnuplot:\n    executable: gnuplot5\n", encoding="utf-8")
    configuration = load_configuration(config_file)
    assert configuration.toolkit_settings("gnuplot").executable == "gnuplot5"


def test_empty_file_yields_defaults(tmp_path):
    config_file = tmp_path / "empty.yml"
    config_file.write_text("", encoding="utf-8")
    assert load_configuration(config_file) == Configuration()


@pytest.mark.parametrize(
    "content",
    [
        "excel:\n  executable: excel\n",
        "toolkits:\n  excel: {}\n",
        "format: bmp\n",
        "dpi: 0\n",
        "workers: 0\n",
        "colour: blue\n",
        "- just\n- a list\n",
        "format: [unterminated\n",
        "matplotlib:\n  preamble: missing.py\n",
        "matplotlib: 3\n",
    ],
)
def test_invalid_configuration_is_rejected(tmp_path, content):
    config_file = tmp_path / "bad.yml"
    config_file.write_text(content, encoding="utf-8")
    with pytest.raises(ConfigurationError):
        load_configuration(config_file)


def test_missing_configuration_file(tmp_path):
    with pytest.raises(ConfigurationError, match="Cannot read configuration"):
        load_configuration(tmp_path / "absent.yml")


def test_undecodable_configuration_is_rejected(tmp_path):
    config_file = tmp_path / "latin1.yml"
    config_file.write_bytes(b"caption: \xe9t\xe9\n")
    with pytest.raises(ConfigurationError, match="Cannot read configuration"):
        load_configuration(config_file)


def test_undecodable_toolkit_preamble_is_rejected(tmp_path):
    (tmp_path / "style.py").write_bytes(b"\xff\xfe")
    config_file = tmp_path / "plotsmith.yml"
    config_file.write_text("matplotlib:\n  preamble: style.py\n", encoding="utf-8")
    with pytest.raises(ConfigurationError, match="Cannot read preamble"):
        load_configuration(config_file)


def test_configuration_is_immutable():
    configuration = Configuration()
    with pytest.raises(ValidationError):
        configuration.dpi = 300


def test_evolve_validates_changes():
    configuration = Configuration()
    assert configuration.evolve(workers=8, force=True).workers == 8
    assert configuration.workers == 4
    with pytest.raises(ConfigurationError):
        configuration.evolve(workers=0)


def test_unknown_toolkit_rejected_by_model():
    with pytest.raises(ValidationError, match="Unknown toolkit"):
        Configuration(toolkits={"excel": ToolkitSettings()})

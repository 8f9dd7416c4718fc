from pathlib import Path

import pytest

from plotsmith.core.config import Configuration, ToolkitSettings
from plotsmith.core.document import CodeBlock
from plotsmith.core.exceptions import SpecificationError
from plotsmith.core.formats import SaveFormat
from plotsmith.core.spec import assemble_script, build_figure_spec
from plotsmith.toolkits import registry


VERSION = "1.2.3"


def _block(content="plt.plot([1, 2, 3])", classes=("matplotlib",), attributes=(), identifier=""):
    return CodeBlock(
        identifier=identifier,
        classes=tuple(classes),
        attributes=tuple(attributes),
        content=content,
    )


def _build(block, configuration=None, emitter=None):
    configuration = configuration or Configuration()
    return build_figure_spec(block, configuration, version=VERSION, emitter=emitter)


def test_blocks_without_toolkit_class_are_ignored():
    assert _build(_block(classes=())) is None
    assert _build(_block(classes=("python", "numberLines"))) is None


def test_script_starts_with_header_comment():
    spec = _build(_block())
    assert spec.toolkit == "matplotlib"
    assert spec.script.splitlines()[0] == "# Generated by plotsmith 1.2.3"
    assert spec.script.endswith("plt.plot([1, 2, 3])")


@pytest.mark.parametrize(
    ("tag", "header"),
    [
        ("matlabplot", "% Generated by plotsmith 1.2.3"),
        ("mathplot", "(* Generated by plotsmith 1.2.3 *)"),
        ("graphviz", "// Generated by plotsmith 1.2.3"),
        ("gnuplot", "# Generated by plotsmith 1.2.3"),
    ],
)
def test_header_uses_toolkit_comment_syntax(tag, header):
    spec = _build(_block(content="body", classes=(tag,)))
    assert spec.script.splitlines()[0] == header


def test_configured_preamble_precedes_content():
    configuration = Configuration(
        toolkits={"matplotlib": ToolkitSettings(preamble="import numpy as np")}
    )
    spec = _build(_block(), configuration)
    lines = spec.script.splitlines()
    assert lines[1] == "import numpy as np"
    assert lines[-1] == "plt.plot([1, 2, 3])"


def test_ggplot2_has_default_preamble():
    spec = _build(_block(content="ggplot(mtcars) + geom_point()", classes=("ggplot2",)))
    assert "library(ggplot2)" in spec.script


def test_preamble_attribute_reads_file(tmp_path):
    preamble = tmp_path / "style.py"
    preamble.write_text("import seaborn\nseaborn.set_theme()", encoding="utf-8")
    spec = _build(_block(attributes=[("preamble", str(preamble))]))
    assert "seaborn.set_theme()" in spec.script
    assert spec.script.index("seaborn.set_theme()") < spec.script.index("plt.plot")


def test_missing_preamble_file_is_rejected(tmp_path):
    with pytest.raises(SpecificationError, match="does not exist"):
        _build(_block(attributes=[("preamble", str(tmp_path / "missing.py"))]))


def test_file_attribute_replaces_inline_content(tmp_path, emitter):
    script = tmp_path / "figure.py"
    script.write_text("plt.scatter([1], [2])", encoding="utf-8")
    spec = _build(_block(attributes=[("file", str(script))]), emitter=emitter)

    assert "plt.scatter([1], [2])" in spec.script
    assert "plt.plot([1, 2, 3])" not in spec.script
    assert len(emitter.warnings) == 1
    assert "file content will be preferred" in emitter.warnings[0]
    assert "figure_source_loaded" in emitter.event_names()


def test_file_attribute_without_inline_content_does_not_warn(tmp_path, emitter):
    script = tmp_path / "figure.py"
    script.write_text("plt.scatter([1], [2])", encoding="utf-8")
    _build(_block(content="", attributes=[("file", str(script))]), emitter=emitter)
    assert emitter.warnings == []


def test_missing_figure_file_is_rejected(tmp_path):
    with pytest.raises(SpecificationError, match="does not exist"):
        _build(_block(attributes=[("file", str(tmp_path / "nope.py"))]))


@pytest.mark.parametrize("key", ["file", "preamble"])
def test_undecodable_files_are_rejected(tmp_path, key):
    binary = tmp_path / "figure.bin"
    binary.write_bytes(b"\xff\xfe\x00invalid")
    with pytest.raises(SpecificationError, match="not valid UTF-8") as excinfo:
        _build(_block(attributes=[(key, str(binary))]))
    assert str(binary) in str(excinfo.value)


def test_attributes_override_configuration(tmp_path):
    configuration = Configuration(directory=tmp_path / "default", dpi=80)
    block = _block(
        attributes=[
            ("format", "SVG"),
            ("dpi", "150"),
            ("source", "True"),
            ("directory", str(tmp_path / "custom" / ".." / "figures")),
            ("caption", "Sales per month"),
        ]
    )
    spec = _build(block, configuration)
    assert spec.save_format is SaveFormat.SVG
    assert spec.dpi == 150
    assert spec.with_source is True
    assert spec.directory == tmp_path / "figures"
    assert spec.caption == "Sales per month"


def test_configuration_defaults_apply():
    configuration = Configuration(format="pdf", dpi=200, source=True)
    spec = _build(_block(), configuration)
    assert spec.save_format is SaveFormat.PDF
    assert spec.dpi == 200
    assert spec.with_source is True
    assert spec.directory == Path("plots")


@pytest.mark.parametrize(
    ("attribute", "value"),
    [("dpi", "zero"), ("dpi", "-1"), ("source", "perhaps"), ("format", "bmp"), ("directory", " ")],
)
def test_invalid_attribute_values_are_rejected(attribute, value):
    with pytest.raises(SpecificationError):
        _build(_block(attributes=[(attribute, value)]))


_UNSUPPORTED = [
    (toolkit.tag, fmt)
    for toolkit in registry
    for fmt in SaveFormat
    if fmt not in toolkit.supported_formats
]


@pytest.mark.parametrize(("tag", "fmt"), _UNSUPPORTED)
def test_unsupported_formats_are_rejected(tag, fmt):
    toolkit = registry.get(tag)
    with pytest.raises(SpecificationError) as excinfo:
        _build(_block(classes=(tag,), attributes=[("format", fmt.value)]))
    message = str(excinfo.value)
    assert f"'{fmt.value}'" in message
    assert toolkit.name in message


def test_dependencies_merge_configuration_and_block():
    configuration = Configuration(dependencies=(Path("shared.csv"),))
    block = _block(attributes=[("dependencies", "[local.csv, data/../more.csv]")])
    spec = _build(block, configuration)
    assert spec.dependencies == (Path("shared.csv"), Path("local.csv"), Path("more.csv"))


def test_presentation_attributes_are_carried_over():
    block = _block(
        classes=("matplotlib", "wide"),
        identifier="fig:sales",
        attributes=[("caption", "x"), ("tight_bbox", "True"), ("width", "50%")],
    )
    spec = _build(block)
    assert spec.identifier == "fig:sales"
    assert spec.classes == ("wide",)
    assert spec.attributes == (("width", "50%"),)


def test_first_registered_toolkit_wins():
    spec = _build(_block(classes=("graphviz", "matplotlib")))
    assert spec.toolkit == "matplotlib"


def test_matplotlib_extras_resolution():
    spec = _build(_block())
    assert dict(spec.extra) == {"tight_bbox": "False", "transparent": "False"}

    spec = _build(_block(attributes=[("tight_bbox", "'true'")]))
    assert dict(spec.extra)["tight_bbox"] == "True"

    configuration = Configuration(
        toolkits={"matplotlib": ToolkitSettings(extra={"transparent": "1"})}
    )
    spec = _build(_block(), configuration)
    assert dict(spec.extra)["transparent"] == "True"

    with pytest.raises(SpecificationError):
        _build(_block(attributes=[("transparent", "sometimes")]))


def test_assemble_script_skips_blank_segments():
    assert assemble_script("# header", "  ", "body") == "# header\nbody"


def test_specifications_are_hashable_values():
    spec = _build(_block(attributes=[("tight_bbox", "true")]))
    same = _build(_block(attributes=[("tight_bbox", "true")]))

    assert hash(spec) == hash(same)
    assert {spec, same} == {spec}
    assert spec.extra == (("tight_bbox", "True"), ("transparent", "False"))
    with pytest.raises(AttributeError):
        spec.extra = ()

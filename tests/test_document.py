from pathlib import Path

import pytest

from plotsmith.core.document import (
    ERROR_CLASS,
    CodeBlock,
    InvalidDocumentError,
    document_blocks,
    error_node,
    figure_node,
    iter_code_blocks,
    link_node,
    replace_code_blocks,
    text_inlines,
)


def test_code_block_view_round_trips(code_block):
    node = code_block("x = 1", "matplotlib", "wide", identifier="fig", dpi="100")
    block = CodeBlock.from_node(node)
    assert block == CodeBlock("fig", ("matplotlib", "wide"), (("dpi", "100"),), "x = 1")
    assert block.to_node() == node


@pytest.mark.parametrize(
    "node",
    [{"t": "Para", "c": []}, {"t": "CodeBlock"}, {"t": "CodeBlock", "c": ["oops"]}],
)
def test_code_block_view_rejects_other_nodes(node):
    with pytest.raises(InvalidDocumentError):
        CodeBlock.from_node(node)


def test_document_blocks_requires_block_list():
    assert document_blocks({"blocks": []}) == []
    for payload in ({}, [], {"blocks": "text"}):
        with pytest.raises(InvalidDocumentError):
            document_blocks(payload)


def test_iteration_is_depth_first_in_document_order(code_block):
    first = code_block("1", "matplotlib")
    nested = code_block("2", "graphviz")
    in_list = code_block("3", "gnuplot")
    last = code_block("4")
    blocks = [
        first,
        {"t": "BlockQuote", "c": [nested]},
        {"t": "BulletList", "c": [[in_list], [{"t": "Para", "c": []}]]},
        last,
    ]
    assert list(iter_code_blocks(blocks)) == [first, nested, in_list, last]


def test_replacement_splices_nodes_and_keeps_input(code_block):
    blocks = [
        code_block("1", "matplotlib"),
        {"t": "Div", "c": [["", [], []], [code_block("2", "graphviz")]]},
        code_block("3"),
    ]
    seen = []

    def replacement(ordinal, node):
        seen.append(ordinal)
        if ordinal == 2:
            return None
        return [{"t": "Para", "c": [{"t": "Str", "c": str(ordinal)}]}, {"t": "HorizontalRule"}]

    rebuilt = replace_code_blocks(blocks, replacement)

    assert seen == [0, 1, 2]
    assert rebuilt[0] == {"t": "Para", "c": [{"t": "Str", "c": "0"}]}
    assert rebuilt[1] == {"t": "HorizontalRule"}
    assert rebuilt[2]["c"][1] == [
        {"t": "Para", "c": [{"t": "Str", "c": "1"}]},
        {"t": "HorizontalRule"},
    ]
    assert rebuilt[3] is blocks[2]
    assert blocks[1]["c"][1][0]["t"] == "CodeBlock"


def test_text_inlines():
    assert text_inlines("A  small plot") == [
        {"t": "Str", "c": "A"},
        {"t": "Space"},
        {"t": "Str", "c": "small"},
        {"t": "Space"},
        {"t": "Str", "c": "plot"},
    ]
    assert text_inlines("") == []


def test_figure_node_structure():
    node = figure_node(
        Path("plots/abc.png"),
        caption="Sales",
        identifier="fig:sales",
        classes=("wide",),
        attributes=(("width", "50%"),),
    )
    assert node["t"] == "Figure"
    attr, caption, body = node["c"]
    assert attr == ["fig:sales", [], []]
    assert caption == [None, [{"t": "Plain", "c": [{"t": "Str", "c": "Sales"}]}]]
    image = body[0]["c"][0]
    assert image["t"] == "Image"
    assert image["c"][0] == ["", ["wide"], [["width", "50%"]]]
    assert image["c"][2] == ["plots/abc.png", ""]


def test_figure_node_without_caption():
    node = figure_node(Path("plots/abc.png"))
    assert node["c"][1] == [None, []]


def test_link_node():
    node = link_node(Path("plots/abc.py"), "Source code")
    link = node["c"][0]
    assert node["t"] == "Para"
    assert link["t"] == "Link"
    assert link["c"][2] == ["plots/abc.py", ""]


def test_error_node_keeps_original(code_block):
    original = code_block("broken", "matplotlib")
    node = error_node("exited with status 1", original)
    assert node["t"] == "Div"
    assert node["c"][0] == ["", [ERROR_CLASS], []]
    paragraph, kept = node["c"][1]
    assert kept is original
    assert paragraph["c"][0]["t"] == "Strong"

"""Tests for splicing gated oklch() entries into token mapping literals."""

import pytest

from oklchify.core import literal_transformer as lt
from oklchify.core.errors import InsertionPointNotFound


FAKE_OKLCH = {
    "#FEF2F2": "oklch(0.971 0.013 17.38)",
    "#3B82F6": "oklch(0.623 0.188 259.81)",
    "#111111": "oklch(0.178 0 0)",
    "#222222": "oklch(0.264 0 0)",
    "#333333": "oklch(0.321 0 0)",
}


@pytest.fixture
def fake_converter(monkeypatch):
    monkeypatch.setattr(lt, "hex_to_oklch", lambda value: FAKE_OKLCH.get(value))


TOKENS = (
    "export const colors = {\n"
    "\t':root': {\n"
    "\t\t'--color-red-50': '#FEF2F2',\n"
    "\t\t'--color-blue-500': '#3B82F6',\n"
    "\t},\n"
    "};\n"
)


def test_block_is_inserted_before_closing_brace(fake_converter):
    result = lt.transform_literal(TOKENS)

    assert result.output == (
        "export const colors = {\n"
        "\t':root': {\n"
        "\t\t'--color-red-50': '#FEF2F2',\n"
        "\t\t'--color-blue-500': '#3B82F6',\n"
        "\n"
        "\t\t/**\n"
        "\t\t * OKLCH (https://oklch.com/) Color Primitives\n"
        "\t\t * Used for browsers that support the oklch() function.\n"
        "\t\t */\n"
        "\t\t'@supports (color: oklch(0 0 0))': {\n"
        "\t\t\t'--color-blue-500': 'oklch(0.623 0.188 259.81)',\n"
        "\t\t\t'--color-red-50': 'oklch(0.971 0.013 17.38)',\n"
        "\t\t},\n"
        "\t},\n"
        "};\n"
    )
    assert result.changed
    assert result.colors_converted == 2


def test_entries_are_sorted_by_property(fake_converter):
    output = lt.transform_literal(TOKENS).output
    assert output.index("'--color-blue-500': 'oklch") < output.index("'--color-red-50': 'oklch")


def test_existing_gate_key_short_circuits(fake_converter):
    first = lt.transform_literal(TOKENS)
    second = lt.transform_literal(first.output)

    assert second.already_processed
    assert not second.changed
    assert second.colors_converted == 0
    assert second.output == first.output


def test_no_hex_values_is_nothing_to_do(fake_converter):
    content = "export const sizes = {\n\t'--space-1': '4px',\n};\n"
    result = lt.transform_literal(content)
    assert result.output == content
    assert not result.changed
    assert not result.already_processed


def test_non_hex_strings_are_ignored(fake_converter):
    entries = lt.scan_literal("{ 'a': '#zzz', 'b': 'red', 'c': '#3B82F6' }")
    assert list(entries) == ["c"]


def test_duplicate_keys_keep_first_position_and_last_value(fake_converter):
    content = (
        "const t = {\n"
        "\t'--a': '#111111',\n"
        "\t'--b': '#222222',\n"
        "\t'--a': '#333333',\n"
        "};\n"
    )
    entries = lt.scan_literal(content)

    assert list(entries) == ["--a", "--b"]
    assert entries["--a"].hex == "#333333"
    output = lt.transform_literal(content).output
    assert output.count("'--a': 'oklch") == 1
    assert "'--a': 'oklch(0.321 0 0)'," in output


def test_conversion_failures_are_reported(fake_converter):
    content = "const t = {\n\t'--a': '#111111',\n\t'--odd': '#abcdef',\n};\n"
    result = lt.transform_literal(content)
    assert result.failures == ["--odd: #abcdef"]
    assert [e.prop for e in result.entries] == ["--a"]


def test_missing_anchor_raises(fake_converter, monkeypatch):
    monkeypatch.setattr(lt, "find_insertion_offset", lambda content, anchor: -1)
    with pytest.raises(InsertionPointNotFound) as exc:
        lt.transform_literal(TOKENS)
    assert "#3B82F6" in str(exc.value)


def test_find_insertion_offset_without_closing_brace():
    content = "const a = { 'x': '#fff' }"
    assert lt.find_insertion_offset(content, "#fff") == len(content)
    assert lt.find_insertion_offset(content, "#000") == -1


def test_compose_block_uses_given_indent():
    entries = [lt.LiteralEntry("--b", "#222", "oklch(2)"), lt.LiteralEntry("--a", "#111", "oklch(1)")]
    block = lt.compose_block(entries, "  ")
    assert block.splitlines() == [
        "",
        "  /**",
        "   * OKLCH (https://oklch.com/) Color Primitives",
        "   * Used for browsers that support the oklch() function.",
        "   */",
        "  '@supports (color: oklch(0 0 0))': {",
        "  \t'--a': 'oklch(1)',",
        "  \t'--b': 'oklch(2)',",
        "  },",
    ]


THEME_HEADER = (
    "// Sample TypeScript file with hex color values (like Undercurrent theme file)\n"
    "\n"
    "const styleOverrides = {\n"
    "\t':root': {\n"
    "\t\t// Colors - Fallback hex values\n"
    "\t\t'--color-red-50': '#FEF2F2',\n"
    "\t\t'--color-red-100': '#FEE2E2',\n"
    "\t\t'--color-red-500': '#EF4444',\n"
    "\t\t'--color-blue-50': '#EFF6FF',\n"
    "\t\t'--color-blue-100': '#DBEAFE',\n"
    "\t\t'--color-blue-500': '#3B82F6',\n"
    "\t\t'--color-gray-50': '#FAFAFA',\n"
    "\t\t'--color-gray-100': '#F5F5F5',\n"
    "\t\t'--color-gray-900': '#171717',\n"
)

THEME_GATE = (
    "\n"
    "\t\t/**\n"
    "\t\t * OKLCH (https://oklch.com/) Color Primitives\n"
    "\t\t * Used for browsers that support the oklch() function.\n"
    "\t\t */\n"
    "\t\t'@supports (color: oklch(0 0 0))': {\n"
    "\t\t\t'--color-blue-100': 'oklch(0.932 0.032 255.59)',\n"
    "\t\t\t'--color-blue-50': 'oklch(0.97 0.014 254.6)',\n"
    "\t\t\t'--color-blue-500': 'oklch(0.623 0.188 259.81)',\n"
    "\t\t\t'--color-gray-100': 'oklch(0.97 0 0)',\n"
    "\t\t\t'--color-gray-50': 'oklch(0.985 0 0)',\n"
    "\t\t\t'--color-gray-900': 'oklch(0.205 0 0)',\n"
    "\t\t\t'--color-red-100': 'oklch(0.936 0.031 17.72)',\n"
    "\t\t\t'--color-red-50': 'oklch(0.971 0.013 17.38)',\n"
    "\t\t\t'--color-red-500': 'oklch(0.637 0.208 25.33)',\n"
    "\t\t},\n"
)

THEME_FOOTER = (
    "\t},\n"
    "\tbody: {\n"
    "\t\tmargin: 0,\n"
    "\t\tpadding: 0,\n"
    "\t},\n"
    "};\n"
    "\n"
    "export default styleOverrides;\n"
)


def test_theme_file_is_rebuilt_exactly():
    result = lt.transform_literal(THEME_HEADER + THEME_FOOTER)
    assert result.output == THEME_HEADER + THEME_GATE + THEME_FOOTER


def test_crlf_tokens_keep_crlf(fake_converter):
    content = TOKENS.replace("\n", "\r\n")

    output = lt.transform_literal(content).output

    assert output == lt.transform_literal(TOKENS).output.replace("\n", "\r\n")
    assert "\n" not in output.replace("\r\n", "")

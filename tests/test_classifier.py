"""
Tests for block classification.
"""

from unittest.mock import patch

import pytest

from autorefactor.analysis.classifier import (
    classify_block,
    classify_blocks,
    find_default_export,
    has_default_export,
)
from autorefactor.analysis.lexer import DelimiterMode, tokenize_lines
from autorefactor.analysis.models import Category, SourceBuffer, WarningKind
from autorefactor.analysis.patterns import CompiledPatterns
from autorefactor.analysis.scanner import scan_blocks
from autorefactor.config import ClassificationPatterns


@pytest.fixture
def patterns():
    return CompiledPatterns(ClassificationPatterns())


def first_body_block(text):
    result = scan_blocks(SourceBuffer.from_text(text))
    return result.body_blocks[0]


def classify(text, patterns, default_export=None):
    return classify_block(first_body_block(text), default_export, patterns)


class TestClassifyBlock:
    """Rules are applied top-down, first match wins."""

    def test_interface_is_types(self, patterns):
        assert classify("interface Foo { a: string }", patterns) is Category.TYPES

    def test_enum_is_types(self, patterns):
        assert classify("export enum Color {\n  Red,\n  Blue,\n}", patterns) is Category.TYPES

    def test_plain_constant(self, patterns):
        assert classify("const X = 5;", patterns) is Category.CONSTANTS

    def test_object_constant(self, patterns):
        text = "export const ROUTES = {\n  home: '/',\n};"
        assert classify(text, patterns) is Category.CONSTANTS

    def test_helper_function_is_utilities(self, patterns):
        text = "function formatDate(d: Date) {\n  return d.toISOString();\n}"
        assert classify(text, patterns) is Category.UTILITIES

    def test_arrow_helper_is_utilities(self, patterns):
        assert classify("const double = (n: number) => n * 2;", patterns) is Category.UTILITIES

    def test_component_is_sub_component(self, patterns):
        text = "function UserCard() {\n  return <div />;\n}"
        assert classify(text, patterns) is Category.SUB_COMPONENTS

    def test_explicit_export_function_is_main(self, patterns):
        text = "export function UserCard() {\n  return <div />;\n}"
        assert classify(text, patterns) is Category.MAIN

    def test_default_export_function_is_main(self, patterns):
        text = "export default function Main() { return null; }"
        assert classify(text, patterns) is Category.MAIN

    def test_role_suffix_is_main(self, patterns):
        text = "function SettingsScreen() { return null; }"
        assert classify(text, patterns) is Category.MAIN

    def test_default_export_name_makes_main(self, patterns):
        text = "const Dashboard = () => {\n  return null;\n};"
        assert classify(text, patterns, default_export="Dashboard") is Category.MAIN
        assert classify(text, patterns) is Category.SUB_COMPONENTS

    def test_type_annotation_marks_component(self, patterns):
        text = "const renderRow: FC<RowProps> = ({ row }) => <tr />;"
        assert classify(text, patterns) is Category.SUB_COMPONENTS

    def test_wrapper_marks_component(self, patterns):
        text = "const themed = observer(() => {\n  return <span />;\n});"
        assert classify(text, patterns) is Category.SUB_COMPONENTS

    def test_class_component(self, patterns):
        text = "class Counter extends Component {\n  render() {\n    return null;\n  }\n}"
        assert classify(text, patterns) is Category.SUB_COMPONENTS

    def test_markup_constant_follows_component_rules(self, patterns):
        text = "const Header = <header>Title</header>;"
        assert classify(text, patterns) is Category.SUB_COMPONENTS

    def test_markup_inside_string_stays_constant(self, patterns):
        assert classify("const TEMPLATE = '<br/>';", patterns) is Category.CONSTANTS
        assert classify("const ROW = `<td>${cell}</td>`;", patterns) is Category.CONSTANTS

    def test_anonymous_default_component_is_main(self, patterns):
        assert classify("export default () => <div/>;", patterns) is Category.MAIN
        assert classify("export default function () {\n  return <main />;\n}", patterns) is Category.MAIN

    def test_anonymous_default_without_markup_is_utilities(self, patterns):
        assert classify("export default () => null;", patterns) is Category.UTILITIES

    def test_default_export_statement_is_main(self, patterns):
        assert classify("export default App;", patterns) is Category.MAIN

    def test_default_export_list_is_main(self, patterns):
        assert classify("export { Page as default };", patterns) is Category.MAIN

    def test_unrecognised_statement_is_other(self, patterns):
        assert classify("console.log('ready');", patterns) is Category.OTHER

    def test_classification_is_deterministic(self, patterns):
        block = first_body_block("const Avatar = () => <img />;")
        first = classify_block(block, None, patterns)
        classify_block(first_body_block("const X = 1;"), None, patterns)
        assert classify_block(block, None, patterns) is first

    def test_custom_role_suffixes(self):
        custom = CompiledPatterns(ClassificationPatterns(main_role_suffixes=["Widget"]))
        text = "function ClockWidget() { return null; }"
        assert classify(text, custom) is Category.MAIN


class TestClassifyBlocks:
    """Tests for classify_blocks."""

    def test_imports_are_skipped(self, patterns, profile_page_source):
        blocks = scan_blocks(SourceBuffer.from_text(profile_page_source)).blocks
        classified, warnings = classify_blocks(blocks, "ProfilePage", patterns)
        assert [(b.name, c) for b, c in classified] == [
            ("PageProps", Category.TYPES),
            ("Mode", Category.TYPES),
            ("MAX_ITEMS", Category.CONSTANTS),
            ("LABELS", Category.CONSTANTS),
            ("formatName", Category.UTILITIES),
            ("Avatar", Category.SUB_COMPONENTS),
            ("ProfilePage", Category.MAIN),
        ]
        assert warnings == []

    def test_other_blocks_are_reported(self, patterns):
        blocks = scan_blocks(SourceBuffer.from_text("const a = 1;\nsetup(a);\n")).blocks
        classified, warnings = classify_blocks(blocks, None, patterns)
        assert [c for _, c in classified] == [Category.CONSTANTS, Category.OTHER]
        assert len(warnings) == 1
        assert warnings[0].kind is WarningKind.CLASSIFICATION_MISS
        assert warnings[0].line == 2

    def test_delimiter_mode_reaches_tokenizer(self, patterns):
        blocks = scan_blocks(SourceBuffer.from_text("const a = 1;\nfunction b() {}\n")).blocks
        with patch("autorefactor.analysis.classifier.tokenize_lines", wraps=tokenize_lines) as spy:
            classify_blocks(blocks, None, patterns, DelimiterMode.RAW)
        assert spy.call_count == 2
        assert all(call.args[1] is DelimiterMode.RAW for call in spy.call_args_list)


class TestDefaultExport:
    """Tests for find_default_export and has_default_export."""

    def test_default_function(self):
        assert find_default_export("export default function Foo() {}") == "Foo"

    def test_default_identifier(self):
        assert find_default_export("const A = 1;\nexport default A;") == "A"

    def test_default_specifier(self):
        assert find_default_export("export { Page as default };") == "Page"

    def test_wrapped_default(self, patterns):
        assert find_default_export("export default memo(Card);", patterns) == "Card"

    def test_anonymous_default(self):
        text = "export default () => null;"
        assert find_default_export(text) is None
        assert has_default_export(text)

    def test_no_default(self):
        assert find_default_export("export const a = 1;") is None
        assert not has_default_export("export const a = 1;")

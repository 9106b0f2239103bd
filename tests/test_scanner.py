"""
Tests for the balanced-block scanner.
"""

from autorefactor.analysis.lexer import DelimiterMode, tokenize_lines
from autorefactor.analysis.models import BlockKind, SourceBuffer, WarningKind
from autorefactor.analysis.scanner import scan_blocks
from autorefactor.config import AutoRefactorConfig


def scan(text, mode=DelimiterMode.LITERAL_AWARE):
    config = AutoRefactorConfig.default()
    config.split_settings.delimiter_mode = mode
    return scan_blocks(SourceBuffer.from_text(text), config)


def assert_partition(text, result):
    """Blocks do not overlap and cover every code line exactly once."""
    lines = SourceBuffer.from_text(text).lines
    code_lines = {
        i for i, tok in enumerate(tokenize_lines(lines)) if not tok.is_blank_code
    }
    covered = []
    previous_end = 0
    for block in result.blocks:
        assert block.start >= previous_end, f"{block} overlaps the block before it"
        assert block.start < block.end
        covered.extend(range(block.start, block.end))
        previous_end = block.end
    assert len(covered) == len(set(covered))
    assert code_lines <= set(covered)


class TestPartition:
    """Blocks partition the code lines of a file."""

    def test_profile_page_partition(self, profile_page_source):
        result = scan(profile_page_source)
        assert_partition(profile_page_source, result)
        assert result.warnings == []

    def test_profile_page_blocks(self, profile_page_source):
        result = scan(profile_page_source)
        summary = [(b.kind, b.name) for b in result.blocks]
        assert summary == [
            (BlockKind.IMPORT, None),
            (BlockKind.IMPORT, None),
            (BlockKind.TYPEDEF, "PageProps"),
            (BlockKind.TYPEDEF, "Mode"),
            (BlockKind.CONSTANT, "MAX_ITEMS"),
            (BlockKind.CONSTANT, "LABELS"),
            (BlockKind.FUNCTION, "formatName"),
            (BlockKind.COMPONENT, "Avatar"),
            (BlockKind.COMPONENT, "ProfilePage"),
        ]

    def test_comments_and_blank_lines_belong_to_no_block(self, profile_page_source):
        result = scan(profile_page_source)
        comment_line = profile_page_source.split("\n").index("// Settings for the page")
        assert all(not (b.start <= comment_line < b.end) for b in result.blocks)

    def test_import_and_body_blocks(self, profile_page_source):
        result = scan(profile_page_source)
        assert len(result.import_blocks) == 2
        assert len(result.body_blocks) == 7

    def test_empty_file(self):
        result = scan("")
        assert result.blocks == []
        assert result.warnings == []


class TestClosingRules:
    """Closing conditions for the different declaration kinds."""

    def test_semicolon_free_statements(self):
        text = "const a = 1\nconst b = a\n  + 2\nexport const c = [\n  1,\n  2,\n]\n"
        result = scan(text)
        assert [(b.start, b.end) for b in result.blocks] == [(0, 1), (1, 3), (3, 7)]
        assert_partition(text, result)

    def test_multiline_import(self):
        text = "import {\n  a,\n  b,\n} from './x'\nconst c = a + b\n"
        result = scan(text)
        assert [(b.kind, b.start, b.end) for b in result.blocks] == [
            (BlockKind.IMPORT, 0, 4),
            (BlockKind.CONSTANT, 4, 5),
        ]

    def test_arrow_without_braces(self):
        text = "const double = (n: number) =>\n  n * 2\nconst next = 1;\n"
        result = scan(text)
        assert [(b.kind, b.start, b.end) for b in result.blocks] == [
            (BlockKind.FUNCTION, 0, 2),
            (BlockKind.CONSTANT, 2, 3),
        ]

    def test_interface_with_brace_on_next_line(self):
        text = "interface Props\n{\n  a: string;\n}\n"
        result = scan(text)
        assert len(result.blocks) == 1
        assert result.blocks[0].kind is BlockKind.TYPEDEF
        assert result.blocks[0].end == 4

    def test_overload_signature_closes_immediately(self):
        text = (
            "export function pick(a: string): string;\n"
            "export function pick(a: any) {\n"
            "  return a;\n"
            "}\n"
        )
        result = scan(text)
        assert [(b.start, b.end) for b in result.blocks] == [(0, 1), (1, 4)]

    def test_multiline_type_alias(self):
        text = "type Status =\n  | 'idle'\n  | 'busy';\nconst s: Status = 'idle';\n"
        result = scan(text)
        assert [(b.kind, b.start, b.end) for b in result.blocks] == [
            (BlockKind.TYPEDEF, 0, 3),
            (BlockKind.CONSTANT, 3, 4),
        ]

    def test_template_literal_spanning_lines(self):
        text = "const query = `\n  select *\n\n  from users\n`;\nconst limit = 5;\n"
        result = scan(text)
        assert [(b.start, b.end) for b in result.blocks] == [(0, 5), (5, 6)]

    def test_class_extends_component_is_component(self):
        text = (
            "class Counter extends React.Component<Props> {\n"
            "  render() {\n"
            "    return <div />;\n"
            "  }\n"
            "}\n"
        )
        result = scan(text)
        assert len(result.blocks) == 1
        assert result.blocks[0].kind is BlockKind.COMPONENT
        assert result.blocks[0].name == "Counter"

    def test_plain_class_is_function_kind(self):
        result = scan("class Store {\n  items = [];\n}\n")
        assert result.blocks[0].kind is BlockKind.FUNCTION

    def test_destructured_constant_names(self):
        result = scan("const { a, b: renamed } = source;\n")
        assert result.blocks[0].names == ("a", "renamed")

    def test_export_list_with_source_is_import(self):
        result = scan("export { a, b } from './x';\nexport { c };\n")
        assert [b.kind for b in result.blocks] == [BlockKind.IMPORT, BlockKind.STATEMENT]

    def test_dynamic_import_is_not_an_import_block(self):
        result = scan("import('./lazy').then(load);\n")
        assert result.blocks[0].kind is BlockKind.STATEMENT


class TestScanWarnings:
    """Recoverable scan problems become warnings, never exceptions."""

    def test_unterminated_block_runs_to_end_of_file(self):
        text = "const x = 1;\nfunction broken() {\n  return 1;\n"
        result = scan(text)
        last = result.blocks[-1]
        assert last.unterminated
        assert (last.start, last.end) == (1, 3)
        assert [w.kind for w in result.warnings] == [WarningKind.UNTERMINATED_BLOCK]
        assert result.warnings[0].line == 2

    def test_unbalanced_closer_closes_block(self):
        text = "const a = 1;\n}\nconst b = 2;\n"
        result = scan(text)
        assert [(b.start, b.end) for b in result.blocks] == [(0, 1), (1, 2), (2, 3)]
        assert [w.kind for w in result.warnings] == [WarningKind.UNBALANCED_CLOSER]
        assert result.warnings[0].line == 2


class TestDelimiterModes:
    """Raw mode reproduces plain brace counting."""

    def test_literal_aware_ignores_string_brace(self):
        result = scan('const s = "{";\nconst t = 1;\n')
        assert len(result.blocks) == 2
        assert result.warnings == []

    def test_raw_mode_miscounts_string_brace(self):
        result = scan('const s = "{";\nconst t = 1;\n', DelimiterMode.RAW)
        assert len(result.blocks) == 1
        assert result.blocks[0].unterminated
        assert result.warnings[0].kind is WarningKind.UNTERMINATED_BLOCK

"""Tests for the Markdown/MDX document parser."""

from pathlib import Path

import pytest

from tests.conftest import EXAMPLE_DOC, SAMPLE_MDX
from translate_mdx_ai.errors import ParseError
from translate_mdx_ai.parsing import DocumentParser, SectionKind, parse_document
from translate_mdx_ai.parsing.parser import ComponentScanner, parse_frontmatter


def kinds(text: str) -> list[SectionKind]:
    return [s.kind for s in parse_document("doc.mdx", text).sections]


def texts(text: str) -> list[str]:
    return [s.text for s in parse_document("doc.mdx", text).sections]


class TestFrontmatter:
    """Tests for front-matter detection."""

    def test_example_document(self) -> None:
        """Front matter plus one heading section with its body."""
        doc = parse_document("doc.mdx", EXAMPLE_DOC)

        assert [s.kind for s in doc.sections] == [SectionKind.FRONTMATTER, SectionKind.HEADING]
        assert doc.frontmatter == {"title": "X"}
        assert doc.sections[0].text == "---\ntitle: X\n---"
        assert doc.sections[1].text == "# Hello\nworld"
        assert doc.sections[1].title == "Hello"
        assert doc.sections[1].heading_level == 1

    def test_no_frontmatter(self) -> None:
        """Documents without front matter skip detection."""
        doc = parse_document("doc.md", "Just text\n")
        assert doc.frontmatter is None
        assert kinds("Just text\n") == [SectionKind.CONTENT]

    def test_unclosed_frontmatter_is_content(self) -> None:
        """A lone opening delimiter is plain content."""
        doc = parse_document("doc.md", "---\ntitle: X\n\nBody\n")
        assert doc.frontmatter is None
        assert doc.sections[0].kind == SectionKind.CONTENT

    @pytest.mark.parametrize(
        "text",
        [
            "\n---\ntitle: t\n---\ntext\n",
            "  \n\n---\ntitle: t\n---\ntext\n",
            "\ufeff---\ntitle: t\n---\ntext\n",
        ],
    )
    def test_leading_blank_lines_and_bom(self, text: str) -> None:
        """Front matter is found after leading blank lines or a byte-order mark."""
        doc = parse_document("doc.mdx", text)

        assert kinds(text) == [SectionKind.FRONTMATTER, SectionKind.CONTENT]
        assert doc.frontmatter == {"title": "t"}
        assert doc.sections[0].text == "---\ntitle: t\n---"
        assert doc.sections[0].start_line == text.lstrip("\ufeff").split("\n").index("---")

    def test_quotes_stripped_and_unknown_lines_ignored(self) -> None:
        """Payload is parsed with simple key/value matching."""
        result = parse_frontmatter(
            ['title: "Hello: World"', "description: 'short'", "  - list item", "icon: Rocket"]
        )
        assert result == {"title": "Hello: World", "description": "short", "icon": "Rocket"}

    def test_block_scalar_values(self) -> None:
        """Folded values join into one line; literal values keep their lines."""
        lines = [
            "title: |",
            "  第一行",
            "  第二行",
            "description: >-",
            "  很长的描述",
            "  第二行",
            "icon: X",
        ]
        assert parse_frontmatter(lines) == {
            "title": "第一行\n第二行",
            "description": "很长的描述 第二行",
            "icon": "X",
        }

    def test_frontmatter_is_translatable(self) -> None:
        """Front matter is sent to the translator (selected keys only)."""
        doc = parse_document("doc.mdx", EXAMPLE_DOC)
        assert doc.sections[0].translatable is True


class TestImports:
    """Tests for import blocks."""

    def test_import_run_with_comments(self) -> None:
        """Consecutive imports, blank and comment lines form one section."""
        text = (
            "import { Callout } from 'fumadocs-ui/components/callout';\n"
            "// tabs\n"
            "\n"
            'import { Tab, Tabs } from "fumadocs-ui/components/tabs";\n'
            "\n"
            "Some text\n"
        )
        doc = parse_document("doc.mdx", text)

        assert [s.kind for s in doc.sections] == [SectionKind.IMPORT, SectionKind.CONTENT]
        assert doc.sections[0].end_line == 3
        assert doc.sections[0].translatable is False
        assert doc.sections[1].text == "Some text"

    def test_multiline_import(self) -> None:
        """A braced import spanning lines is followed to its end."""
        text = "import {\n  Card,\n  Cards,\n} from 'fumadocs-ui/components/card';\n\nText\n"
        doc = parse_document("doc.mdx", text)

        assert doc.sections[0].kind == SectionKind.IMPORT
        assert doc.sections[0].start_line == 0
        assert doc.sections[0].end_line == 3

    def test_import_section_ends_at_last_import(self) -> None:
        """Trailing blank lines are not part of the import section."""
        doc = parse_document("doc.mdx", "import X from 'x';\n\n\nBody\n")
        assert doc.sections[0].text == "import X from 'x';"

    def test_word_import_in_prose_is_content(self) -> None:
        """Prose starting with the word import is not an import."""
        assert kinds("import the data first.\n") == [SectionKind.CONTENT]


class TestCodeBlocks:
    """Tests for fenced code blocks."""

    def test_code_block(self) -> None:
        """Fenced region is one non-translatable section."""
        doc = parse_document("doc.md", "```bash\npnpm install\n```\n")
        assert doc.sections[0].kind == SectionKind.CODEBLOCK
        assert doc.sections[0].text == "```bash\npnpm install\n```"
        assert doc.sections[0].translatable is False

    def test_heading_like_line_inside_fence(self) -> None:
        """Lines inside a fence are never triggers."""
        assert kinds("```md\n# not a heading\n```\n") == [SectionKind.CODEBLOCK]

    def test_unterminated_fence_runs_to_end(self) -> None:
        """An unclosed fence ends at the end of the document."""
        doc = parse_document("doc.md", "```js\nconst a = 1\nconst b = 2\n")
        assert len(doc.sections) == 1
        assert doc.sections[0].end_line == 2


class TestComponents:
    """Tests for embedded component blocks."""

    def test_component_block(self) -> None:
        """Opening to matching closing tag is one translatable section."""
        doc = parse_document("doc.mdx", '<Callout type="info">\nText\n</Callout>\n')
        assert kinds('<Callout type="info">\nText\n</Callout>\n') == [SectionKind.COMPONENT]
        assert doc.sections[0].translatable is True

    def test_self_closing_same_line(self) -> None:
        """A same-line self-closing tag closes immediately."""
        assert texts("<Cards />\nAfter text\n") == ["<Cards />", "After text"]
        assert texts("<Foo/>\nMore\n") == ["<Foo/>", "More"]

    def test_nested_same_name(self) -> None:
        """Depth tracking handles nesting of the same tag."""
        text = "<Tabs>\n<Tabs>\ninner\n</Tabs>\n</Tabs>\ntext\n"
        doc = parse_document("doc.mdx", text)
        assert doc.sections[0].end_line == 4
        assert doc.sections[1].text == "text"

    def test_multiline_self_closing_with_gt_in_attribute(self) -> None:
        """Quoted attribute values may contain '>'."""
        text = '<Card\n  title="a > b"\n  href="/docs"\n/>\nNext\n'
        assert texts(text) == ['<Card\n  title="a > b"\n  href="/docs"\n/>', "Next"]

    def test_expression_attribute(self) -> None:
        """'>' inside a {...} expression does not end the tag."""
        text = '<Tab value={x > 1 ? "a" : "b"}>\nbody\n</Tab>\n'
        assert kinds(text) == [SectionKind.COMPONENT]

    def test_lowercase_html_is_content(self) -> None:
        """Only capitalised tags start component blocks."""
        assert kinds("<div>\nhello\n</div>\n") == [SectionKind.CONTENT]

    def test_scanner_counts_only_its_tag(self) -> None:
        """Other tags do not affect the depth."""
        scanner = ComponentScanner("Steps")
        assert scanner.feed("<Steps>") is False
        assert scanner.feed("<Step>one</Step>") is False
        assert scanner.feed("</Steps>") is True


class TestHeadings:
    """Tests for heading sections."""

    def test_absorbs_deeper_headings(self) -> None:
        """A heading runs until the next heading of equal or shallower depth."""
        text = "# A\ntext\n## B\nmore\n# C\nend\n"
        doc = parse_document("doc.md", text)

        assert [s.title for s in doc.sections] == ["A", "C"]
        assert doc.sections[0].text == "# A\ntext\n## B\nmore"

    def test_shallower_heading_ends_section(self) -> None:
        """A level-1 heading ends a level-2 section."""
        assert texts("## A\nx\n# B\ny\n") == ["## A\nx", "# B\ny"]

    def test_fence_aware(self) -> None:
        """Heading-like lines inside code do not end the section."""
        text = "## Setup\n```bash\n# install\n```\nDone\n## Next\nx\n"
        assert texts(text) == ["## Setup\n```bash\n# install\n```\nDone", "## Next\nx"]

    def test_trailing_blank_lines_trimmed(self) -> None:
        """Blank lines before the next heading are dropped."""
        assert texts("# A\ntext\n\n\n# B\n") == ["# A\ntext", "# B"]

    def test_heading_without_body(self) -> None:
        """A bare heading is a valid single-line section."""
        doc = parse_document("doc.md", "# Only\n")
        assert doc.sections[0].text == "# Only"
        assert doc.sections[0].start_line == doc.sections[0].end_line == 0

    def test_closing_hashes_removed_from_title(self) -> None:
        """Closing hashes are not part of the title."""
        doc = parse_document("doc.md", "## Title ##\n")
        assert doc.sections[0].title == "Title"
        assert doc.sections[0].heading_level == 2

    def test_hash_without_space_is_content(self) -> None:
        """'#tag' is not a heading."""
        assert kinds("#tag text\n") == [SectionKind.CONTENT]


class TestContent:
    """Tests for plain content and document-level behaviour."""

    def test_content_stops_at_trigger(self) -> None:
        """Plain content ends before a component block."""
        text = "para one\nline two\n<Callout>\nx\n</Callout>\n"
        assert kinds(text) == [SectionKind.CONTENT, SectionKind.COMPONENT]
        assert texts(text)[0] == "para one\nline two"

    def test_content_keeps_inner_blank_lines(self) -> None:
        """Paragraphs of one content run stay together."""
        assert texts("one\n\ntwo\n") == ["one\n\ntwo"]

    def test_sequential_ids(self) -> None:
        """Ids follow document order."""
        doc = parse_document("doc.mdx", SAMPLE_MDX)
        assert doc.section_ids == [f"section-{i}" for i in range(len(doc.sections))]

    def test_sample_document_kinds(self) -> None:
        """A realistic page produces every section kind."""
        assert kinds(SAMPLE_MDX) == [
            SectionKind.FRONTMATTER,
            SectionKind.IMPORT,
            SectionKind.CONTENT,
            SectionKind.CODEBLOCK,
            SectionKind.COMPONENT,
            SectionKind.HEADING,
        ]

    def test_segmentation_completeness(self) -> None:
        """Section texts joined by one blank line reproduce the document."""
        doc = parse_document("doc.mdx", SAMPLE_MDX)
        assert "\n\n".join(s.text for s in doc.sections) + "\n" == SAMPLE_MDX

    def test_crlf_normalised(self) -> None:
        """Windows line endings are parsed like LF."""
        assert texts("# A\r\nb\r\n") == ["# A\nb"]

    def test_empty_document(self) -> None:
        """Empty input has no sections."""
        doc = parse_document("doc.md", "")
        assert doc.sections == ()
        assert doc.frontmatter is None

    def test_content_hash_of_raw_text(self) -> None:
        """Document hash changes with the text."""
        assert parse_document("a.md", "x\n").content_hash != parse_document("a.md", "y\n").content_hash

    def test_title_fallbacks(self) -> None:
        """Title comes from front matter, then first heading, then file name."""
        assert parse_document("doc.mdx", EXAMPLE_DOC).title == "X"
        assert parse_document("doc.mdx", "# Hello\n").title == "Hello"
        assert parse_document(Path("guides/setup.mdx"), "text\n").title == "setup"

    def test_outline(self) -> None:
        """Outline lists heading titles indented by level."""
        doc = parse_document("doc.md", "# A\n## B\n# C\n")
        # B is absorbed into A's section; only section headings are listed
        assert doc.outline == ["A", "C"]

    def test_section_lookup(self) -> None:
        """Sections are found by id."""
        doc = parse_document("doc.mdx", EXAMPLE_DOC)
        assert doc.section("section-1").kind == SectionKind.HEADING
        with pytest.raises(KeyError):
            doc.section("section-9")


class TestParseErrors:
    """Tests for the scan safety net."""

    def test_non_advancing_scan_raises(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """A scanner that moves backwards aborts with the line position."""
        parser = DocumentParser()
        monkeypatch.setattr(parser, "_scan_content", lambda lines, start: start - 1)

        with pytest.raises(ParseError) as exc_info:
            parser.parse("broken.md", "\n\ntext\n")

        assert exc_info.value.line == 2
        assert str(exc_info.value).startswith("broken.md:3:")

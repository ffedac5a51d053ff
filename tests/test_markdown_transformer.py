"""Tests for the MarkdownTransformer and its Python-Markdown extensions."""

from pathlib import Path

import pytest
from lxml import etree

from md_to_epub.exceptions import InputNotFoundError, ParseError
from md_to_epub.transformers import MarkdownTransformer, extract_title
from md_to_epub.transformers.extensions import RenderContext


def _parse_fragment(content_html: str) -> etree._Element:
    """Parse an XHTML body fragment by wrapping it in a single root."""
    return etree.fromstring(f"<div>{content_html}</div>".encode("utf-8"))


@pytest.fixture
def transformer():
    return MarkdownTransformer()


class TestExtractTitle:
    """Tests for extract_title()."""

    def test_first_top_level_heading(self):
        """The first '# ' heading is the title."""
        assert extract_title("Intro\n\n# First\n\n# Second") == "First"

    def test_ignores_lower_level_headings(self):
        """'## ' headings are not titles."""
        assert extract_title("## Sub\n\ntext") is None

    def test_trailing_whitespace_trimmed(self):
        """Trailing whitespace is removed from the title."""
        assert extract_title("#   Spaced Title   \n") == "Spaced Title"

    def test_no_heading(self):
        """A document without a heading has no title."""
        assert extract_title("Just a paragraph.") is None


class TestMarkdownRendering:
    """Tests for the rendered XHTML fragment."""

    def test_basic_markdown(self, transformer, tmp_path):
        """Headings, emphasis and paragraphs render as XHTML."""
        document = transformer.build("# Title\n\nSome *emphasis* here.", tmp_path)

        assert "<h1>Title</h1>" in document.content_html
        assert "<em>emphasis</em>" in document.content_html
        assert document.extracted_title == "Title"

    def test_void_elements_self_closed(self, transformer, tmp_path):
        """Void elements use XHTML syntax."""
        document = transformer.build("Above\n\n---\n\nBelow", tmp_path)

        assert "<hr />" in document.content_html

    def test_fragment_is_well_formed(self, transformer, tmp_path):
        """The rendered fragment parses as XML."""
        source = (
            "# Title\n\n"
            "| a | b |\n|---|---|\n| 1 | 2 |\n\n"
            "```python\nprint('x < y')\n```\n\n"
            "- one\n- two\n\n"
            "Line with a note[^n].\n\n"
            "[^n]: The note.\n\n"
            "![pic](pic.png)\n"
        )
        document = transformer.build(source, tmp_path)

        root = _parse_fragment(document.content_html)
        assert root.find(".//table") is not None
        assert root.find(".//pre/code") is not None

    def test_special_characters_escaped(self, transformer, tmp_path):
        """Ampersands and angle brackets in text are escaped."""
        document = transformer.build("Fish & chips cost 3 < 4", tmp_path)

        assert "Fish &amp; chips" in document.content_html
        assert "3 &lt; 4" in document.content_html

    def test_two_space_nested_list(self, transformer, tmp_path):
        """List items indented by two spaces nest under the previous item."""
        document = transformer.build("- top\n  - nested\n- two", tmp_path)

        root = _parse_fragment(document.content_html)
        outer = root.findall("./ul/li")
        assert len(outer) == 2
        nested = root.find(".//li/ul/li")
        assert nested is not None
        assert nested.text.strip() == "nested"

    def test_strikethrough(self, transformer, tmp_path):
        """Double tildes render as a deletion."""
        document = transformer.build("This is ~~gone~~ now.", tmp_path)

        assert "<del>gone</del>" in document.content_html

    def test_single_tilde_literal(self, transformer, tmp_path):
        """A lone tilde pair is left as text."""
        document = transformer.build("About ~5~ minutes.", tmp_path)

        assert "<sub>" not in document.content_html
        assert "~5~" in document.content_html

    def test_bare_url_linked(self, transformer, tmp_path):
        """Bare URLs in text become links."""
        document = transformer.build("Visit https://example.com/docs today.", tmp_path)

        root = _parse_fragment(document.content_html)
        link = root.find(".//p/a")
        assert link is not None
        assert link.get("href") == "https://example.com/docs"
        assert link.text == "https://example.com/docs"


class TestFootnotes:
    """Tests for footnote references and definitions."""

    def test_reference_and_definition_link(self, transformer, tmp_path):
        """Each footnote yields one anchor and one link pointing at it."""
        source = "Text with a note[^1].\n\n[^1]: The note text."
        document = transformer.build(source, tmp_path)

        html = document.content_html
        assert html.count('id="fn-1"') == 1
        assert html.count('href="#fn-1"') == 1
        assert 'class="footnote"' in html
        assert "The note text." in html

    def test_reference_markup(self, transformer, tmp_path):
        """A reference renders as a superscript link with a back-reference id."""
        document = transformer.build("See[^a].\n\n[^a]: Note.", tmp_path)

        root = _parse_fragment(document.content_html)
        link = root.find(".//p/sup/a")
        assert link is not None
        assert link.get("href") == "#fn-a"
        assert link.get("id") == "ref-a"
        assert link.text == "a"

    def test_definition_markup(self, transformer, tmp_path):
        """A definition renders as a labeled note anchored by its id."""
        document = transformer.build("See[^a].\n\n[^a]: Note body.", tmp_path)

        root = _parse_fragment(document.content_html)
        note = root.find(".//div[@id='fn-a']")
        assert note is not None
        assert note.get("class") == "footnote"
        assert note.find("sup").text == "a"
        assert note.find("sup").tail.strip() == "Note body."

    def test_definition_is_not_a_link_reference(self, transformer, tmp_path):
        """A definition line is not swallowed as a link reference definition."""
        document = transformer.build("Body[^x].\n\n[^x]: http://example.com", tmp_path)

        assert 'id="fn-x"' in document.content_html

    def test_definition_text_rendered_inline(self, transformer, tmp_path):
        """Inline markdown inside a definition is rendered."""
        document = transformer.build("Body[^x].\n\n[^x]: Some *stress* here.", tmp_path)

        assert "<em>stress</em>" in document.content_html

    def test_repeated_reference_gets_distinct_ids(self, transformer, tmp_path):
        """Two references to one note keep element ids unique."""
        source = "First[^1] and again[^1].\n\n[^1]: Shared note."
        document = transformer.build(source, tmp_path)

        root = _parse_fragment(document.content_html)
        ids = [a.get("id") for a in root.iter("a")]
        assert ids == ["ref-1", "ref-1-2"]

    def test_consecutive_definitions(self, transformer, tmp_path):
        """Adjacent definition lines each become their own note."""
        source = "A[^1] B[^2]\n\n[^1]: One.\n[^2]: Two."
        document = transformer.build(source, tmp_path)

        root = _parse_fragment(document.content_html)
        assert root.find(".//div[@id='fn-1']") is not None
        assert root.find(".//div[@id='fn-2']") is not None

    def test_reference_counts_do_not_leak_between_calls(self, transformer, tmp_path):
        """Back-reference ids restart for every document."""
        transformer.build("A[^1]\n\n[^1]: x", tmp_path)
        document = transformer.build("B[^1]\n\n[^1]: y", tmp_path)

        assert 'id="ref-1"' in document.content_html
        assert "ref-1-2" not in document.content_html

    def test_empty_definition_kept(self, transformer, tmp_path):
        """A definition without text still renders its anchored note."""
        source = "Text[^1].\n\n[^1]:\n\nAfter."
        document = transformer.build(source, tmp_path)

        root = _parse_fragment(document.content_html)
        note = root.find(".//div[@id='fn-1']")
        assert note is not None
        assert note.find("sup").text == "1"
        assert 'href="#fn-1"' in document.content_html
        assert "After." in document.content_html


class TestImageCollection:
    """Tests for image extraction and src rewriting."""

    def test_images_in_encounter_order(self, transformer, tmp_path):
        """Images are recorded in the order they appear."""
        source = "![a](one.png)\n\nText ![b](sub/two.jpg) more.\n\n![c](three.gif)"
        document = transformer.build(source, tmp_path)

        assert [i.source_ref for i in document.images] == [
            "one.png",
            "sub/two.jpg",
            "three.gif",
        ]

    def test_duplicates_kept(self, transformer, tmp_path):
        """Every usage site is recorded, with its own asset id."""
        document = transformer.build("![a](x.png)\n\n![b](x.png)", tmp_path)

        assert len(document.images) == 2
        assert document.images[0].asset_id != document.images[1].asset_id

    def test_src_rewritten_to_package_path(self, transformer, tmp_path):
        """Rendered img tags point at images/<basename>."""
        source = "![a](../figures/plot.png)\n\n![b](https://example.com/p/photo.jpg?w=3)"
        document = transformer.build(source, tmp_path)

        root = _parse_fragment(document.content_html)
        sources = [img.get("src") for img in root.iter("img")]
        assert sources == ["images/plot.png", "images/photo.jpg"]

    def test_local_path_resolved_against_base_directory(self, transformer, tmp_path):
        """Relative paths are resolved against the document directory."""
        document = transformer.build("![a](pics/a.png)", tmp_path)

        image = document.images[0]
        assert Path(image.resolved_location) == (tmp_path / "pics" / "a.png").resolve()
        assert image.is_remote is False

    def test_remote_reference_kept_verbatim(self, transformer, tmp_path):
        """Network references are not resolved."""
        url = "https://example.com/img/cat.webp"
        document = transformer.build(f"![cat]({url})", tmp_path)

        image = document.images[0]
        assert image.resolved_location == url
        assert image.is_remote is True
        assert image.content_type == "image/webp"

    def test_content_type_from_extension(self, transformer, tmp_path):
        """Content type follows the extension, jpeg when unknown."""
        document = transformer.build("![a](a.svg)\n\n![b](b.xyz)\n\n![c](noext)", tmp_path)

        assert [i.content_type for i in document.images] == [
            "image/svg+xml",
            "image/jpeg",
            "image/jpeg",
        ]

    def test_alt_and_title_escaped(self, transformer, tmp_path):
        """Quotes and ampersands in alt and title stay well-formed."""
        source = '![Tom & "Jerry"](toon.png "Cat & Mouse")'
        document = transformer.build(source, tmp_path)

        img = _parse_fragment(document.content_html).find(".//img")
        assert img.get("alt") == 'Tom & "Jerry"'
        assert img.get("title") == "Cat & Mouse"

    def test_images_do_not_leak_between_calls(self, transformer, tmp_path):
        """A second document never sees the first one's images."""
        transformer.build("![a](first.png)", tmp_path)
        document = transformer.build("![b](second.png)", tmp_path)

        assert [i.source_ref for i in document.images] == ["second.png"]

    def test_no_images(self, transformer, tmp_path):
        """A document without images has an empty list."""
        document = transformer.build("Plain text.", tmp_path)

        assert document.images == []


class TestRenderContext:
    """Tests for RenderContext."""

    def test_reference_id_sequence(self, tmp_path):
        """Back-reference ids count per note."""
        context = RenderContext(base_directory=tmp_path)

        assert context.reference_id("a") == "ref-a"
        assert context.reference_id("b") == "ref-b"
        assert context.reference_id("a") == "ref-a-2"


class TestTransformFile:
    """Tests for MarkdownTransformer.transform()."""

    def test_transform_file(self, transformer, write_markdown):
        """A file is read and images resolve relative to its directory."""
        path = write_markdown("book/chapter.md", "# Chapter\n\n![a](img/a.png)")

        document = transformer.transform(path)

        assert document.extracted_title == "Chapter"
        assert Path(document.images[0].resolved_location) == (
            path.parent / "img" / "a.png"
        ).resolve()

    def test_missing_file(self, transformer, tmp_path):
        """A missing file raises InputNotFoundError."""
        missing = tmp_path / "missing.md"

        with pytest.raises(InputNotFoundError) as exc_info:
            transformer.transform(missing)

        assert exc_info.value.path == missing

    def test_undecodable_file(self, transformer, tmp_path):
        """Bytes that are not UTF-8 raise ParseError."""
        path = tmp_path / "bad.md"
        path.write_bytes(b"\xff\xfe\xfa not utf-8")

        with pytest.raises(ParseError) as exc_info:
            transformer.transform(path)

        assert exc_info.value.path == path

    def test_unreadable_file(self, transformer, write_markdown, monkeypatch):
        """An OS error while reading raises ParseError."""
        path = write_markdown("locked.md", "# Locked")

        def _deny(self, *args, **kwargs):
            raise PermissionError(13, "Permission denied", str(self))

        monkeypatch.setattr(Path, "read_text", _deny)

        with pytest.raises(ParseError) as exc_info:
            transformer.transform(path)

        assert exc_info.value.path == path
        assert "Cannot read" in exc_info.value.message

from marginalia.citations import CitationStyle, Library
from marginalia.rendering import RenderPipeline, parse_markdown

from helpers import SMITH_BIB


DOCUMENT = """# Essay

{newthought:It began} with a claim @smith2020.{sn:A side remark.}

## Evidence

See @url[Example][https://example.com/page] and again @smith2020.{mn:Margin aside.}

![Chart][60](chart.png){margin}
"""


def test_full_document_render():
    library = Library()
    library.load_bibliography(SMITH_BIB)
    result = RenderPipeline().render(DOCUMENT, library)

    assert result.citation_count == 2
    assert result.sidenote_count == 1
    assert result.margin_note_count == 2
    assert [citation.url for citation in result.url_citations] == ["https://example.com/page"]

    html = result.html
    assert html.startswith('<h1 data-line="0">Essay</h1>\n<section>\n')
    assert html.count('href="#ref-1"') == 2
    assert html.count('href="#ref-2"') == 1
    assert 'id="mn-1"' in html
    assert 'id="mn-fig-2"' in html
    assert html.index("</section>") < html.index('<div class="references">')
    assert html.endswith("</ol></div>")


def test_references_list_numbered_style():
    library = Library()
    library.load_bibliography(SMITH_BIB)
    html = parse_markdown("Claim @smith2020.", library)
    assert (
        '<div class="references"><h2>References</h2><ol class="references-list">'
        '<li id="ref-1">John Smith, "A Title," 2020.</li></ol></div>'
    ) in html


def test_style_switch_does_not_require_reparsing_bibliography():
    library = Library()
    library.load_bibliography(SMITH_BIB)
    numbered = parse_markdown("Claim @smith2020.", library)
    assert ">[1]</a>" in numbered

    library.set_style(CitationStyle.APA)
    apa = parse_markdown("Claim @smith2020.", library)
    assert ">(Smith, 2020)</a>" in apa
    assert "Smith, J. (2020). A Title." in apa


def test_unknown_key_produces_no_reference():
    html = parse_markdown("Cite @doesnotexist please.")
    assert '<span class="citation-error">[@doesnotexist]</span>' in html
    assert "references" not in html


def test_counters_reset_between_renders():
    library = Library()
    library.load_bibliography(SMITH_BIB)
    pipeline = RenderPipeline()
    first = pipeline.render("A{sn:one} @smith2020", library)
    second = pipeline.render("B{sn:two} @smith2020", library)
    assert 'id="sn-1"' in first.html
    assert 'id="sn-1"' in second.html
    assert 'id="sn-2"' not in second.html
    assert second.citation_count == 1


def test_render_is_deterministic():
    library = Library()
    library.load_bibliography(SMITH_BIB)
    assert parse_markdown(DOCUMENT, library) == parse_markdown(DOCUMENT, library)


def test_numbering_follows_reading_order_across_blocks():
    library = Library()
    library.load_bibliography(
        "@misc{a, title = {A}}\n@misc{b, title = {B}}\n@misc{c, title = {C}}"
    )
    html = parse_markdown("@b first\n\n- @a item\n\n> quoted @c\n\n@b again", library)
    assert html.index('<li id="ref-1">') < html.index('<li id="ref-2">') < html.index('<li id="ref-3">')
    assert '<li id="ref-1">"B."</li>' in html
    assert '<li id="ref-2">"A."</li>' in html
    assert '<li id="ref-3">"C."</li>' in html


def test_code_is_never_rewritten():
    html = parse_markdown("```\n**x** @smith2020 {sn:y}\n```")
    assert "<strong>" not in html
    assert "sidenote" not in html
    assert "citation" not in html


def test_url_citations_recorded_in_history():
    library = Library()
    parse_markdown("@url[Docs][https://docs.example.org] and @url[https://other.example.org]", library)
    assert [(record.url, record.name) for record in library.url_history] == [
        ("https://docs.example.org", "Docs"),
        ("https://other.example.org", ""),
    ]

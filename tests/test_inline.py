from marginalia.citations import Library
from marginalia.rendering import RenderContext, parse_inline
from marginalia.rendering.inline import DEFAULT_INLINE_REGISTRY

from helpers import SMITH_BIB


def _context(bib: str = "") -> RenderContext:
    library = Library()
    if bib:
        library.load_bibliography(bib)
    return RenderContext(library)


def test_code_span_is_protected_from_later_rules():
    assert parse_inline("`**not bold**`") == "<code>**not bold**</code>"
    assert parse_inline("`*a* @smith2020 [x](y)`") == "<code>*a* @smith2020 [x](y)</code>"
    assert parse_inline("`<b>`") == "<code>&lt;b&gt;</code>"


def test_inline_math_is_protected_and_escaped():
    assert parse_inline("$a*b*c$") == '<span class="math-inline">a*b*c</span>'
    assert parse_inline("$x < y$ and $$") == '<span class="math-inline">x &lt; y</span> and $$'


def test_code_inside_citation_context_does_not_consume_numbers():
    context = _context(SMITH_BIB)
    html = parse_inline("`@smith2020` then @smith2020", context)
    assert html.startswith("<code>@smith2020</code> then ")
    assert ">[1]</a>" in html
    assert context.tracker.citation_count == 1


def test_sidenote_numbering():
    context = _context()
    html = parse_inline("One{sn:First} two{sn:Second}", context)
    assert (
        '<label class="margin-toggle sidenote-number" for="sn-1"></label>'
        '<input type="checkbox" id="sn-1" class="margin-toggle"/>'
        '<span class="sidenote">First</span>'
    ) in html
    assert 'id="sn-2"' in html
    assert context.sidenote_count == 2


def test_margin_note_uses_glyph_label():
    html = parse_inline("Text{mn:Aside}")
    assert (
        '<label class="margin-toggle" for="mn-1">&#8853;</label>'
        '<input type="checkbox" id="mn-1" class="margin-toggle"/>'
        '<span class="marginnote">Aside</span>'
    ) in html


def test_new_thought():
    assert parse_inline("{newthought:In the beginning} there was") == (
        '<span class="newthought">In the beginning</span> there was'
    )


def test_inline_markup_inside_sidenote():
    html = parse_inline("{sn:*see* `code`}")
    assert '<span class="sidenote"><em>see</em> <code>code</code></span>' in html


def test_plain_figure():
    assert parse_inline("![Cap](a.jpg)") == '<figure><img src="a.jpg" alt="Cap"><figcaption>Cap</figcaption></figure>'


def test_figure_without_caption():
    html = parse_inline("![](a.jpg)")
    assert html == '<figure><img src="a.jpg" alt=""></figure>'
    assert "<figcaption>" not in html


def test_figure_sizes():
    assert 'style="width:50%"' in parse_inline("![Cap][50](a.jpg)")
    assert 'style="width:40%"' in parse_inline("![Cap][40%](a.jpg)")
    assert "style=" not in parse_inline("![Cap][0](a.jpg)")
    assert "style=" not in parse_inline("![Cap][big](a.jpg)")


def test_fullwidth_figure():
    html = parse_inline("![Wide](w.png){fullwidth}")
    assert html == '<figure class="fullwidth"><img src="w.png" alt="Wide"><figcaption>Wide</figcaption></figure>'


def test_margin_figure():
    context = _context()
    html = parse_inline("![Cap](a.jpg){margin}", context)
    assert "<figure" not in html
    assert 'for="mn-fig-1"' in html
    assert '<span class="marginnote"><img src="a.jpg" alt="Cap"><br>Cap</span>' in html
    assert context.margin_note_count == 1


def test_margin_figure_without_caption_has_no_break():
    html = parse_inline("![](a.jpg){margin}")
    assert '<span class="marginnote"><img src="a.jpg" alt=""></span>' in html


def test_image_url_is_attribute_escaped():
    html = parse_inline('![x](a.jpg?a=1&b="2")')
    assert 'src="a.jpg?a=1&amp;b=&quot;2&quot;"' in html


def test_links():
    assert parse_inline("[home](https://x.org/?a=1&b=2)") == '<a href="https://x.org/?a=1&amp;b=2">home</a>'
    assert parse_inline("[**bold** label](u)") == '<a href="u"><strong>bold</strong> label</a>'


def test_bold_before_italic():
    assert parse_inline("**b** and *i*") == "<strong>b</strong> and <em>i</em>"
    assert parse_inline("a **strong** word") == "a <strong>strong</strong> word"


def test_email_is_not_a_citation():
    context = _context(SMITH_BIB)
    assert parse_inline("mail me@smith2020.org", context) == "mail me@smith2020.org"
    assert context.tracker.citation_count == 0


def test_unknown_key_renders_error_marker():
    html = parse_inline("see @nope here")
    assert html == 'see <span class="citation-error">[@nope]</span> here'


def test_citation_variants_share_numbering_left_to_right():
    context = _context(SMITH_BIB)
    html = parse_inline(
        "@url[https://a.org] then @smith2020 then @url[Site B][https://b.org] then @url[https://a.org]",
        context,
    )
    assert html.count('href="#ref-1"') == 2
    assert html.count('href="#ref-2"') == 1
    assert html.count('href="#ref-3"') == 1
    assert html.index('href="#ref-1"') < html.index('href="#ref-2"') < html.index('href="#ref-3"')


def test_citation_title_is_not_rewritten_by_emphasis_rules():
    context = _context("@misc{star, author = {Ann Lee}, title = {A *starred* title}, year = 2001}")
    html = parse_inline("@star and *italic*", context)
    assert 'title="Ann Lee. (2001). A *starred* title."' in html
    assert html.endswith("and <em>italic</em>")


def test_citation_inside_link_label():
    context = _context(SMITH_BIB)
    html = parse_inline("[see @smith2020](https://x.org)", context)
    assert html.startswith('<a href="https://x.org">see <a class="citation" href="#ref-1"')


def test_unparseable_syntax_falls_through():
    for text in ["{sn:}", "![broken](", "**unclosed", "[label]("]:
        assert parse_inline(text) == text


def test_rule_order():
    names = [rule.name for rule in DEFAULT_INLINE_REGISTRY.rules]
    assert names == [
        "code_span",
        "inline_math",
        "link_target",
        "sidenote",
        "margin_note",
        "new_thought",
        "citation",
        "image",
        "link",
        "bold",
        "italic",
    ]


def _attribute(html: str, name: str) -> str:
    return html.split(f'{name}="', 1)[1].split('"', 1)[0]


def test_handle_in_link_target_is_not_a_citation():
    context = _context("@misc{alice, author = {Alice Liddell}, title = {Wonderland}}")
    html = parse_inline("[profile](https://mastodon.social/@alice)", context)
    assert html == '<a href="https://mastodon.social/@alice">profile</a>'
    assert "<" not in _attribute(html, "href")
    assert context.tracker.citation_count == 0


def test_handle_in_image_target_is_not_a_citation():
    context = _context("@misc{alice, author = {Alice Liddell}, title = {Wonderland}}")
    html = parse_inline("![x](https://x.org/@alice/a.png)", context)
    assert _attribute(html, "src") == "https://x.org/@alice/a.png"
    assert "<" not in _attribute(html, "src")
    assert context.tracker.citation_count == 0


def test_target_without_link_syntax_is_left_as_written():
    assert parse_inline("odd](https://x.org/@alice) text") == "odd](https://x.org/@alice) text"

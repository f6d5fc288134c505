from marginalia.citations.bibtex import ScanState, parse_bibtex, parse_entry_body

from helpers import SAMPLE_BIB, SMITH_BIB


def test_parse_minimal_entry():
    entries = parse_bibtex(SMITH_BIB)
    assert list(entries) == ["smith2020"]
    entry = entries["smith2020"]
    assert entry.key == "smith2020"
    assert entry.entry_type == "article"
    assert entry.author == "Smith, John"
    assert entry.year == "2020"
    assert entry.title == "A Title"


def test_key_case_is_preserved_but_lookup_is_lowercase():
    entries = parse_bibtex("@Article{SmithJ2020, title = {T}}")
    assert list(entries) == ["smithj2020"]
    assert entries["smithj2020"].key == "SmithJ2020"
    assert entries["smithj2020"].entry_type == "article"


def test_nested_braces_kept_verbatim():
    entries = parse_bibtex(SAMPLE_BIB)
    assert entries["smith2020"].title == "On {Nested} Braces"


def test_quoted_and_bare_values():
    entries = parse_bibtex(SAMPLE_BIB)
    assert entries["smith2020"].year == "2020"
    knuth = entries["knuth1984"]
    assert knuth.author == "Donald E. Knuth"
    assert knuth.title == "The TeXbook"
    assert knuth.publisher == "Addison-Wesley"


def test_field_names_are_lowercased():
    entries = parse_bibtex("@misc{k, TITLE = {Upper}, Year = 1999}")
    assert entries["k"].fields == {"title": "Upper", "year": "1999"}


def test_whitespace_before_opening_brace():
    entries = parse_bibtex("@book   \n{spaced, title = {Spaced}}")
    assert entries["spaced"].title == "Spaced"


def test_multiline_values_are_collapsed():
    entries = parse_bibtex("@misc{k, title = {A\n    long\n    title}}")
    assert entries["k"].title == "A long title"


def test_non_citable_types_are_skipped():
    text = """
@string{jt = "Journal of Tests"}
@preamble{"\\newcommand{\\noop}[1]{}"}
@comment{ignore me, title = {x}}
@misc{real, title = {Real}}
"""
    entries = parse_bibtex(text)
    assert list(entries) == ["real"]


def test_entry_without_key_is_dropped():
    assert parse_bibtex("@misc{, title = {No key}}") == {}
    assert parse_bibtex("@misc{   }") == {}


def test_entry_with_key_only():
    entries = parse_bibtex("@misc{lonely}")
    assert entries["lonely"].fields == {}


def test_unbalanced_braces_truncate_but_keep_earlier_entries():
    text = "@misc{first, title = {One}}\n@misc{second, title = {Two}\n@misc{third, title = {Three}}"
    entries = parse_bibtex(text)
    assert "first" in entries
    assert "second" not in entries
    assert "third" not in entries


def test_unparseable_fragments_are_skipped():
    entries = parse_bibtex("@misc{k, garbage, title = {Kept}, = {orphan}, year = 2001}")
    assert entries["k"].title == "Kept"
    assert entries["k"].year == "2001"
    assert "" not in entries["k"].fields


def test_duplicate_keys_last_wins():
    entries = parse_bibtex("@misc{dup, title = {Old}}\n@misc{DUP, title = {New}}")
    assert len(entries) == 1
    assert entries["dup"].title == "New"


def test_at_signs_in_prose_are_ignored():
    entries = parse_bibtex("contact me@example.com\n@misc{k, title = {T}}")
    assert list(entries) == ["k"]


def test_garbage_never_raises():
    for text in ["", "@", "@{", "@misc", "@misc{", "}}}{{{", "@misc{k, title = {", '@misc{k, title = "open}']:
        assert isinstance(parse_bibtex(text), dict)


def test_unterminated_quote_keeps_partial_value():
    entry = parse_entry_body('k, title = "unterminated')
    assert entry.fields["title"] == "unterminated"


def test_scan_states_cover_value_kinds():
    assert {state.name for state in ScanState} == {
        "SCAN_KEY",
        "SCAN_FIELD_NAME",
        "SCAN_VALUE_BRACED",
        "SCAN_VALUE_QUOTED",
        "SCAN_VALUE_BARE",
    }

from sti.crossrefs import extract_cross_refs


def targets(refs):
    return [r.target_chapter for r in refs]


def test_scenario_d_range_expansion():
    refs = extract_cross_refs("<p>For more, see chapters 32-34.</p>", 10)
    assert targets(refs) == [32, 33, 34]
    assert all(r.source_chapter == 10 for r in refs)
    assert all(r.relationship_type == "see_also" for r in refs)
    assert refs[0].note == "see chapters 32-34"


def test_self_reference_excluded():
    assert targets(extract_cross_refs("see chapters 32-34", 33)) == [32, 34]


def test_variants():
    text = "See also ch. 14; see chapter 20 and see Chapters 5–6."
    assert targets(extract_cross_refs(text, 1)) == [14, 20, 5, 6]


def test_reversed_range_yields_start():
    assert targets(extract_cross_refs("see chapters 34-32", 1)) == [34]


def test_duplicates_removed_in_first_seen_order():
    text = "see chapter 7 ... see chapters 6-8 ... see ch 7"
    assert targets(extract_cross_refs(text, 1)) == [7, 6, 8]


def test_markup_is_ignored():
    assert targets(extract_cross_refs("see <em>chapter 12</em>", 2)) == [12]


def test_no_references():
    assert extract_cross_refs("Nothing to see here.", 2) == []

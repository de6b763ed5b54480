from __future__ import annotations

import pytest

from pearlcover.services.links import linkify


def test_note_tag_becomes_highlight_link():
    assert linkify("[Note: Foo](ID:123)") == "[Foo](/notes?highlight=123)"


@pytest.mark.parametrize(
    ("tagged", "expected"),
    [
        ("[Claim: WC-2024-001](ID:c9)", "[WC-2024-001](/workcover?claim=c9)"),
        ("[Expense: Wheelchair hire](ID:e1)", "[Wheelchair hire](/expenses?id=e1)"),
        ("[Payment: INV 42](ID:p-7)", "[INV 42](/payments?id=p-7)"),
    ],
)
def test_each_category_has_its_route(tagged: str, expected: str):
    assert linkify(tagged) == expected


def test_mixed_text_rewrites_every_tag_and_keeps_the_rest():
    text = (
        "See [Note: Physio plan](ID:n1) and the claim [Claim: WC-1](ID:c1).\n"
        "Paid via [Payment: REF9](ID:p1)."
    )
    assert linkify(text) == (
        "See [Physio plan](/notes?highlight=n1) and the claim [WC-1](/workcover?claim=c1).\n"
        "Paid via [REF9](/payments?id=p1)."
    )


def test_non_matching_text_is_unchanged():
    text = "No tags here, just [a normal link](https://example.com) and [Invoice: X](ID:1)."
    assert linkify(text) == text


def test_second_pass_is_a_no_op():
    once = linkify("[Note: Foo](ID:123) [Expense: Bar](ID:9)")
    assert linkify(once) == once


def test_empty_text():
    assert linkify("") == ""

from __future__ import annotations

import pytest

from cms_downloads.download_harvester import heuristics, source
from cms_downloads.download_harvester.source import FixtureChild, FixtureItem


def test_rule_table_is_ordered_by_priority() -> None:
    assert [rule.field for rule in heuristics.SHAPE_RULES] == ["file_size", "file_type"]
    priorities = [rule.priority for rule in heuristics.SHAPE_RULES]
    assert priorities == sorted(priorities)


@pytest.mark.parametrize(
    "token",
    ["12", "1.2 MB", "512KB", "3 gb", "900 bytes", "1 byte"],
)
def test_file_size_rule_matches(token: str) -> None:
    assert heuristics.is_file_size(token)
    rule = heuristics.match_rule(token)
    assert rule is not None and rule.field == "file_size"


@pytest.mark.parametrize("token", ["1.2 MB extra", "MB", "size 4 KB", "1.2"])
def test_file_size_rule_rejects(token: str) -> None:
    assert not heuristics.is_file_size(token)


@pytest.mark.parametrize("token", ["PDF", "DWG", "MP4", "3D", "ABCDE", "Other"])
def test_file_type_rule_matches(token: str) -> None:
    assert heuristics.is_file_type(token)


@pytest.mark.parametrize("token", ["pdf", "A", "ABCDEF", "Others", "P D F"])
def test_file_type_rule_rejects(token: str) -> None:
    assert not heuristics.is_file_type(token)


def test_numeric_token_is_claimed_by_size_before_type() -> None:
    rule = heuristics.match_rule("2024")
    assert rule is not None
    assert rule.field == "file_size"


def test_installation_guide_example() -> None:
    item = FixtureItem(
        items=[
            FixtureChild("Installation Guide PDF"),
            FixtureChild("PDF"),
            FixtureChild("1.2 MB"),
            FixtureChild("Download", link="https://cdn.example.com/guide.pdf"),
        ]
    )
    fields = heuristics.extract_heuristic_fields(item)
    assert fields.name == "Installation Guide PDF"
    assert fields.file_type == "PDF"
    assert fields.file_size == "1.2 MB"
    assert fields.category == ""
    assert fields.product_category == ""
    assert fields.download_url == "https://cdn.example.com/guide.pdf"


def test_longer_token_takes_title_and_demotes_previous() -> None:
    slots = heuristics.classify_tokens(["Brochure", "Brochures"])
    assert slots.title == "Brochures"
    assert slots.category == "Brochure"


def test_equal_length_keeps_earliest_title() -> None:
    slots = heuristics.classify_tokens(["Alpha", "Bravo"])
    assert slots.title == "Alpha"
    assert slots.category == "Bravo"


def test_title_candidates_of_100_characters_do_not_replace() -> None:
    long_token = "x" * 100
    slots = heuristics.classify_tokens(["Short", long_token])
    assert slots.title == "Short"
    assert slots.category == long_token


def test_first_token_is_title_regardless_of_length() -> None:
    long_token = "y" * 150
    slots = heuristics.classify_tokens([long_token, "Short"])
    assert slots.title == long_token
    assert slots.category == "Short"


def test_demotion_skipped_when_category_filled() -> None:
    slots = heuristics.classify_tokens(["Ab", "Cd", "Longest one"])
    assert slots.title == "Longest one"
    assert slots.category == "Cd"
    assert slots.product_type == ""
    assert slots.discarded == ["Ab"]


def test_remaining_tokens_fill_category_then_product_type() -> None:
    slots = heuristics.classify_tokens(
        ["Technical Specifications", "Manuals", "Wallmount", "Spare"]
    )
    assert slots.title == "Technical Specifications"
    assert slots.category == "Manuals"
    assert slots.product_type == "Wallmount"
    assert slots.discarded == ["Spare"]


def test_size_tokens_never_reach_text_slots() -> None:
    slots = heuristics.classify_tokens(["15 MB", "Guide", "2 MB", "300"])
    assert slots.file_size == "15 MB"
    assert slots.title == "Guide"
    assert slots.category == ""
    assert slots.product_type == ""
    assert slots.discarded == ["2 MB", "300"]


def test_vocabulary_type_wins_over_longer_title() -> None:
    slots = heuristics.classify_tokens(["Go", "Other"])
    assert slots.file_type == "Other"
    assert slots.title == "Go"
    assert slots.category == ""


def test_second_type_token_is_dropped() -> None:
    slots = heuristics.classify_tokens(["PDF", "Manual", "ZIP"])
    assert slots.file_type == "PDF"
    assert slots.title == "Manual"
    assert slots.discarded == ["ZIP"]


def test_only_first_link_child_is_excluded() -> None:
    children = [
        FixtureChild("Download", link="https://example.com/a.pdf"),
        FixtureChild("Mirror", link="https://example.com/b.pdf"),
        FixtureChild("Catalogue"),
    ]
    tokens, address = heuristics.collect_tokens(children)
    assert address == "https://example.com/a.pdf"
    assert tokens == ["Mirror", "Catalogue"]


def test_blank_children_are_skipped() -> None:
    tokens, address = heuristics.collect_tokens([FixtureChild("   "), FixtureChild(" Guide ")])
    assert tokens == ["Guide"]
    assert address is None


def test_item_without_text_children_is_untitled() -> None:
    item = FixtureItem(items=[FixtureChild("Download", link="https://example.com/x.zip")])
    fields = heuristics.extract_heuristic_fields(item)
    assert fields.name == "Untitled"
    assert fields.file_size == ""
    assert fields.file_type == ""
    assert fields.category == ""
    assert fields.product_category == ""


def test_item_without_link_keeps_placeholder() -> None:
    item = FixtureItem(items=[FixtureChild("Orphan Drawing"), FixtureChild("ZIP")])
    fields = heuristics.extract_heuristic_fields(item)
    assert fields.download_url == "#"
    assert fields.name == "Orphan Drawing"


def test_marked_file_link_wins_over_first_link_child(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("HARVEST_BASE_URL", raising=False)
    html = (
        '<div class="w-dyn-item">'
        '<div><a href="/thumb.png">Preview</a></div>'
        "<div>Guide</div>"
        '<a class="sch-data-file" href="/files/guide.pdf">Download</a>'
        "</div>"
    )
    items = source.parse_html(html)
    assert items is not None
    fields = heuristics.extract_heuristic_fields(items[0])
    assert fields.download_url == "/files/guide.pdf"


def test_known_address_keeps_link_children_as_tokens() -> None:
    children = [
        FixtureChild("Preview", link="https://example.com/thumb.png"),
        FixtureChild("Guide"),
    ]
    tokens, address = heuristics.collect_tokens(children, "https://example.com/guide.pdf")
    assert address == "https://example.com/guide.pdf"
    assert tokens == ["Preview", "Guide"]


def test_link_without_address_is_not_a_token(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("HARVEST_BASE_URL", raising=False)
    html = (
        '<div class="w-dyn-item">'
        "<div><a>Download</a></div>"
        '<a href="#">Open</a>'
        '<div><a href="/files/guide.pdf">Get</a></div>'
        "<div>Guide</div>"
        "</div>"
    )
    items = source.parse_html(html)
    assert items is not None
    tokens, address = heuristics.collect_tokens(items[0].children())
    assert tokens == ["Guide"]
    assert address == "/files/guide.pdf"


def test_fixture_link_without_address_is_skipped() -> None:
    tokens, address = heuristics.collect_tokens(
        [FixtureChild("Download", link=""), FixtureChild("Guide")]
    )
    assert tokens == ["Guide"]
    assert address is None

from app.dedup import SeenIdRegistry, SeenIds, deduplicate
from app.models import MediaItem, MediaSource


def _item(item_id: str, source: MediaSource, title: str = "Item") -> MediaItem:
    return MediaItem(id=item_id, title=title, source=source)


def test_first_occurrence_wins_and_keys_are_recorded():
    seen = SeenIds()
    items = [
        _item("1", MediaSource.CATALOG_A, "first"),
        _item("1", MediaSource.CATALOG_A, "second"),
        _item("1", MediaSource.CATALOG_B),
    ]

    unique = deduplicate(items, seen)

    assert [item.title for item in unique] == ["first", "Item"]
    assert set(seen) == {"catalogA-1", "catalogB-1"}


def test_previously_seen_items_are_dropped():
    seen = SeenIds({"catalogA-1"})

    unique = deduplicate(
        [_item("1", MediaSource.CATALOG_A), _item("2", MediaSource.CATALOG_A)], seen
    )

    assert [item.id for item in unique] == ["2"]
    assert len(seen) == 2


def test_registry_keeps_media_types_apart():
    registry = SeenIdRegistry()
    registry.for_type("images").add("catalogA-1")

    assert "catalogA-1" in registry.for_type("images")
    assert "catalogA-1" not in registry.for_type("audio")

    registry.clear()

    assert len(registry.for_type("images")) == 0

"""Unit tests for notestore.collection.Collection."""

import pytest

from notestore import filters as f
from notestore.collection import Collection
from notestore.errors import AlreadyExistsError, DoesNotExistError
from notestore.listing import NoteList
from notestore.note import Link, LinkKind, Note
from notestore.parser import Parser


def _note(path: str, title: str, contents: str = "", **kwargs) -> Note:
    return Note(path=path, title=title, contents=contents, synthetic=True, **kwargs)


@pytest.fixture()
def food() -> Collection:
    parser = Parser()
    coll = Collection()
    coll.add(parser.parse("food/pizza", "---\ntitle: Pizza\n---\nMakes me {{moods/hunger}(hungry)}."))
    coll.add(parser.parse("food/beans", "---\ntitle: Beans\n---\nBetter than [[Pizza]]."))
    coll.add(parser.parse("moods/hunger", "---\ntitle: Hunger\n---\nA feeling."))
    return coll


# ---------------------------------------------------------------------------
# Add / delete
# ---------------------------------------------------------------------------


class TestCollectionAddDelete:
    def test_add_and_len(self):
        coll = Collection()
        coll.add(_note("a", "A"))
        coll.add(_note("b", "B"))
        assert len(coll) == 2

    def test_add_duplicate_path_fails(self):
        coll = Collection()
        coll.add(_note("a", "A"))
        with pytest.raises(AlreadyExistsError) as exc_info:
            coll.add(_note("a", "Different title"))
        assert exc_info.value.path == "a"
        assert len(coll) == 1

    def test_add_many_stops_at_first_error(self):
        coll = Collection()
        with pytest.raises(AlreadyExistsError):
            coll.add_many(_note("a", "A"), _note("a", "A"), _note("c", "C"))
        assert len(coll) == 1
        assert coll.get("c") is None

    def test_shared_titles_allowed(self):
        coll = Collection()
        coll.add(_note("2021/week-1", "Weekly Review"))
        coll.add(_note("2021/week-2", "Weekly Review"))
        assert len(coll) == 2
        assert {n.path for n in coll.by_title("Weekly Review")} == {"2021/week-1", "2021/week-2"}

    def test_delete(self):
        coll = Collection()
        note = _note("a", "A")
        coll.add(note)
        coll.delete(note)
        assert len(coll) == 0
        assert note not in coll
        assert coll.by_title("A") == []

    def test_delete_missing_fails(self):
        coll = Collection()
        with pytest.raises(DoesNotExistError):
            coll.delete(_note("a", "A"))

    def test_delete_with_wrong_title_fails(self):
        coll = Collection()
        coll.add(_note("a", "A"))
        with pytest.raises(DoesNotExistError):
            coll.delete(_note("a", "Not A"))
        assert len(coll) == 1

    def test_delete_then_add_same_path(self):
        coll = Collection()
        first = _note("a", "A")
        coll.add(first)
        coll.delete(first)
        coll.add(_note("a", "A again"))
        assert coll.get("a").title == "A again"

    def test_delete_from_shared_bucket_keeps_others(self):
        coll = Collection()
        one, two, three = _note("1", "T"), _note("2", "T"), _note("3", "T")
        coll.add_many(one, two, three)
        coll.delete(one)
        assert {n.path for n in coll.by_title("T")} == {"2", "3"}

    def test_contains(self):
        coll = Collection()
        note = _note("a", "A")
        assert note not in coll
        coll.add(note)
        assert note in coll
        assert coll.contains(_note("a", "other object, same path"))
        assert "a" not in coll


# ---------------------------------------------------------------------------
# Links
# ---------------------------------------------------------------------------


class TestCollectionLinks:
    def test_resolve_path_link(self, food: Collection):
        pizza = food.get("food/pizza")
        (link,) = pizza.outbound_links
        assert food.resolve_link(link) is food.get("moods/hunger")

    def test_resolve_title_link(self, food: Collection):
        beans = food.get("food/beans")
        (link,) = beans.outbound_links
        assert food.resolve_link(link) is food.get("food/pizza")

    def test_resolve_missing(self, food: Collection):
        assert food.resolve_link(Link(LinkKind.PATH, "nowhere")) is None
        assert food.resolve_link(Link(LinkKind.TITLE_WITH_NAME, "Nobody", "x")) is None

    def test_resolve_shared_title_returns_member(self):
        coll = Collection()
        coll.add(_note("2021/week-1", "Weekly Review"))
        coll.add(_note("2021/week-2", "Weekly Review"))
        coll.add(_note("other", "Something Else"))
        resolved = coll.resolve_link(Link(LinkKind.TITLE, "Weekly Review"))
        assert resolved is not None
        assert resolved.title == "Weekly Review"
        # First added wins.
        assert resolved.path == "2021/week-1"

    def test_resolve_after_deleting_first_of_shared_title(self):
        coll = Collection()
        week_1, week_2, week_3 = (_note(f"week-{i}", "Weekly Review") for i in (1, 2, 3))
        coll.add_many(week_1, week_2, week_3)
        coll.delete(week_1)
        # The last member is swapped into the freed slot.
        assert coll.resolve_link(Link(LinkKind.TITLE, "Weekly Review")) is week_3
        assert coll.by_title("Weekly Review") == [week_3, week_2]

    def test_find_links_to(self, food: Collection):
        links = food.find_links_to(food.get("moods/hunger"))
        assert len(links) == 1
        assert links[0].parent is food.get("food/pizza")

    def test_find_links_to_by_title(self, food: Collection):
        links = food.find_links_to(food.get("food/pizza"))
        assert [link.parent.path for link in links] == ["food/beans"]

    def test_backlinks_disappear_after_delete(self, food: Collection):
        food.delete(food.get("food/pizza"))
        assert food.find_links_to(food.get("moods/hunger")) == []

    def test_no_backlinks(self, food: Collection):
        assert food.find_links_to(food.get("food/beans")) == []


# ---------------------------------------------------------------------------
# Filter / copy / list
# ---------------------------------------------------------------------------


class TestCollectionFilter:
    def test_path_prefix_filter(self):
        coll = Collection()
        coll.add(_note("food/pizza", "Pizza"))
        coll.add(_note("food/beans", "Beans"))

        assert len(coll.filter(f.path_prefix("food/"))) == 2
        assert len(coll.filter(f.not_(f.path_prefix("food/")))) == 0
        assert len(coll) == 2

    def test_filter_does_not_touch_source(self, food: Collection):
        before = {n.path for n in food}
        food.filter(f.title_exact("Nothing"))
        food.filter(f.has_tag("@!missing"))
        assert {n.path for n in food} == before
        assert len(food.by_title("Pizza")) == 1

    def test_chained_filters_equal_and(self, food: Collection):
        p1 = f.path_prefix("food/")
        p2 = f.content_contains("Better")
        chained = food.filter(p1).filter(p2)
        combined = food.filter(f.and_(p1, p2))
        assert {n.path for n in chained} == {n.path for n in combined} == {"food/beans"}

    def test_no_filters_keeps_everything(self, food: Collection):
        assert len(food.filter()) == len(food)

    def test_filtered_shares_notes(self, food: Collection):
        filtered = food.filter(f.path_exact("food/pizza"))
        assert filtered.get("food/pizza") is food.get("food/pizza")

    def test_copy_is_independent(self, food: Collection):
        copied = food.copy()
        copied.delete(copied.get("food/pizza"))
        assert len(copied) == 2
        assert len(food) == 3

    def test_to_list(self, food: Collection):
        listed = food.to_list()
        assert isinstance(listed, NoteList)
        assert {n.path for n in listed} == {"food/pizza", "food/beans", "moods/hunger"}

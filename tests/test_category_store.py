"""Unit tests for CategoryStore."""
from event_cache.category_store import CategoryStore
from factories import make_category


class TestCategoryStore:
    """Test cases for CategoryStore."""

    def test_upsert_routes_by_flag(self):
        store = CategoryStore()
        store.upsert(make_category(pk=1, name='Engineering', is_college=True))
        store.upsert(make_category(pk=2, name='Tours', is_college=False))

        assert [c.pk for c in store.sorted_colleges()] == [1]
        assert [c.pk for c in store.sorted_types()] == [2]

    def test_sorted_by_name_case_sensitive(self):
        store = CategoryStore()
        for pk, name in enumerate(['arts', 'Zoology', 'Agriculture'], start=1):
            store.upsert(make_category(pk=pk, name=name))

        assert [c.name for c in store.sorted_colleges()] == ['Agriculture', 'Zoology', 'arts']

    def test_upsert_replaces_same_pk(self):
        store = CategoryStore()
        store.upsert(make_category(pk=1, name='Old'))
        store.upsert(make_category(pk=1, name='New'))

        assert [c.name for c in store.sorted_colleges()] == ['New']

    def test_remove_from_either_partition(self):
        store = CategoryStore()
        store.upsert(make_category(pk=1, is_college=True))
        store.upsert(make_category(pk=2, is_college=False))

        assert store.remove(2) is True
        assert store.remove(2) is False
        assert store.sorted_types() == []
        assert store.contains(1)

    def test_partition_integrity_with_consistent_flags(self):
        store = CategoryStore()
        for pk in range(1, 11):
            store.upsert(make_category(pk=pk, name=f'C{pk}', is_college=pk % 2 == 0))
        store.upsert(make_category(pk=4, name='Renamed', is_college=True))

        assert all(c.is_college for c in store.sorted_colleges())
        assert not any(c.is_college for c in store.sorted_types())

    def test_flag_flip_without_previous_flag_leaves_stale_entry(self):
        """Known edge case: the old partition is not searched on upsert."""
        store = CategoryStore()
        store.upsert(make_category(pk=5, name='Shifty', is_college=True))

        store.upsert(make_category(pk=5, name='Shifty', is_college=False))

        assert [c.pk for c in store.sorted_colleges()] == [5]
        assert [c.pk for c in store.sorted_types()] == [5]

    def test_flag_flip_with_previous_flag_moves_entry(self):
        store = CategoryStore()
        store.upsert(make_category(pk=5, name='Shifty', is_college=True))

        store.upsert(make_category(pk=5, name='Shifty', is_college=False), previous_is_college=True)

        assert store.sorted_colleges() == []
        assert [c.pk for c in store.sorted_types()] == [5]
        assert len(store) == 1

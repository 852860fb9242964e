"""
Tests for RelationResolver.

Run with: pytest src/tablemapper/relation/resolver_test.py -v
"""
from unittest.mock import MagicMock

import pytest

from tablemapper.entity import Entity
from tablemapper.exceptions import UnknownRepository
from tablemapper.query import ColumnEquals, Comparison, OrderBy, Raw
from tablemapper.relation import RelationDescriptor, RelationResolver, Via
from tablemapper.repository import RepositoryRegistry


class Tag(Entity):
    columns = ("id", "name")
    primary_keys = ("id",)


@pytest.fixture
def mock_database():
    database = MagicMock()
    database.fetch_all.return_value = [{"id": 1, "name": "python"}, {"id": 2, "name": "sql"}]
    return database


@pytest.fixture
def via_registry(mock_database):
    registry = RepositoryRegistry(mock_database)
    registry.register_table("tags", {"t": "tags"}, Tag)
    return registry


class TestResolve:
    """Tests for RelationResolver.resolve() without a via table"""

    def test_single_returns_first_match(self, registry, sample_data):
        resolver = RelationResolver(registry)
        descriptor = RelationDescriptor.single("author_id", "authors", "id")

        author = resolver.resolve(descriptor, {"author_id": 1})

        assert author.get("name") == "Ada"
        assert not author.is_dirty()

    def test_single_without_match_returns_none(self, registry, sample_data):
        resolver = RelationResolver(registry)
        descriptor = RelationDescriptor.single("author_id", "authors", "id")

        assert resolver.resolve(descriptor, {"author_id": 404}) is None

    def test_many_returns_rows_in_order(self, registry, sample_data):
        resolver = RelationResolver(registry)
        descriptor = RelationDescriptor.many("id", "posts", "author_id", order=["id DESC"])

        posts = resolver.resolve(descriptor, {"id": 1})

        assert [p.get("id") for p in posts] == [8, 7]

    def test_target_repository_defaults_apply(self, registry, sample_data):
        resolver = RelationResolver(registry)
        descriptor = RelationDescriptor.many("id", "tags", "post_id")

        tags = resolver.resolve(descriptor, {"id": 8})

        # the tags repository orders by name
        assert [t.get("name") for t in tags] == ["databases", "python"]

    def test_static_conditions_are_applied(self, registry, sample_data):
        resolver = RelationResolver(registry)
        descriptor = RelationDescriptor.many("id", "comments", "post_id", conditions={"status": "published"})

        comments = resolver.resolve(descriptor, {"id": 8})

        assert [c.get("body") for c in comments] == ["Nice", "Thanks"]

    def test_static_conditions_win_on_collision(self, registry, sample_data):
        resolver = RelationResolver(registry)
        descriptor = RelationDescriptor.many("id", "comments", "post_id", conditions={"post_id": 8})

        comments = resolver.resolve(descriptor, {"id": 7})

        assert len(comments) == 3

    @pytest.mark.parametrize(
        "descriptor,expected",
        [
            (RelationDescriptor.single("author_id", "authors", "id"), None),
            (RelationDescriptor.many("id", "posts", "author_id"), []),
            (RelationDescriptor.many("id", "comments", "post_id", conditions={"status": "published"}), []),
        ],
    )
    def test_null_keys_short_circuit(self, registry, sample_data, descriptor, expected):
        resolver = RelationResolver(registry)

        result = resolver.resolve(descriptor, {"id": None, "author_id": None})

        assert result == expected
        assert sample_data.statements == []

    def test_partial_keys_match_on_present_values(self, registry, sample_data):
        resolver = RelationResolver(registry)
        descriptor = RelationDescriptor.many(["id", "kind"], "posts", ["author_id", "status"])

        posts = resolver.resolve(descriptor, {"id": 1, "kind": None})

        assert len(posts) == 2
        select = sample_data.selects[0]
        assert select.where_clause.predicates == [Comparison("author_id", "=", 1)]

    def test_unknown_repository_raises(self, registry):
        resolver = RelationResolver(registry)

        with pytest.raises(UnknownRepository):
            resolver.resolve(RelationDescriptor("id", "nowhere"), {"id": 1})


class TestResolveVia:
    """Tests for RelationResolver.resolve() through an intermediate table"""

    def test_derived_join_condition(self, via_registry, mock_database):
        resolver = RelationResolver(via_registry)
        descriptor = RelationDescriptor.many(
            "id", "tags", "id", via=Via("post_tags", join="tag_id", column="post_id"), order="name"
        )

        tags = resolver.resolve(descriptor, {"id": 7})

        assert [t.get("name") for t in tags] == ["python", "sql"]
        select = mock_database.fetch_all.call_args.args[0]
        assert select.where_clause.predicates == [Comparison("post_tags.post_id", "=", 7)]
        assert len(select.joins) == 1
        join = select.joins[0]
        assert join.table.name == "post_tags"
        assert join.columns == ()
        assert join.on.predicates == [ColumnEquals("t.id", "post_tags.tag_id")]
        assert select.order_by == [OrderBy("name")]

    def test_match_column_defaults_to_target_column(self, via_registry, mock_database):
        resolver = RelationResolver(via_registry)
        descriptor = RelationDescriptor.many(["id"], "tags", ["tag_id"], via=Via("post_tags"))

        resolver.resolve(descriptor, {"id": 3})

        select = mock_database.fetch_all.call_args.args[0]
        assert select.where_clause.predicates == [Comparison("post_tags.tag_id", "=", 3)]
        assert select.joins[0].on.predicates == [ColumnEquals("t.tag_id", "post_tags.tag_id")]

    def test_multi_column_join_is_anded(self, via_registry, mock_database):
        resolver = RelationResolver(via_registry)
        descriptor = RelationDescriptor.many(["a", "b"], "tags", ["x", "y"], via=Via("links"))

        resolver.resolve(descriptor, {"a": 1, "b": 2})

        select = mock_database.fetch_all.call_args.args[0]
        assert select.joins[0].on.predicates == [
            ColumnEquals("t.x", "links.x"),
            ColumnEquals("t.y", "links.y"),
        ]

    def test_explicit_join_condition(self, via_registry, mock_database):
        resolver = RelationResolver(via_registry)
        descriptor = RelationDescriptor.single(
            "id", "tags", via=Via("post_tags", join_condition="t.id = post_tags.tag_id", column="post_id")
        )

        tag = resolver.resolve(descriptor, {"id": 7})

        assert tag.get("id") == 1
        select = mock_database.fetch_all.call_args.args[0]
        assert select.joins[0].on.predicates == [Raw("t.id = post_tags.tag_id")]

    def test_null_keys_skip_the_query(self, via_registry, mock_database):
        resolver = RelationResolver(via_registry)
        descriptor = RelationDescriptor.many("id", "tags", via=Via("post_tags", column="post_id"))

        assert resolver.resolve(descriptor, {"id": None}) == []
        mock_database.fetch_all.assert_not_called()


class TestResolveFor:
    """Tests for RelationResolver.resolve_for() as an entity callback"""

    def test_uses_entity_relation_and_values(self, registry, sample_data):
        resolver = RelationResolver(registry)
        post = registry.get("posts").entity_class().synch({"id": 8, "author_id": 1})

        author = resolver.resolve_for(post, "author")

        assert author.get("email") == "ada@example.com"

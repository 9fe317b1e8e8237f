"""Unit tests for the DumpRestorer."""

import pytest

from src.content_deploy.dump.builder import DumpBuilder
from src.content_deploy.dump.restorer import DumpRestorer
from src.content_deploy.utils.exceptions import MissingDependencyError, SchemaMismatchError


class FakeResolver:
    """Resolver over a fixed mapping of dependency names."""

    def __init__(self, entities):
        self.entities = entities
        self.requested = []

    def resolve_entity_dependency(self, dependency_name):
        self.requested.append(dependency_name)
        if dependency_name not in self.entities:
            raise MissingDependencyError(dependency_name)
        return self.entities[dependency_name]


class TestDumpRestorer:
    """Test converting dumps to importable field values."""

    def test_reference_items_get_live_entities(self, site, article_dump):
        """Test that dependency names are replaced with resolved entities."""
        term = site.add_term()
        text_format = site.store.load("filter_format", "basic_html")
        resolver = FakeResolver({site.TERM_NAME: term, site.FORMAT_NAME: text_format})

        fields = DumpRestorer(site.store, resolver).get_importable_fields(article_dump)

        assert fields["field_tags"] == [{"entity": term}]
        assert fields["field_format"] == [{"entity": text_format}]
        assert fields["field_image"] == []
        assert fields["title"] == "Hello"
        assert fields["body"] == [{"value": "<p>Hello world</p>", "format": "basic_html"}]

    def test_key_fields_pass_through(self, site, article_dump):
        """Test that entity key fields are kept as dumped."""
        resolver = FakeResolver({site.TERM_NAME: object(), site.FORMAT_NAME: object()})

        fields = DumpRestorer(site.store, resolver).get_importable_fields(article_dump)

        assert fields["type"] == "article"
        assert fields["uuid"] == site.NODE_UUID

    def test_returned_values_are_copies(self, site, article_dump):
        """Test that changing importable values leaves the dump intact."""
        resolver = FakeResolver({site.TERM_NAME: object(), site.FORMAT_NAME: object()})

        fields = DumpRestorer(site.store, resolver).get_importable_fields(article_dump)
        fields["body"][0]["value"] = "<p>Changed</p>"

        assert article_dump.fields["body"] == [
            {"value": "<p>Hello world</p>", "format": "basic_html"}
        ]

    def test_missing_dependency_propagates(self, site, article_dump):
        """Test that resolver failures are not swallowed."""
        resolver = FakeResolver({site.FORMAT_NAME: object()})

        with pytest.raises(MissingDependencyError) as exc_info:
            DumpRestorer(site.store, resolver).get_importable_fields(article_dump)

        assert exc_info.value.dependency_name == site.TERM_NAME

    def test_undefined_field(self, site):
        """Test that a field missing from the live schema raises."""
        dump = (
            DumpBuilder()
            .set_entity_type_id("node")
            .set_bundle("article")
            .set_uuid("UUID-1")
            .set_fields({"field_removed": "x"})
            .get()
        )

        with pytest.raises(SchemaMismatchError) as exc_info:
            DumpRestorer(site.store, FakeResolver({})).get_importable_fields(dump)

        assert exc_info.value.field_name == "field_removed"

    def test_raw_target_id_items_untouched(self, site):
        """Test that items without an entity name are not resolved."""
        dump = (
            DumpBuilder()
            .set_entity_type_id("node")
            .set_bundle("article")
            .set_uuid("UUID-1")
            .set_fields({"field_tags": [{"target_id": 999}]})
            .get()
        )
        resolver = FakeResolver({})

        fields = DumpRestorer(site.store, resolver).get_importable_fields(dump)

        assert fields["field_tags"] == [{"target_id": 999}]
        assert resolver.requested == []

"""Unit tests for the Importer."""

import pytest
from structlog.testing import capture_logs

from src.content_deploy.core.importer import Importer
from src.content_deploy.dependency.resolver import EntityDependencyEnsurer, EntityDependencyResolver
from src.content_deploy.dump.builder import DumpBuilder
from src.content_deploy.store.memory import InMemoryEntityStore
from src.content_deploy.store.schema import EntityTypeDefinition, FieldDefinition
from src.content_deploy.utils.exceptions import CyclicDependencyError, MissingDependencyError


class TestImporter:
    """Test importing dumps into a live store."""

    @pytest.fixture
    def make_importer(self, target_site, storage, target_files_dir):
        """Get a factory for importers from the sync storage into the target site."""

        def factory(names):
            return Importer(
                "sync", names, target_site.store, storage, {"public": target_files_dir}
            )

        return factory

    def test_create_then_update(self, make_importer, target_site, storage, article_dump):
        """Test that the first import creates and the second one updates."""
        term = target_site.add_term()
        storage.save(article_dump)

        first = make_importer([article_dump.dependency_name]).import_dumps()
        second = make_importer([article_dump.dependency_name]).import_dumps()

        assert first.as_dict() == {"created": 1, "updated": 0}
        assert second.as_dict() == {"created": 0, "updated": 1}
        assert target_site.store.query("node") == [1]

        node = target_site.store.load("node", 1)
        assert node.uuid == article_dump.uuid
        assert node.get("field_tags") == [{"target_id": term.id}]
        assert node.get("field_format") == [{"target_id": "basic_html"}]
        assert node.get("title") == [{"value": "Hello"}]

    def test_update_overwrites_fields(self, make_importer, target_site, storage, article_dump):
        """Test that an existing record takes the staged values."""
        term = target_site.add_term()
        target_site.add_article(title="Old title", tags=[term])
        storage.save(article_dump)

        result = make_importer([article_dump.dependency_name]).import_dumps()

        assert result.as_dict() == {"created": 0, "updated": 1}
        node = target_site.store.load_by_properties("node", uuid=article_dump.uuid)[0]
        assert node.get("title") == [{"value": "Hello"}]

    def test_missing_dependency_aborts(self, make_importer, target_site, storage, article_dump):
        """Test that an unresolvable dependency fails before anything is written."""
        storage.save(article_dump)

        with pytest.raises(MissingDependencyError) as exc_info:
            make_importer([article_dump.dependency_name]).import_dumps()

        assert exc_info.value.dependency_name == target_site.TERM_NAME
        assert str(exc_info.value) == f"Dependency {target_site.TERM_NAME} is missing."
        assert target_site.store.query("node") == []

    @pytest.mark.parametrize("reverse", [False, True])
    def test_dependencies_first_regardless_of_order(
        self, make_importer, target_site, storage, article_dump, term_dump, reverse
    ):
        """Test that staged dependencies are imported before their dependents."""
        storage.save(article_dump)
        storage.save(term_dump)
        names = [article_dump.dependency_name, term_dump.dependency_name]
        if reverse:
            names.reverse()

        result = make_importer(names).import_dumps()

        assert result.as_dict() == {"created": 2, "updated": 0}
        assert result.imported == [term_dump.dependency_name, article_dump.dependency_name]

        term = target_site.store.load_by_properties("taxonomy_term", uuid=term_dump.uuid)[0]
        node = target_site.store.load_by_properties("node", uuid=article_dump.uuid)[0]
        assert node.get("field_tags") == [{"target_id": term.id}]

    def test_each_record_counted_once(self, make_importer, storage, article_dump, term_dump):
        """Test that a dump both requested and depended upon is imported once."""
        storage.save(article_dump)
        storage.save(term_dump)

        result = make_importer(
            [term_dump.dependency_name, article_dump.dependency_name, term_dump.dependency_name]
        ).import_dumps()

        assert result.created == 2
        assert result.imported.count(term_dump.dependency_name) == 1

    def test_cycle_is_rejected(self, make_importer, target_site, storage):
        """Test that dumps depending on each other raise instead of recursing."""
        name_a = "node:article:UUID-A"
        name_b = "node:article:UUID-B"
        for uuid, other in (("UUID-A", name_b), ("UUID-B", name_a)):
            storage.save(
                DumpBuilder()
                .set_entity_type_id("node")
                .set_bundle("article")
                .set_uuid(uuid)
                .set_fields({"title": uuid, "type": "article", "uuid": uuid})
                .add_dependency("content", other)
                .get()
            )

        with pytest.raises(CyclicDependencyError) as exc_info:
            make_importer([name_a, name_b]).import_dumps()

        assert exc_info.value.cycle == [name_b, name_a, name_b]
        assert target_site.store.query("node") == []

    def test_missing_requested_dump_is_skipped(self, make_importer, storage, term_dump):
        """Test that a requested name without a dump file is logged and skipped."""
        storage.save(term_dump)

        with capture_logs() as logs:
            result = make_importer(
                ["node:article:absent", term_dump.dependency_name]
            ).import_dumps()

        assert result.skipped == ["node:article:absent"]
        assert result.created == 1
        assert any(
            log["event"] == "Dump not found, skipping" and log["log_level"] == "warning"
            for log in logs
        )

    def test_blob_is_copied_to_live_location(
        self, make_importer, site, storage, file_dump, target_files_dir
    ):
        """Test that the staged blob lands at the URI's live path."""
        site.add_file()
        storage.save(file_dump)

        result = make_importer([file_dump.dependency_name]).import_dumps()

        assert result.created == 1
        assert (target_files_dir / "images" / "cat.png").read_bytes() == site.BLOB_CONTENT

    def test_missing_blob_file_is_warned(self, make_importer, storage, sync_dir, file_dump):
        """Test that a missing blob file does not stop the import."""
        sync_dir.mkdir()
        storage.get_dump_path(file_dump.dependency_name).write_text(
            file_dump.to_yaml(), encoding="utf-8"
        )

        with capture_logs() as logs:
            result = make_importer([file_dump.dependency_name]).import_dumps()

        assert result.created == 1
        warnings = [log for log in logs if log["log_level"] == "warning"]
        assert [log["event"] for log in warnings] == ["Blob file does not exist"]
        assert warnings[0]["dependency_name"] == file_dump.dependency_name

    def test_result_timing(self, make_importer, storage, term_dump):
        """Test that the run is timed and identified."""
        storage.save(term_dump)

        result = make_importer([term_dump.dependency_name]).import_dumps()

        assert result.run_id
        assert result.started_at <= result.completed_at
        assert result.duration_seconds >= 0.0


class TestImporterResolution:
    """Test the resolver capabilities of the importer."""

    def test_resolve_requires_ensure(self, target_site, storage):
        """Test that resolution is cache-only."""
        importer = Importer("sync", [], target_site.store, storage)

        with pytest.raises(MissingDependencyError):
            importer.resolve_entity_dependency(target_site.FORMAT_NAME)

        entity = importer.ensure_dependency(target_site.FORMAT_NAME)

        assert importer.resolve_entity_dependency(target_site.FORMAT_NAME) is entity
        assert entity.id == "basic_html"

    def test_ensure_live_content(self, target_site, storage):
        """Test ensuring a live content record by its dependency name."""
        term = target_site.add_term()
        importer = Importer("sync", [], target_site.store, storage)

        assert importer.ensure_dependency(target_site.TERM_NAME) is term

    def test_ensure_unknown(self, target_site, storage):
        """Test ensuring a name that exists nowhere."""
        importer = Importer("sync", [], target_site.store, storage)

        with pytest.raises(MissingDependencyError):
            importer.ensure_dependency("taxonomy_term:tags:nowhere")

    def test_ensure_type_missing_from_schema(self, storage):
        """Test that a dependency of a type the live site lacks is reported missing."""
        store = InMemoryEntityStore()
        store.define_entity_type(
            EntityTypeDefinition(id="node", keys={"id": "nid", "uuid": "uuid", "bundle": "type"}),
            [
                FieldDefinition(name="nid", type="integer"),
                FieldDefinition(name="uuid", type="uuid"),
                FieldDefinition(name="type", type="string"),
                FieldDefinition(name="title", type="string"),
            ],
        )
        store.define_bundle("node", "article")
        storage.save(
            DumpBuilder()
            .set_entity_type_id("node")
            .set_bundle("article")
            .set_uuid("UUID-1")
            .set_fields({"title": "Hello", "type": "article", "uuid": "UUID-1"})
            .add_dependency("content", "taxonomy_term:tags:UUID-2")
            .get()
        )

        with pytest.raises(MissingDependencyError) as exc_info:
            Importer("sync", ["node:article:UUID-1"], store, storage).import_dumps()

        assert exc_info.value.dependency_name == "taxonomy_term:tags:UUID-2"
        assert store.query("node") == []

    def test_importer_provides_both_capabilities(self, target_site, storage):
        """Test that the importer ensures and resolves, and the restorer only resolves."""
        importer = Importer("sync", [], target_site.store, storage)

        assert isinstance(importer, EntityDependencyEnsurer)
        assert isinstance(importer, EntityDependencyResolver)
        assert isinstance(importer.restorer.resolver, EntityDependencyResolver)

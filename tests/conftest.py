"""Pytest configuration and shared fixtures.

This module provides reusable fixtures for testing content deploy.
Fixtures are organized by category:
- Path fixtures: content directories and the ``public://`` files directory
- Store fixtures: an in-memory site schema, empty or populated with records
- Data fixtures: dumps built without a store
"""

from pathlib import Path
from typing import Any

import pytest
import structlog

from src.content_deploy.dump.builder import DumpBuilder
from src.content_deploy.dump.models import Blob, Dump
from src.content_deploy.dump.storage import DumpStorage
from src.content_deploy.observability.logger import clear_all_context
from src.content_deploy.store.memory import Entity, InMemoryEntityStore
from src.content_deploy.store.schema import EntityTypeDefinition, FieldDefinition

NODE_UUID = "5f0c8a52-1c2b-4f5e-9d0a-6b1c2d3e4f50"
TERM_UUID = "97370a5d-ea40-499d-a9a2-59f02d2820dc"
FILE_UUID = "0b6c7a1e-3d4f-4a5b-8c9d-0e1f2a3b4c5d"

NODE_NAME = f"node:article:{NODE_UUID}"
TERM_NAME = f"taxonomy_term:tags:{TERM_UUID}"
FILE_NAME = f"file:file:{FILE_UUID}"
FORMAT_NAME = "config:filter_format.basic_html"

BLOB_CONTENT = b"\x89PNG fake image bytes"


# =============================================================================
# Logging isolation
# =============================================================================


@pytest.fixture(autouse=True)
def reset_logging():
    """Restore default structlog configuration and clear log context after each test."""
    yield
    structlog.reset_defaults()
    clear_all_context()


# =============================================================================
# Path Fixtures
# =============================================================================


@pytest.fixture
def files_dir(tmp_path: Path) -> Path:
    """Get the directory behind ``public://`` of the source site."""
    path = tmp_path / "files"
    path.mkdir()
    return path


@pytest.fixture
def stream_wrappers(files_dir: Path) -> dict[str, Path]:
    """Get stream wrappers of the source site."""
    return {"public": files_dir}


@pytest.fixture
def sync_dir(tmp_path: Path) -> Path:
    """Get the path of the ``sync`` content directory (not created)."""
    return tmp_path / "sync"


@pytest.fixture
def storage(sync_dir: Path, stream_wrappers: dict[str, Path]) -> DumpStorage:
    """Create dump storage on the sync directory."""
    return DumpStorage(sync_dir, stream_wrappers)


# =============================================================================
# Store Fixtures
# =============================================================================


def define_site_schema(store: InMemoryEntityStore) -> InMemoryEntityStore:
    """
    Declare the schema of a small site.

    - ``node`` with bundle ``article`` (body, tags, image, text format)
    - ``taxonomy_term`` with bundle ``tags``
    - ``file`` (single bundle, with a blob)
    - ``filter_format`` configuration objects
    """
    store.define_entity_type(
        EntityTypeDefinition(id="filter_format", kind="config", keys={"id": "format"}),
        [
            FieldDefinition(name="format", type="string"),
            FieldDefinition(name="name", type="string"),
        ],
    )
    store.define_entity_type(
        EntityTypeDefinition(
            id="taxonomy_term", keys={"id": "tid", "uuid": "uuid", "bundle": "vid"}
        ),
        [
            FieldDefinition(name="tid", type="integer"),
            FieldDefinition(name="uuid", type="uuid"),
            FieldDefinition(name="vid", type="string"),
            FieldDefinition(name="name", type="string"),
            FieldDefinition(name="changed", type="changed"),
        ],
    )
    store.define_bundle("taxonomy_term", "tags")
    store.define_entity_type(
        EntityTypeDefinition(id="file", keys={"id": "fid", "uuid": "uuid"}, blob_uri_field="uri"),
        [
            FieldDefinition(name="fid", type="integer"),
            FieldDefinition(name="uuid", type="uuid"),
            FieldDefinition(name="filename", type="string"),
            FieldDefinition(name="uri", type="uri"),
            FieldDefinition(name="created", type="created"),
        ],
    )
    store.define_entity_type(
        EntityTypeDefinition(
            id="node", keys={"id": "nid", "revision": "vid", "uuid": "uuid", "bundle": "type"}
        ),
        [
            FieldDefinition(name="nid", type="integer"),
            FieldDefinition(name="vid", type="integer"),
            FieldDefinition(name="uuid", type="uuid"),
            FieldDefinition(name="type", type="string"),
            FieldDefinition(name="title", type="string"),
            FieldDefinition(name="created", type="created"),
            FieldDefinition(name="changed", type="changed"),
        ],
    )
    store.define_bundle(
        "node",
        "article",
        [
            FieldDefinition(name="body", type="text_with_summary"),
            FieldDefinition(
                name="field_tags", type="entity_reference", target_type="taxonomy_term"
            ),
            FieldDefinition(name="field_image", type="image", target_type="file"),
            FieldDefinition(
                name="field_format", type="entity_reference", target_type="filter_format"
            ),
        ],
    )
    return store


class Site:
    """
    Record factory for one in-memory site.

    Attributes:
        store: The site's store
        files_dir: Directory behind the site's ``public://`` scheme
    """

    NODE_UUID = NODE_UUID
    TERM_UUID = TERM_UUID
    FILE_UUID = FILE_UUID
    NODE_NAME = NODE_NAME
    TERM_NAME = TERM_NAME
    FILE_NAME = FILE_NAME
    FORMAT_NAME = FORMAT_NAME
    BLOB_CONTENT = BLOB_CONTENT

    def __init__(self, store: InMemoryEntityStore, files_dir: Path) -> None:
        self.store = store
        self.files_dir = files_dir

    def add_text_format(self) -> Entity:
        """Create the ``basic_html`` text format."""
        text_format = self.store.create(
            "filter_format", {"format": "basic_html", "name": "Basic HTML"}
        )
        self.store.save(text_format)
        return text_format

    def add_term(self, name: str = "Cats", uuid: str = TERM_UUID) -> Entity:
        """Create a tag."""
        term = self.store.create("taxonomy_term", {"vid": "tags", "uuid": uuid, "name": name})
        self.store.save(term)
        return term

    def add_file(self, uuid: str = FILE_UUID, content: bytes = BLOB_CONTENT) -> Entity:
        """Create an image file record and write its binary under ``public://images``."""
        image_path = self.files_dir / "images" / "cat.png"
        image_path.parent.mkdir(parents=True, exist_ok=True)
        image_path.write_bytes(content)

        file_entity = self.store.create(
            "file", {"uuid": uuid, "filename": "cat.png", "uri": "public://images/cat.png"}
        )
        self.store.save(file_entity)
        return file_entity

    def add_article(
        self,
        title: str = "Hello",
        uuid: str = NODE_UUID,
        tags: list[Entity] | None = None,
        image: Entity | None = None,
    ) -> Entity:
        """Create an article referencing tags, an image and the basic_html format."""
        values: dict[str, Any] = {
            "type": "article",
            "uuid": uuid,
            "title": title,
            "created": 1700000000,
            "body": [{"value": "<p>Hello world</p>", "format": "basic_html"}],
            "field_tags": [{"target_id": tag.id} for tag in tags or []],
            "field_format": [{"target_id": "basic_html"}],
        }
        if image is not None:
            values["field_image"] = [{"target_id": image.id, "alt": "A cat"}]

        node = self.store.create("node", values)
        self.store.save(node)
        return node


@pytest.fixture
def store() -> InMemoryEntityStore:
    """Create a store with the site schema and the basic_html format, no content."""
    return define_site_schema(InMemoryEntityStore())


@pytest.fixture
def site(store: InMemoryEntityStore, files_dir: Path) -> Site:
    """Get the record factory of the source site, with the basic_html format created."""
    site = Site(store, files_dir)
    site.add_text_format()
    return site


@pytest.fixture
def populated_store(site: Site) -> InMemoryEntityStore:
    """Create a store holding one article tagged with one term and showing one image."""
    term = site.add_term()
    image = site.add_file()
    site.add_article(tags=[term], image=image)
    return site.store


@pytest.fixture
def target_files_dir(tmp_path: Path) -> Path:
    """Get the directory behind ``public://`` of the target site."""
    path = tmp_path / "target_files"
    path.mkdir()
    return path


@pytest.fixture
def target_site(target_files_dir: Path) -> Site:
    """Get a second, empty site sharing the schema and text format."""
    site = Site(define_site_schema(InMemoryEntityStore()), target_files_dir)
    site.add_text_format()
    return site


# =============================================================================
# Data Fixtures
# =============================================================================


@pytest.fixture
def term_dump() -> Dump:
    """Build the dump of a tag."""
    return (
        DumpBuilder()
        .set_entity_type_id("taxonomy_term")
        .set_bundle("tags")
        .set_uuid(TERM_UUID)
        .set_fields({"name": "Cats", "uuid": TERM_UUID, "vid": "tags"})
        .get()
    )


@pytest.fixture
def article_dump() -> Dump:
    """Build the dump of an article tagged with the term of ``term_dump``."""
    return (
        DumpBuilder()
        .set_entity_type_id("node")
        .set_bundle("article")
        .set_uuid(NODE_UUID)
        .set_fields(
            {
                "body": [{"value": "<p>Hello world</p>", "format": "basic_html"}],
                "field_format": [{"entity": FORMAT_NAME}],
                "field_image": [],
                "field_tags": [{"entity": TERM_NAME}],
                "title": "Hello",
                "type": "article",
                "uuid": NODE_UUID,
            }
        )
        .add_dependency("config", FORMAT_NAME)
        .add_dependency("content", TERM_NAME)
        .get()
    )


@pytest.fixture
def file_dump() -> Dump:
    """Build the dump of an image file."""
    return (
        DumpBuilder()
        .set_entity_type_id("file")
        .set_bundle("file")
        .set_uuid(FILE_UUID)
        .set_fields(
            {"filename": "cat.png", "uri": "public://images/cat.png", "uuid": FILE_UUID}
        )
        .set_blob(Blob.from_uri("public://images/cat.png", "0" * 40))
        .get()
    )

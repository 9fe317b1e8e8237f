"""Unit tests for the dependency-name codec."""

import pytest

from src.content_deploy.dependency.names import (
    DependencyName,
    format_config_dependency_name,
    format_dependency_name,
    from_basename,
    parse_dependency_name,
    to_basename,
)


class TestParseDependencyName:
    """Test parse_dependency_name."""

    def test_parse_full_content_name(self):
        """Test parsing a content name into type, bundle and uuid."""
        parsed = parse_dependency_name("node:article:UUID-1")

        assert parsed == DependencyName("node", "article", "UUID-1")
        assert parsed.kind == "content"
        assert parsed.config_name is None

    def test_parse_coarse_names(self):
        """Test that missing trailing components become None."""
        assert parse_dependency_name("node:article") == DependencyName("node", "article", None)
        assert parse_dependency_name("node") == DependencyName("node", None, None)

    def test_parse_keeps_colons_in_uuid(self):
        """Test that only the first two separators split."""
        parsed = parse_dependency_name("node:article:a:b")

        assert parsed.uuid == "a:b"

    def test_parse_config_name(self):
        """Test parsing a configuration dependency name."""
        parsed = parse_dependency_name("config:filter_format.basic_html")

        assert parsed.kind == "config"
        assert parsed.config_name == "filter_format.basic_html"

    def test_parse_empty_name(self):
        """Test parsing an empty string."""
        parsed = parse_dependency_name("")

        assert parsed.entity_type is None
        assert parsed.bundle is None


class TestFormatDependencyName:
    """Test formatting dependency names."""

    @pytest.mark.parametrize(
        "name",
        [
            "node:article:5f0c8a52-1c2b-4f5e-9d0a-6b1c2d3e4f50",
            "taxonomy_term:tags:97370a5d-ea40-499d-a9a2-59f02d2820dc",
            "file:file:0b6c7a1e-3d4f-4a5b-8c9d-0e1f2a3b4c5d",
        ],
    )
    def test_format_inverts_parse(self, name):
        """Test that format(parse(name)) returns the name for content names."""
        assert format_dependency_name(*parse_dependency_name(name)) == name

    def test_format_config_name(self):
        """Test building a configuration dependency name."""
        assert (
            format_config_dependency_name("filter_format.basic_html")
            == "config:filter_format.basic_html"
        )


class TestBasenames:
    """Test the on-disk basename mapping."""

    def test_to_basename(self):
        """Test that separators become dots."""
        assert to_basename("node:article:UUID-1") == "node.article.UUID-1"

    def test_from_basename_inverts_to_basename(self):
        """Test that content names survive the basename round trip."""
        name = "taxonomy_term:tags:97370a5d-ea40-499d-a9a2-59f02d2820dc"

        assert from_basename(to_basename(name)) == name

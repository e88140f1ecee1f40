"""Unit tests for metadata validation."""

import pytest

from zenarchive.errors import ValidationError
from zenarchive.models import Creator
from zenarchive.utils.metadata_validator import (
    DEFAULT_LICENSE,
    apply_defaults,
    ensure_valid,
    validate_metadata,
)


VALID_METADATA = {
    "title": "Discussion on open data",
    "description": "A thread about sharing research data openly.",
    "upload_type": "publication",
    "access_right": "open",
    "license": "CC-BY-4.0",
}


class TestApplyDefaults:
    """Test apply_defaults."""

    def test_defaults_filled_in(self):
        """Test that upload type, access right and license are set."""
        result = apply_defaults({"title": "Thread"})

        assert result["upload_type"] == "publication"
        assert result["access_right"] == "open"
        assert result["license"] == DEFAULT_LICENSE

    def test_closed_access_without_license(self):
        """Test that no license is added for closed access."""
        result = apply_defaults({"access_right": "closed"})

        assert "license" not in result

    def test_existing_values_kept(self):
        """Test that given values are not overwritten."""
        result = apply_defaults({"upload_type": "dataset", "license": "MIT"})

        assert result["upload_type"] == "dataset"
        assert result["license"] == "MIT"


class TestValidateMetadata:
    """Test validate_metadata."""

    def test_valid(self):
        """Test that valid metadata gives no errors."""
        assert validate_metadata(VALID_METADATA, [Creator(name="Jane Doe")]) == {}

    def test_missing_title(self):
        """Test that a blank title is reported."""
        errors = validate_metadata({**VALID_METADATA, "title": "  "}, [Creator(name="Jane")])

        assert errors == {"title": "Title is required"}

    def test_long_title(self):
        """Test that overly long titles are reported."""
        errors = validate_metadata({**VALID_METADATA, "title": "x" * 501}, [Creator(name="Jane")])

        assert "title" in errors

    def test_short_description(self):
        """Test that short descriptions are reported."""
        errors = validate_metadata({**VALID_METADATA, "description": "short"}, [Creator(name="Jane")])

        assert "description" in errors

    def test_no_visible_creator(self):
        """Test that at least one visible author is required."""
        errors = validate_metadata(VALID_METADATA, [Creator(name="Jane", hidden=True)])

        assert errors == {"creators": "At least one author is required"}

    def test_invalid_orcid(self):
        """Test that malformed ORCIDs are reported with the creator name."""
        creators = [Creator(name="Jane", orcid="1234"), Creator(name="Rick", orcid="0000-0002-1825-0097")]

        errors = validate_metadata(VALID_METADATA, creators)

        assert errors == {"creators": "Invalid ORCID format for: Jane"}

    def test_hidden_creator_orcid_ignored(self):
        """Test that hidden creators are not checked."""
        creators = [Creator(name="Jane"), Creator(name="Rick", orcid="bad", hidden=True)]

        assert validate_metadata(VALID_METADATA, creators) == {}

    def test_open_access_needs_license(self):
        """Test that open access without license is reported."""
        metadata = {key: value for key, value in VALID_METADATA.items() if key != "license"}

        errors = validate_metadata(metadata, [Creator(name="Jane")])

        assert errors == {"license": "License is required for open access"}


class TestEnsureValid:
    """Test ensure_valid."""

    def test_raises_with_field_errors(self):
        """Test that all field errors are carried by the exception."""
        with pytest.raises(ValidationError) as exc_info:
            ensure_valid({"title": ""}, [])

        errors = exc_info.value.field_errors
        assert set(errors) == {"title", "description", "creators"}

    def test_valid_passes(self):
        """Test that valid input does not raise."""
        ensure_valid(VALID_METADATA, [Creator(name="Jane")])

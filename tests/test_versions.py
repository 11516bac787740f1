"""Tests for version utilities."""


class TestExtractVersionNumber:
    """Tests for extract_version_number function."""

    def test_extract_semantic_version(self):
        from hyprdeck.versions import extract_version_number

        assert extract_version_number("v1.2.3") == "1.2.3"
        assert extract_version_number("1.2.3") == "1.2.3"

    def test_extract_two_part_version(self):
        from hyprdeck.versions import extract_version_number

        assert extract_version_number("v1.2") == "1.2"
        assert extract_version_number("1.2") == "1.2"

    def test_extract_single_part_version(self):
        from hyprdeck.versions import extract_version_number

        assert extract_version_number("v1") == "1"
        assert extract_version_number("1") == "1"

    def test_extract_from_complex_string(self):
        from hyprdeck.versions import extract_version_number

        assert extract_version_number("Version 1.2.3 released") == "1.2.3"
        assert extract_version_number("v1.0.0-beta") == "1.0.0"

    def test_debian_epoch_and_revision(self):
        """Epochs and Debian revisions are not part of the upstream version."""
        from hyprdeck.versions import extract_version_number

        assert extract_version_number("1:0.45.2-1+b1") == "0.45.2"
        assert extract_version_number("0.11.0-3") == "0.11.0"
        assert extract_version_number("2:1.7+deb13u1") == "1.7"

    def test_empty_string(self):
        from hyprdeck.versions import extract_version_number

        assert extract_version_number("") == ""

    def test_no_version_in_string(self):
        from hyprdeck.versions import extract_version_number

        assert extract_version_number("No version here") == ""

    def test_extract_four_part_version(self):
        from hyprdeck.versions import extract_version_number

        assert extract_version_number("1.2.3.4") == "1.2.3.4"


class TestCompareVersions:
    """Tests for compare_versions function."""

    def test_less_than(self):
        from hyprdeck.versions import compare_versions

        assert compare_versions("1.2.3", "1.2.4") == -1
        assert compare_versions("1.2", "1.3") == -1
        assert compare_versions("1", "2") == -1

    def test_greater_than(self):
        from hyprdeck.versions import compare_versions

        assert compare_versions("1.2.4", "1.2.3") == 1
        assert compare_versions("1.3", "1.2") == 1
        assert compare_versions("2", "1") == 1

    def test_equal(self):
        from hyprdeck.versions import compare_versions

        assert compare_versions("1.2.3", "1.2.3") == 0
        assert compare_versions("1.2", "1.2") == 0
        assert compare_versions("1", "1") == 0

    def test_version_strings(self):
        from hyprdeck.versions import compare_versions

        assert compare_versions("v1.2.3", "v1.2.3") == 0
        assert compare_versions("v1.2.3", "1.2.3") == 0
        assert compare_versions("v1.2.3", "v1.2.4") == -1

    def test_installed_package_versions(self):
        from hyprdeck.versions import compare_versions

        assert compare_versions("0.45.2-1", "0.45.2") == 0
        assert compare_versions("1:0.45.2-1", "0.46.0") == -1
        assert compare_versions("0.10.0-2", "0.9.4") == 1

    def test_invalid_versions_fallback_to_string(self):
        from hyprdeck.versions import compare_versions

        assert compare_versions("abc", "def") == -1
        assert compare_versions("unknown", "1.0.0") == 1  # "u" > "1" in ASCII
        assert compare_versions("", "1.0.0") == -1

    def test_extracts_version_from_complex_strings(self):
        """Test that version numbers are extracted from strings with extra text."""
        from hyprdeck.versions import compare_versions

        assert compare_versions("1.2.x", "1.2.y") == 0
        assert compare_versions("1.2.3-beta", "1.2.3-alpha") == 0

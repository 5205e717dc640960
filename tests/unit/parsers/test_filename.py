"""Unit tests for the result bundle filename parser."""

import pytest

from kgb.enums import BuildAction
from kgb.parsers import FilenameResult, parse_result_filename


class TestParseResultFilename:
    def test_parses_test_bundle(self) -> None:
        result = parse_result_filename("Test-PizzaCoach-2026.02.21_14-24-35--0800.xcresult")

        assert result == FilenameResult(scheme="PizzaCoach", action=BuildAction.TEST)

    def test_run_prefix_maps_to_build(self) -> None:
        result = parse_result_filename("Run-PizzaCoach-2026.02.21_11-03-09--0800.xcresult")

        assert result == FilenameResult(scheme="PizzaCoach", action=BuildAction.BUILD)

    def test_parses_build_bundle(self) -> None:
        result = parse_result_filename("Build-MyApp-2026.01.05_09-00-00+0100.xcresult")

        assert result == FilenameResult(scheme="MyApp", action=BuildAction.BUILD)

    def test_scheme_may_contain_hyphens_and_spaces(self) -> None:
        result = parse_result_filename("Test-My Cool-App-2026.02.21_14-24-35--0800.xcresult")

        assert result is not None
        assert result.scheme == "My Cool-App"

    def test_accepts_full_path_with_trailing_separator(self) -> None:
        result = parse_result_filename(
            "/dd/MyApp-abc/Logs/Test/Test-MyApp-2026.02.21_14-24-35--0800.xcresult/"
        )

        assert result == FilenameResult(scheme="MyApp", action=BuildAction.TEST)

    def test_accepts_name_without_extension(self) -> None:
        result = parse_result_filename("Test-MyApp-2026.02.21_14-24-35--0800")

        assert result == FilenameResult(scheme="MyApp", action=BuildAction.TEST)

    @pytest.mark.parametrize(
        "filename",
        [
            "Archive-MyApp-2026.02.21_14-24-35--0800.xcresult",
            "MyApp-2026.02.21_14-24-35--0800.xcresult",
            "Test-MyApp.xcresult",
            "Test-MyApp-2026-02-21_14-24-35.xcresult",
            "Test--2026.02.21_14-24-35--0800.xcresult",
            "",
        ],
    )
    def test_returns_none_for_names_off_convention(self, filename: str) -> None:
        assert parse_result_filename(filename) is None

    def test_prefix_match_is_case_sensitive(self) -> None:
        assert parse_result_filename("test-MyApp-2026.02.21_14-24-35--0800.xcresult") is None


class TestSchemeTimestampAmbiguity:
    # Known limitation: the naming convention has no delimiter between scheme
    # and timestamp, so a scheme containing "-DDDD.DD.DD_" is cut at that point.
    def test_scheme_containing_date_stamp_is_split_at_first_stamp(self) -> None:
        result = parse_result_filename(
            "Test-App-2025.01.01_Beta-2026.02.21_14-24-35--0800.xcresult"
        )

        assert result == FilenameResult(scheme="App", action=BuildAction.TEST)

    def test_hyphen_followed_by_digits_without_stamp_shape_is_kept(self) -> None:
        result = parse_result_filename("Test-App-2-2026.02.21_14-24-35--0800.xcresult")

        assert result is not None
        assert result.scheme == "App-2"

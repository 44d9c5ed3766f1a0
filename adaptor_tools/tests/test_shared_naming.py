import pytest

from adaptor_tools.shared.naming import (
    JS_KEYWORDS,
    capitalize_first,
    to_camel_case,
    to_identifier,
    to_pascal_case,
)


class TestCapitalizeFirst:
    @pytest.mark.parametrize(
        "input_str,expected",
        [
            ("quantity", "Quantity"),
            ("dateTime", "DateTime"),
            ("CodeableConcept", "CodeableConcept"),
            ("", ""),
        ],
    )
    def test_capitalize_first(self, input_str, expected):
        assert capitalize_first(input_str) == expected


class TestToPascalCase:
    @pytest.mark.parametrize(
        "input_str,expected",
        [
            ("entry-from-outside-target-facility-encounter", "EntryFromOutsideTargetFacilityEncounter"),
            ("hello_world", "HelloWorld"),
            ("helloWorld", "HelloWorld"),
            ("Encounter", "Encounter"),
            ("MedicationRequest", "MedicationRequest"),
            ("lab.result", "LabResult"),
            ("", ""),
        ],
    )
    def test_to_pascal_case(self, input_str, expected):
        assert to_pascal_case(input_str) == expected


class TestToCamelCase:
    @pytest.mark.parametrize(
        "input_str,expected",
        [
            ("Encounter", "encounter"),
            ("MedicationRequest", "medicationRequest"),
            ("target-facility-encounter", "targetFacilityEncounter"),
            ("", ""),
        ],
    )
    def test_to_camel_case(self, input_str, expected):
        assert to_camel_case(input_str) == expected


class TestToIdentifier:
    def test_valid_identifier_unchanged(self):
        assert to_identifier("encounter_targetFacility") == "encounter_targetFacility"

    def test_invalid_characters_replaced(self):
        assert to_identifier("lab-result.v2") == "lab_result_v2"

    def test_leading_digit(self):
        assert to_identifier("2nd") == "_2nd"

    def test_keyword_escaped(self):
        assert to_identifier("class") == "class_"
        assert "function" in JS_KEYWORDS
        assert to_identifier("function") == "function_"

    def test_empty(self):
        assert to_identifier("") == "_"

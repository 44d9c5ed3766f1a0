import json

import pytest

BASE_URL = "http://example.org/fhir/StructureDefinition"
CORE_URL = "http://hl7.org/fhir/StructureDefinition"


def element(path, *types, min=0, max="1", **extra):
    data = {"id": path, "path": path, "min": min, "max": max}
    if types:
        data["type"] = [t if isinstance(t, dict) else {"code": t} for t in types]
    data.update(extra)
    return data


def structure_definition(id, type, elements, derivation="constraint", **extra):
    data = {
        "resourceType": "StructureDefinition",
        "id": id,
        "url": f"{BASE_URL}/{id}" if derivation == "constraint" else f"{CORE_URL}/{type}",
        "name": extra.pop("name", id),
        "kind": "resource",
        "type": type,
        "derivation": derivation,
        "snapshot": {"element": [element(type)] + elements},
    }
    data.update(extra)
    return data


def bundle(*definitions):
    return {
        "resourceType": "Bundle",
        "entry": [{"resource": d} for d in definitions],
    }


@pytest.fixture
def encounter_profile():
    return structure_definition(
        "entry-from-outside-target-facility-encounter",
        "Encounter",
        [
            element("Encounter.id", "http://hl7.org/fhirpath/System.String"),
            element("Encounter.meta", "Meta"),
            element("Encounter.identifier", "Identifier", max="*", short="Encounter identifier"),
            element(
                "Encounter.identifier",
                "Identifier",
                max="1",
                id="Encounter.identifier:nid",
                sliceName="nid",
            ),
            element(
                "Encounter.status",
                "code",
                min=1,
                binding={"strength": "required", "valueSet": "http://hl7.org/fhir/ValueSet/encounter-status"},
            ),
            element("Encounter.class", "Coding", min=1),
            element(
                "Encounter.subject",
                {"code": "Reference", "targetProfile": [f"{CORE_URL}/Patient"]},
                min=1,
            ),
            element("Encounter.period", "Period"),
            element("Encounter.hospitalization", "BackboneElement"),
            element("Encounter.hospitalization.id", "string"),
            element("Encounter.hospitalization.extension", "Extension", max="*"),
            element("Encounter.hospitalization.admitSource", "CodeableConcept"),
            element("Encounter.hospitalization.reAdmission", "CodeableConcept", max="0"),
            element("Encounter.location", "BackboneElement", max="0"),
            element("Encounter.location.location", "Reference", min=1),
            element("Encounter.serviceProvider", "Reference"),
        ],
        title="Entry from outside target facility",
    )


@pytest.fixture
def target_facility_profile():
    return structure_definition(
        "target-facility-encounter",
        "Encounter",
        [
            element("Encounter.identifier", "Identifier", max="*"),
            element("Encounter.status", "code", min=1),
            element("Encounter.serviceProvider", "Reference"),
        ],
    )


@pytest.fixture
def observation_base():
    return structure_definition(
        "Observation",
        "Observation",
        [
            element("Observation.status", "code", min=1),
            element("Observation.code", "CodeableConcept", min=1),
            element("Observation.value[x]", "Quantity", "string", "CodeableConcept"),
        ],
        derivation="specialization",
    )


@pytest.fixture
def patient_base():
    return structure_definition(
        "Patient",
        "Patient",
        [element("Patient.gender", "code")],
        derivation="specialization",
    )


@pytest.fixture
def patient_profile():
    return structure_definition(
        "patient",
        "Patient",
        [
            element("Patient.identifier", "Identifier", max="*"),
            element("Patient.name", "HumanName", max="*"),
            element("Patient.gender", "code"),
            element("Patient.birthDate", "date"),
            element(
                "Patient.managingOrganization",
                {"code": "Reference", "targetProfile": [f"{CORE_URL}/Organization"]},
            ),
        ],
    )


@pytest.fixture
def definitions(encounter_profile, target_facility_profile, observation_base, patient_base, patient_profile):
    return bundle(
        encounter_profile,
        target_facility_profile,
        observation_base,
        patient_base,
        patient_profile,
        {"resourceType": "StructureDefinition", "id": "Identifier", "kind": "complex-type", "type": "Identifier"},
    )


@pytest.fixture
def definitions_file(tmp_path, definitions):
    path = tmp_path / "definitions" / "bundle.json"
    path.parent.mkdir()
    path.write_text(json.dumps(definitions), encoding="utf-8")
    return path

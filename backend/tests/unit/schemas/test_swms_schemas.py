"""
Unit Tests for the SWMS form schema
"""
import pytest
from pydantic import ValidationError

from riskify.schemas.swms import (
    REQUIRED_SIGNATURE_ROLES,
    PlantRiskLevel,
    RiskRating,
    SwmsDraftData,
    SwmsFormData,
)
from riskify.services.risk import RiskLevel


class TestRiskRating:

    def test_level_must_match_score_band(self):
        with pytest.raises(ValidationError, match="is medium"):
            RiskRating.model_validate({"level": "high", "score": 6})

    def test_level_derived_from_score(self):
        rating = RiskRating.model_validate({"score": 16})

        assert rating.level == RiskLevel.EXTREME

    def test_legacy_bare_level(self):
        rating = RiskRating.model_validate("High")

        assert rating.level == RiskLevel.HIGH
        assert rating.score == 15

    def test_score_range(self):
        with pytest.raises(ValidationError):
            RiskRating.model_validate({"level": "extreme", "score": 30})


class TestSwmsFormData:

    def test_valid_form_parses_camel_case(self, form_payload):
        form = SwmsFormData.model_validate(form_payload)

        assert form.project_name == "Test Project"
        assert form.work_activities[0].initial_risk.score == 20
        assert form.plant_equipment[0].risk_level == PlantRiskLevel.HIGH
        assert form.high_risk_activities[0].risk_level == RiskLevel.EXTREME

    def test_blank_required_field_rejected(self, make_form):
        with pytest.raises(ValidationError) as exc_info:
            SwmsFormData.model_validate(make_form(projectName="   "))

        assert any(error["loc"] == ("projectName",) for error in exc_info.value.errors())

    def test_draft_accepts_partial_state(self):
        draft = SwmsDraftData.model_validate({"projectName": "Half done"})

        assert draft.project_name == "Half done"
        assert draft.work_activities == []
        with pytest.raises(ValidationError):
            draft.to_form()

    def test_draft_promotes_to_form(self, form_payload):
        draft = SwmsDraftData.model_validate(form_payload)

        assert isinstance(draft.to_form(), SwmsFormData)

    def test_json_dict_uses_camel_case(self, form_payload):
        data = SwmsFormData.model_validate(form_payload).to_json_dict()

        assert "projectName" in data
        assert "project_name" not in data
        assert data["workActivities"][0]["initialRisk"] == {"level": "extreme", "score": 20}

    def test_risk_violations(self, make_form, make_activity):
        form = SwmsFormData.model_validate(make_form(workActivities=[
            make_activity(1, initial=6, residual=4),
            make_activity(2, initial=6, residual=12),
        ]))

        assert form.risk_violations() == ["Activity 2"]

    def test_plant_violation(self, make_form):
        form = SwmsFormData.model_validate(make_form(plantEquipment=[{
            "id": "pe-1", "equipment": "Excavator", "riskLevel": "medium",
            "initialRisk": {"score": 4}, "residualRisk": {"score": 9},
        }]))

        assert form.risk_violations() == ["Excavator"]

    def test_selected_items(self, form_payload):
        form = SwmsFormData.model_validate(form_payload)

        assert [a.id for a in form.selected_high_risk_activities] == ["energised-electrical"]
        assert [p.id for p in form.selected_ppe] == ["hard-hat"]

    def test_missing_signature_roles(self, form_payload, make_form):
        form = SwmsFormData.model_validate(form_payload)
        assert form.missing_signature_roles == REQUIRED_SIGNATURE_ROLES

        signed = SwmsFormData.model_validate(make_form(signatures=[
            {"signerName": "Sam", "role": role, "signatureData": "Sam", "signedAt": "2026-10-18T09:00:00"}
            for role in REQUIRED_SIGNATURE_ROLES
        ]))
        assert signed.signatures_complete is True
        assert signed.missing_signature_roles == []

    def test_json_round_trip_is_lossless(self, make_form, tiny_png):
        form = SwmsFormData.model_validate(make_form(companyLogo=tiny_png))

        assert SwmsFormData.model_validate(form.to_json_dict()) == form


class TestImageFields:
    """Logos must decode; drawn signatures must decode, typed names pass"""

    def test_logo_accepted(self, make_form, tiny_png):
        assert SwmsFormData.model_validate(make_form(companyLogo=tiny_png)).company_logo == tiny_png

    @pytest.mark.parametrize("logo", ["not-an-image", "data:image/png;base64,bm90LWFuLWltYWdl"])
    def test_invalid_logo_rejected(self, make_form, logo):
        with pytest.raises(ValidationError, match="companyLogo"):
            SwmsFormData.model_validate(make_form(companyLogo=logo))

    def test_draft_rejects_invalid_logo(self):
        with pytest.raises(ValidationError):
            SwmsDraftData.model_validate({"projectName": "Half done", "companyLogo": "not-an-image"})

    def test_typed_authorising_signature_allowed(self, make_form):
        form = SwmsFormData.model_validate(make_form(authorisingSignature="Jane Citizen"))

        assert form.authorising_signature == "Jane Citizen"

    def test_undecodable_drawn_signature_rejected(self, make_form):
        with pytest.raises(ValidationError, match="authorisingSignature"):
            SwmsFormData.model_validate(make_form(authorisingSignature="data:image/png;base64,bm90"))

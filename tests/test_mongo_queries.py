from agriconnect.application.ports.job_repo import JobSearchFilters
from agriconnect.application.ports.user_repo import (
    FarmerProfile, LabourerProfile, Location, profile_to_dict, profile_from_dict,
)
from agriconnect.infrastructure.persistence.mongo.repositories.job_repository_mongo import build_job_query


def test_default_search_only_open_jobs():
    assert build_job_query(JobSearchFilters()) == {"status": "open"}


def test_search_query_uses_document_fields():
    query = build_job_query(JobSearchFilters(
        state="Punjab", crop_type="wheat", experience_level="expert", min_wage=300, max_wage=800, status=None,
    ))
    assert query == {
        "location.state": "Punjab",
        "cropType": "wheat",
        "requirements.experienceRequired": "expert",
        "wages.amount": {"$gte": 300, "$lte": 800},
    }


def test_farmer_profile_document():
    profile = FarmerProfile(name="Asha", location=Location("Bihar", "Patna", "Danapur", {"lat": 25.6, "lng": 85.0}))
    doc = profile_to_dict(profile)
    assert doc["kind"] == "farmer"
    assert doc["location"]["coordinates"] == {"lat": 25.6, "lng": 85.0}
    assert doc["farmDetails"] == {"farmSize": 0, "primaryCrops": [], "farmingExperience": 0}
    assert profile_from_dict(doc) == profile


def test_labourer_profile_document():
    profile = LabourerProfile(name="Raju", location=Location("Bihar", "Patna", "Danapur"), skills=["weeding"], experience=2)
    doc = profile_to_dict(profile)
    assert doc["availability"]["maxTravelDistance"] == 50
    assert "farmDetails" not in doc
    assert profile_from_dict(doc, "labourer") == profile

"""Tests for request resolution and briefing schemas."""

from datetime import UTC, datetime

import pytest
from pydantic import ValidationError

from newsbrief.core.models import BriefingMode, SortOrder, SummaryFormat
from newsbrief.core.schemas import BriefingRequest, GenerateRequest, SourceWindow


def test_resolve_uses_saved_preferences_by_default(user_factory):
    user = user_factory(topics=["AI"], interests=["robotics"], job_industry="Law")

    request = BriefingRequest.resolve(GenerateRequest(), user)

    assert request.mode == BriefingMode.daily
    assert request.topics == ["AI"]
    assert request.interests == ["robotics"]
    assert request.job_industry == "Law"
    assert request.language == "en"
    assert request.time_range_hours == 24
    assert request.sort_by == SortOrder.published_at
    assert request.format == SummaryFormat.narrative


def test_resolve_overrides_win(user_factory):
    user = user_factory(topics=["AI"])
    overrides = GenerateRequest(
        mode="custom_news_query",
        topics=["Economy"],
        include_keywords=["inflation"],
        preferred_sources=["reuters"],
        language="de",
        time_range_hours=48,
        sort_by="popularity",
        format="bullet_points",
    )

    request = BriefingRequest.resolve(overrides, user)

    assert request.mode == BriefingMode.custom_news_query
    assert request.topics == ["Economy"]
    assert request.include_keywords == ["inflation"]
    assert request.preferred_sources == ["reuters"]
    assert request.language == "de"
    assert request.time_range_hours == 48
    assert request.sort_by == SortOrder.popularity
    assert request.format == SummaryFormat.bullet_points


def test_request_is_frozen():
    request = BriefingRequest(topics=["AI"])
    with pytest.raises(ValidationError):
        request.topics = ["Other"]


def test_with_profile_fills_only_gaps(user_factory):
    user = user_factory(topics=["AI"], interests=["chips"], job_industry="Retail", demographic="18-24")
    request = BriefingRequest(topics=["Economy"], job_industry="Finance")

    merged = request.with_profile(user)

    assert merged.topics == ["Economy"]
    assert merged.job_industry == "Finance"
    assert merged.interests == ["chips"]
    assert merged.demographic == "18-24"
    assert request.interests == []


def test_with_profile_without_user_is_identity():
    request = BriefingRequest(topics=["AI"])
    assert request.with_profile(None) is request


def test_generate_request_validates_ranges():
    with pytest.raises(ValidationError):
        GenerateRequest(time_range_hours=0)
    with pytest.raises(ValidationError):
        GenerateRequest(time_range_hours=721)
    with pytest.raises(ValidationError):
        GenerateRequest(language="xx")
    with pytest.raises(ValidationError):
        GenerateRequest(preferred_sources=[f"s{i}" for i in range(21)])


def test_request_json_round_trip_for_storage():
    request = BriefingRequest(topics=["AI"], sort_by="relevancy")
    stored = request.model_dump(mode="json")

    assert stored["sort_by"] == "relevancy"
    assert stored["mode"] == "daily"
    assert BriefingRequest.model_validate(stored) == request


def test_source_window_serializes_from_alias():
    window = SourceWindow(
        from_=datetime(2024, 1, 11, tzinfo=UTC), to=datetime(2024, 2, 15, tzinfo=UTC)
    )
    dumped = window.model_dump(by_alias=True)
    assert set(dumped) == {"from", "to"}
    assert SourceWindow.model_validate({"from": "2024-01-11T00:00:00Z", "to": "2024-02-15T00:00:00Z"}) == window

"""
Unit tests for SearchService using proper dependency injection.

Tests the orchestration layer that compiles filters once, fans the page,
count and facet reads out over the same predicate and merges the results.
"""

from datetime import datetime
from unittest.mock import Mock

import pytest

from cutdapper.core.exceptions import StorageError
from cutdapper.domain.facets import FacetResult, FacetType, FacetValue
from cutdapper.domain.predicates import compile_filters
from cutdapper.repositories.videos_repo import VideoSearchRepository
from cutdapper.schemas.search_request import parse_search_request
from cutdapper.services.search_service import SearchService, to_video_hit


def _row(vid, **kw):
    row = {
        "id": vid, "video_id": f"yt-{vid}", "title": f"Video {vid}", "description": "",
        "thumbnail_url": None, "duration": "PT5M", "channel_title": "Barber Academy",
        "tags": {}, "clipper_details": [],
        "created_at": datetime(2024, 1, 1), "updated_at": datetime(2024, 1, 1),
    }
    row.update(kw)
    return row


def _empty_facet(facet, predicate):
    facet_type = FacetType.NESTED_COUNT if facet.name == "tags" else FacetType.SIMPLE_COUNT
    return FacetResult(facet.name, facet_type, [], 0)


def _mock_repo(rows=(), total=0):
    repo = Mock()
    repo.fetch_page.return_value = list(rows)
    repo.count.return_value = total
    repo.facet_counts.side_effect = _empty_facet
    return repo


class TestSearchServiceExecution:
    def test_given_search_request_when_executing_then_returns_complete_response(self):
        """
        Given: A search request and a repository returning two rows of seven
        When: Executing the search
        Then: The response carries the rows, pagination and the echoed request
        """
        repo = _mock_repo(rows=[_row("v1"), _row("v2")], total=7)
        service = SearchService(repo=repo)
        req = parse_search_request({"pageSize": 2, "page": 1, "brands": ["Andis"]})

        response = service.execute(req)

        assert [v.id for v in response.videos] == ["v1", "v2"]
        assert response.pagination.total == 7
        assert response.pagination.total_pages == 4
        assert response.input == req

    def test_given_filters_when_executing_then_every_read_gets_the_same_predicate(self):
        """
        Given: A request with search, tag and paging filters
        When: Executing the search
        Then: Page, count and every facet read receive the same compiled predicate
        """
        repo = _mock_repo()
        service = SearchService(repo=repo, max_workers=4)
        req = parse_search_request({"search": "fade", "tags": {"hairstyle": ["fade"]}, "page": 3, "pageSize": 10})

        service.execute(req)

        expected = compile_filters(req)
        repo.fetch_page.assert_called_once_with(expected, 3, 10)
        repo.count.assert_called_once_with(expected)
        assert repo.facet_counts.call_count == 4
        assert {c.args[0].name for c in repo.facet_counts.call_args_list} == {"channels", "brands", "models", "tags"}
        assert all(c.args[1] == expected for c in repo.facet_counts.call_args_list)

    def test_given_zero_matches_when_executing_then_returns_empty_terminal_page(self):
        """
        Given: A repository with no matching rows
        When: Executing the search
        Then: The page is empty and total pages is zero
        """
        service = SearchService(repo=_mock_repo(total=0))

        response = service.execute(parse_search_request({}))

        assert response.videos == []
        assert response.pagination.total == 0
        assert response.pagination.total_pages == 0

    def test_given_facet_results_when_executing_then_formats_each_dimension(self):
        """
        Given: Facet results for every dimension
        When: Executing the search
        Then: Each dimension is formatted into the facets envelope
        """
        repo = _mock_repo(total=1)
        repo.facet_counts.side_effect = lambda facet, predicate: {
            "channels": FacetResult("channels", FacetType.SIMPLE_COUNT, [FacetValue("Barber Academy", 1)], 1),
            "brands": FacetResult("brands", FacetType.SIMPLE_COUNT, [FacetValue("Andis", 1)], 1),
            "models": FacetResult("models", FacetType.SIMPLE_COUNT, [], 0),
            "tags": FacetResult("tags", FacetType.NESTED_COUNT, [
                FacetValue("hairstyle", 1, children=[FacetValue("fade", 1)]),
            ], 1),
        }[facet.name]

        facets = SearchService(repo=repo).execute(parse_search_request({})).facets

        assert facets.channels[0].value == "Barber Academy"
        assert facets.brands[0].count == 1
        assert facets.models == []
        assert facets.tags["hairstyle"][0].value == "fade"

    @pytest.mark.parametrize("failing", ["fetch_page", "count", "facet_counts"])
    def test_given_any_read_fails_when_executing_then_whole_search_fails(self, failing):
        """
        Given: One of the page, count or facet reads failing
        When: Executing the search
        Then: The failure propagates and no partial envelope is returned
        """
        repo = _mock_repo(rows=[_row("v1")], total=1)
        getattr(repo, failing).side_effect = StorageError("boom")

        with pytest.raises(StorageError):
            SearchService(repo=repo, max_workers=6).execute(parse_search_request({}))


class TestVideoHitProjection:
    def test_given_clipper_details_when_projecting_then_nests_under_clipper_key(self):
        """
        Given: A row with clipper details
        When: Projecting it into a video hit
        Then: Each clipper is nested under a clipper key and timestamps are UTC strings
        """
        hit = to_video_hit(_row("v1", clipper_details=[
            {"id": "c1", "name": "Andis Master", "brand": "Andis", "model": "Master"},
        ]))

        dumped = hit.model_dump(by_alias=True)
        assert dumped["clippers"] == [
            {"clipper": {"id": "c1", "name": "Andis Master", "brand": "Andis", "model": "Master"}},
        ]
        assert dumped["createdAt"] == "2024-01-01T00:00:00Z"

    def test_given_missing_clipper_details_when_projecting_then_clippers_empty(self):
        """
        Given: A row without clipper details
        When: Projecting it into a video hit
        Then: The clippers list is empty
        """
        assert to_video_hit(_row("v1", clipper_details=None)).clippers == []


class TestSearchOverProjection:
    """End-to-end search against the three-video sqlite catalog."""

    @pytest.fixture
    def service(self, catalog):
        return SearchService(repo=VideoSearchRepository(catalog), max_workers=6)

    def test_given_fade_tag_filter_when_searching_then_returns_video1_with_filtered_brand_facet(self, service):
        """
        Given: The three-video catalog and a fade tag filter
        When: Searching
        Then: Only video1 matches and brand and model facets reflect it
        """
        response = service.execute(parse_search_request({"tags": {"hairstyle": ["fade"]}}))

        assert [v.id for v in response.videos] == ["video1"]
        assert response.pagination.total == 1
        assert [(f.value, f.count) for f in response.facets.brands] == [("Andis", 1)]
        assert [(f.value, f.count) for f in response.facets.models] == [("Master", 1)]

    def test_given_no_filters_and_page_size_two_when_searching_then_paginates(self, service):
        """
        Given: No filters and a page size of two
        When: Searching the first page
        Then: Two videos are returned out of three over two pages
        """
        response = service.execute(parse_search_request({"pageSize": 2, "page": 1}))

        assert len(response.videos) == 2
        assert response.pagination.total == 3
        assert response.pagination.total_pages == 2

    def test_given_text_search_when_searching_then_matches_title_case_insensitively(self, service):
        """
        Given: A lowercase search term
        When: Searching
        Then: The title match is found regardless of case
        """
        assert service.execute(parse_search_request({"search": "fade"})).pagination.total == 1

    @pytest.mark.parametrize("raw", [
        {},
        {"brands": ["Wahl"]},
        {"channels": ["Barber Academy"]},
        {"search": "tutorial"},
        {"tags": {"hairstyle": ["fade", "mohawk"]}},
    ])
    def test_given_any_filter_when_searching_then_channel_facet_sums_to_total(self, service, raw):
        """
        Given: Any combination of filters
        When: Searching
        Then: Channel facet counts sum to the total
        """
        response = service.execute(parse_search_request(raw))

        assert sum(f.count for f in response.facets.channels) == response.pagination.total

    def test_given_identical_requests_when_searching_twice_then_envelopes_are_identical(self, service):
        """
        Given: The same request issued twice
        When: Searching both times
        Then: The serialized envelopes are identical
        """
        raw = {"brands": ["Andis", "Wahl"], "pageSize": 2}

        first = service.execute(parse_search_request(raw)).model_dump_json(by_alias=True)
        second = service.execute(parse_search_request(raw)).model_dump_json(by_alias=True)

        assert first == second

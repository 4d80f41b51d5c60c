# features/steps/pagination_steps.py
from behave import when, then


@when('I request page 1 and page 2 with page size {size:d}')
def step_two_pages(ctx, size):
    """Request two consecutive pages of the unfiltered catalog."""
    ctx.pages = []
    for page in (1, 2):
        resp = ctx.client.post(ctx.search_url, json={"page": page, "pageSize": size})
        assert resp.status_code == 200
        ctx.pages.append({v["id"] for v in resp.json()["videos"]})


@then('the pages share no videos')
def step_disjoint(ctx):
    first, second = ctx.pages
    assert first.isdisjoint(second), "Pages should not share video IDs"


@then('together they contain all {n:d} videos')
def step_union(ctx, n):
    first, second = ctx.pages
    assert len(first | second) == n


@when('I send the same search twice')
def step_twice(ctx):
    payload = {"brands": ["Andis", "Wahl"], "tags": {"hairstyle": ["fade", "taper"]}, "pageSize": 4}
    ctx.responses = [ctx.client.post(ctx.search_url, json=payload) for _ in range(2)]


@then('both responses are identical')
def step_identical(ctx):
    first, second = ctx.responses
    assert first.status_code == second.status_code == 200
    assert first.content == second.content


@when('I search with page size {size:d}')
def step_page_size(ctx, size):
    ctx.last_response = ctx.client.post(ctx.search_url, json={"pageSize": size})


@then('I receive a 422 validation error')
def step_422_error(ctx):
    """Verify 422 validation error with details."""
    assert ctx.last_response.status_code == 422
    assert "detail" in ctx.last_response.json()


@when('I GET search with brands "{brand}" and tags \'{tags}\'')
def step_get_search(ctx, brand, tags):
    ctx.last_response = ctx.client.get(ctx.search_url, params={"brands": brand, "tags": tags})
    assert ctx.last_response.status_code == 200, ctx.last_response.text

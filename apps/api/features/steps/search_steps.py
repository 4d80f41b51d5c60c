# features/steps/search_steps.py
import ast
import json
from typing import Any, Dict

from behave import given, when, then


def _parse_literal(s: str):
    s = s.strip()
    if s == "" or s.lower() == "null":
        return None
    # accept JSON or Python literal
    try:
        return json.loads(s)
    except Exception:
        try:
            return ast.literal_eval(s)
        except Exception:
            return s


def _build_payload_from_table(table) -> Dict[str, Any]:
    payload: Dict[str, Any] = {}
    for row in table:
        key = row["key"].strip()
        val = _parse_literal(row["value"])
        if key in ("channels", "brands", "models") and isinstance(val, str):
            val = [val]
        payload[key] = val
    return payload


def _videos(ctx):
    return ctx.last_response.json()["videos"]


def _brands(video):
    return {c["clipper"]["brand"] for c in video["clippers"]}


# ---------------- Background ----------------
@given('a video catalog with clippers, channels and tags loaded') # type: ignore[no-untyped-def]
def step_seeded(ctx):
    # environment.py already seeded the database and refreshed the projection
    assert ctx.client is not None

@given('the search endpoint is available at "{path}"') # type: ignore[no-untyped-def]
def step_endpoint(ctx, path):
    ctx.search_url = path

# ---------------- Requests ----------------
@when('I search with') # type: ignore[no-untyped-def]
def step_search_with(ctx):
    payload = _build_payload_from_table(ctx.table)
    ctx.last_payload = payload
    ctx.last_response = ctx.client.post(ctx.search_url, json=payload)
    assert ctx.last_response.status_code == 200, ctx.last_response.text

# ---------------- Results ----------------
@then('the total is {total:d}') # type: ignore[no-untyped-def]
def step_total(ctx, total):
    assert ctx.last_response.json()["pagination"]["total"] == total

@then('the total pages is {pages:d}') # type: ignore[no-untyped-def]
def step_total_pages(ctx, pages):
    assert ctx.last_response.json()["pagination"]["totalPages"] == pages

@then('I receive at most {n:d} videos') # type: ignore[no-untyped-def]
def step_at_most(ctx, n):
    assert len(_videos(ctx)) <= n

@then('videos are sorted by createdAt desc then id') # type: ignore[no-untyped-def]
def step_sorted(ctx):
    keys = [(v["createdAt"], v["id"]) for v in _videos(ctx)]
    expected = sorted(keys, key=lambda t: t[1])
    expected = sorted(expected, key=lambda t: t[0], reverse=True)
    assert keys == expected, "videos not sorted by createdAt desc then id"

@then('every video has channel "{channel}"') # type: ignore[no-untyped-def]
def step_channel(ctx, channel):
    assert _videos(ctx), "expected at least one video"
    for v in _videos(ctx):
        assert v["channelTitle"] == channel

@then('every video has a clipper of brand "{brand}"') # type: ignore[no-untyped-def]
def step_brand(ctx, brand):
    assert _videos(ctx), "expected at least one video"
    for v in _videos(ctx):
        assert brand in _brands(v)

@then('every video has a clipper of either brand "{a}" or "{b}"') # type: ignore[no-untyped-def]
def step_brand_either(ctx, a, b):
    for v in _videos(ctx):
        assert _brands(v) & {a, b}

@then('the total equals the number of videos matching both filters') # type: ignore[no-untyped-def]
def step_intersection(ctx):
    channel_ids = _all_ids(ctx, {"channels": ctx.last_payload["channels"]})
    brand_ids = _all_ids(ctx, {"brands": ctx.last_payload["brands"]})
    assert ctx.last_response.json()["pagination"]["total"] == len(channel_ids & brand_ids)

def _all_ids(ctx, payload):
    resp = ctx.client.post(ctx.search_url, json={**payload, "pageSize": 100})
    assert resp.status_code == 200
    return {v["id"] for v in resp.json()["videos"]}

@then('every video has tag "{key}" equal to "{value}"') # type: ignore[no-untyped-def]
def step_tag(ctx, key, value):
    assert _videos(ctx), "expected at least one video"
    for v in _videos(ctx):
        assert v["tags"].get(key) == value

@then('the tags facet for "{key}" only lists "{value}"') # type: ignore[no-untyped-def]
def step_tag_facet(ctx, key, value):
    facet = ctx.last_response.json()["facets"]["tags"][key]
    assert [f["value"] for f in facet] == [value]

@then('the channel facet counts sum to the total') # type: ignore[no-untyped-def]
def step_channel_sum(ctx):
    data = ctx.last_response.json()
    assert sum(f["count"] for f in data["facets"]["channels"]) == data["pagination"]["total"]

@then('every video title contains "{text}" ignoring case') # type: ignore[no-untyped-def]
def step_title_contains(ctx, text):
    for v in _videos(ctx):
        assert text.lower() in v["title"].lower()

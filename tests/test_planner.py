from __future__ import annotations

import json
from unittest.mock import AsyncMock, MagicMock

import pytest

from faithsearch.agents.planner_agent import QueryPlanner, normalize_planner_response
from faithsearch.llm_client import MessageResponse, TextBlock, Usage
from faithsearch.services.errors import PlannerError

CATEGORIES = ["judaism", "christianity", "islam"]


def _payload(**overrides):
    queries = {
        key: {"query": f"{key} view on lending with interest", "numResults": 2}
        for key in CATEGORIES
    }
    queries.update(overrides)
    return json.dumps({"queries": queries})


def test_normalize_accepts_object_shape():
    planned = normalize_planner_response(_payload(), CATEGORIES)

    assert list(planned) == CATEGORIES
    assert planned["islam"].query == "islam view on lending with interest"
    assert planned["islam"].num_results == 2


def test_normalize_strips_code_fences():
    text = f"```json\n{_payload()}\n```"

    planned = normalize_planner_response(text, CATEGORIES)

    assert planned["judaism"].num_results == 2


def test_normalize_coerces_numeric_strings():
    planned = normalize_planner_response(
        _payload(islam={"query": "riba", "numResults": "4"}),
        CATEGORIES,
    )

    assert planned["islam"].num_results == 4


def test_normalize_maps_legacy_array_shape_positionally():
    text = json.dumps({"queries": ["torah interest", "usury bible", "riba quran"]})

    planned = normalize_planner_response(text, CATEGORIES)

    assert planned["christianity"].query == "usury bible"
    assert all(p.num_results == 3 for p in planned.values())


def test_normalize_rejects_short_legacy_array():
    text = json.dumps({"queries": ["torah interest"]})

    with pytest.raises(PlannerError, match="missing categories"):
        normalize_planner_response(text, CATEGORIES)


def test_normalize_rejects_missing_category():
    text = json.dumps({"queries": {"judaism": {"query": "q", "numResults": 1}}})

    with pytest.raises(PlannerError, match="christianity, islam"):
        normalize_planner_response(text, CATEGORIES)


@pytest.mark.parametrize("bad_value", [0, 6, "many", True, None, 2.5])
def test_normalize_rejects_bad_num_results(bad_value):
    with pytest.raises(PlannerError):
        normalize_planner_response(
            _payload(judaism={"query": "q", "numResults": bad_value}),
            CATEGORIES,
        )


def test_normalize_rejects_blank_query():
    with pytest.raises(PlannerError, match="non-empty"):
        normalize_planner_response(
            _payload(judaism={"query": "   ", "numResults": 1}),
            CATEGORIES,
        )


def test_normalize_keeps_raw_text_on_json_failure():
    with pytest.raises(PlannerError) as exc_info:
        normalize_planner_response("Sure! Here are your queries.", CATEGORIES)

    assert exc_info.value.raw == "Sure! Here are your queries."


def _fake_client(text: str) -> MagicMock:
    fake = MagicMock()
    fake.messages.create = AsyncMock(
        return_value=MessageResponse(
            content=[TextBlock(type="text", text=text)],
            usage=Usage(input_tokens=10, output_tokens=5),
        )
    )
    return fake


@pytest.mark.asyncio
async def test_query_planner_builds_plan_for_catalog(catalog):
    keys = catalog.keys()
    text = json.dumps({"queries": {k: {"query": f"{k} q", "numResults": 1} for k in keys}})
    planner = QueryPlanner(model="test-model", catalog=catalog)
    planner.client = _fake_client(text)

    plan = await planner.plan("Is lending money with interest allowed?")

    assert plan.categories() == keys
    assert plan.to_dict()["queries"]["sikhism"] == {"query": "sikhism q", "numResults": 1}
    assert planner.tokens_used == 15
    kwargs = planner.client.messages.create.await_args.kwargs
    assert kwargs["model"] == "test-model"
    assert '"buddhism"' in kwargs["system"]
    assert "Is lending money with interest allowed?" in kwargs["messages"][0]["content"]


@pytest.mark.asyncio
async def test_query_planner_wraps_llm_failures(catalog):
    planner = QueryPlanner(model="test-model", catalog=catalog)
    planner.client = MagicMock()
    planner.client.messages.create = AsyncMock(side_effect=RuntimeError("gateway down"))

    with pytest.raises(PlannerError, match="gateway down"):
        await planner.plan("question")


@pytest.mark.asyncio
async def test_query_planner_rejects_empty_prompt(catalog):
    planner = QueryPlanner(model="test-model", catalog=catalog)

    with pytest.raises(PlannerError):
        await planner.plan("   ")

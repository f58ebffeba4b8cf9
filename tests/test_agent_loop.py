import json

import pytest

from iris_agent.config import AgentSettings
from iris_agent.errors import MaxIterationsError, ModelProtocolError
from iris_agent.graph import route_after_llm, route_after_tools
from iris_agent.runner import build_transcript, run_agent
from iris_agent.steps import ActionStep, OutputStep, PlanStep, clean_json_response, parse_model_reply

PLAN = {"type": "plan", "plan": "I will use calculateMean on SepalLengthCm."}
ACTION = {"type": "action", "function": "calculateMean", "input": {"data": "iris", "column": "SepalLengthCm"}}
OUTPUT = {"type": "output", "output": "The mean sepal length is 5.84 cm."}


@pytest.fixture
def settings():
    return AgentSettings(max_iterations=10)


# ----------------------------
# Step parsing
# ----------------------------

def test_parse_model_reply_variants():
    assert isinstance(parse_model_reply(json.dumps(PLAN)), PlanStep)
    action = parse_model_reply(json.dumps(ACTION))
    assert isinstance(action, ActionStep)
    assert action.input["column"] == "SepalLengthCm"
    assert isinstance(parse_model_reply("```json\n" + json.dumps(OUTPUT) + "\n```"), OutputStep)


@pytest.mark.parametrize(
    "reply",
    [
        "not json",
        json.dumps({"type": "dance"}),
        json.dumps({"type": "action"}),
        json.dumps({"type": "observation", "observation": 1}),
    ],
)
def test_parse_model_reply_rejects_protocol_violations(reply):
    with pytest.raises(ModelProtocolError):
        parse_model_reply(reply)


def test_clean_json_response():
    assert clean_json_response('```json\n{"a": 1}\n```') == '{"a": 1}'
    assert clean_json_response('{"a": 1}') == '{"a": 1}'


# ----------------------------
# Routing
# ----------------------------

def test_routing():
    state = {"steps": [OUTPUT], "iterations": 1, "max_iterations": 10}
    assert route_after_llm(state) == "end"
    assert route_after_llm({**state, "steps": [ACTION]}) == "tools"
    assert route_after_llm({**state, "steps": [PLAN]}) == "llm"
    assert route_after_llm({**state, "steps": [PLAN], "iterations": 10}) == "end"
    assert route_after_tools(state) == "llm"
    assert route_after_tools({**state, "iterations": 10}) == "end"


# ----------------------------
# Full loop with a scripted model
# ----------------------------

def test_single_action_reaches_output(fake_model, context, settings):
    result = run_agent(
        "What is the average sepal length?",
        llm=fake_model(PLAN, ACTION, OUTPUT),
        context=context,
        settings=settings,
    )

    assert result.reply == OUTPUT["output"]
    assert [s["type"] for s in result.steps] == ["plan", "action", "observation", "output"]
    assert result.steps[-1]["type"] == "output"
    assert result.steps[2]["observation"] == pytest.approx(5.8433, abs=1e-3)

    # system, user, plan, action, observation, output
    assert [m["role"] for m in result.transcript] == ["system", "user", "assistant", "assistant", "user", "assistant"]
    observation = json.loads(result.transcript[4]["content"])
    assert observation["type"] == "observation"
    assert all(m["role"] != "system" for m in result.history)


def test_user_query_is_wrapped_as_json(fake_model, context, settings):
    result = run_agent("hello", llm=fake_model(OUTPUT), context=context, settings=settings)
    assert json.loads(result.transcript[1]["content"]) == {"type": "user", "user": "hello"}
    assert result.steps == [OUTPUT]


def test_history_is_threaded_and_system_entries_dropped(fake_model, context, settings):
    history = [
        {"role": "system", "content": "stale prompt"},
        {"role": "user", "content": json.dumps({"type": "user", "user": "hi"})},
        {"role": "assistant", "content": json.dumps({"type": "output", "output": "Hello!"})},
    ]
    result = run_agent("and now?", history, llm=fake_model(OUTPUT), context=context, settings=settings)
    assert [m["content"] for m in result.transcript].count("stale prompt") == 0
    assert result.history[:2] == history[1:]
    assert len(result.history) == 4


def test_build_transcript_starts_with_system_prompt():
    transcript = build_transcript("q", None, "SYSTEM")
    assert transcript[0] == {"role": "system", "content": "SYSTEM"}
    assert len(transcript) == 2


def test_never_producing_output_raises_with_partial_steps(fake_model, context, settings):
    with pytest.raises(MaxIterationsError) as info:
        run_agent("loop forever", llm=fake_model(PLAN, repeat_last=True), context=context, settings=settings)

    assert len(info.value.steps) == 10
    assert all(s["type"] == "plan" for s in info.value.steps)
    assert info.value.transcript[0]["role"] == "system"


def test_action_loop_is_bounded_too(fake_model, context):
    with pytest.raises(MaxIterationsError) as info:
        run_agent(
            "loop forever",
            llm=fake_model(ACTION, repeat_last=True),
            context=context,
            settings=AgentSettings(max_iterations=3),
        )
    assert [s["type"] for s in info.value.steps] == ["action", "observation"] * 3


def test_unknown_function_becomes_error_observation(fake_model, context, settings):
    bogus = {"type": "action", "function": "calculateMode", "input": {"data": "iris"}}
    result = run_agent("mode?", llm=fake_model(bogus, OUTPUT), context=context, settings=settings)

    observation = result.steps[1]["observation"]
    assert isinstance(observation, str)
    assert observation.startswith("Error:")
    assert "Available functions" in observation
    assert result.steps[-1]["type"] == "output"


def test_last_result_chains_across_actions(fake_model, context, settings):
    script = [
        {"type": "action", "function": "filterIrisData", "input": {"data": "iris", "species": "setosa"}},
        {"type": "action", "function": "calculateMean", "input": {"data": "lastResult", "column": "SepalLengthCm"}},
        OUTPUT,
    ]
    result = run_agent("setosa mean?", llm=fake_model(*script), context=context, settings=settings)

    records = result.steps[1]["observation"]
    assert len(records) == 50
    assert result.steps[3]["observation"] == pytest.approx(5.006)
    assert len(context.last_result) == 50


def test_invalid_json_reply_is_kept_in_transcript(fake_model, context, settings):
    with pytest.raises(ModelProtocolError) as info:
        run_agent("hi", llm=fake_model(PLAN, "this is not json"), context=context, settings=settings)

    assert info.value.transcript[-1] == {"role": "assistant", "content": "this is not json"}
    assert [s["type"] for s in info.value.steps] == ["plan"]


def test_empty_reply_is_a_protocol_error(fake_model, context, settings):
    with pytest.raises(ModelProtocolError, match="No response"):
        run_agent("hi", llm=fake_model("   "), context=context, settings=settings)


def test_settings_reject_zero_iterations():
    with pytest.raises(ValueError):
        AgentSettings(max_iterations=0)

from __future__ import annotations

import asyncio

import pytest

from miniappruntime.engine import STATUS_STARTED, STATUS_STOPPED, MiniAppRuntime


@pytest.mark.asyncio
async def test_app_start_chain_runs_once(make_app, recorder) -> None:
    app = make_app(
        [
            ("start", "onAppStart"),
            ("hello", "stringLiteral", {"value": "hi"}),
            ("show", "setText", {"targetId": "lbl"}),
        ],
        [("start.exec", "show.exec"), ("hello.value", "show.value")],
    )
    rt = MiniAppRuntime(app, recorder.callbacks())
    await rt.start()
    await rt.start()

    assert rt.status == STATUS_STARTED
    assert recorder.texts == [("lbl", "hi")]
    assert rt.get_logs()[0].message == "Runtime started"
    rt.stop()
    assert rt.status == STATUS_STOPPED


@pytest.mark.asyncio
async def test_runtime_does_not_mutate_the_document(make_app, recorder) -> None:
    app = make_app(
        [("start", "onAppStart"), ("add", "listAdd"), ("item", "numberLiteral", {"value": 1})],
        [("start.exec", "add.exec"), ("item.value", "add.item")],
    )
    rt = MiniAppRuntime(app, recorder.callbacks())
    await rt.start()

    assert rt.state("add").last_result == [1]
    assert app["nodes"][1]["properties"] == {}
    assert rt.app.nodes[1].properties == {}


@pytest.mark.asyncio
async def test_fan_out_runs_in_connection_order(make_app, recorder) -> None:
    app = make_app(
        [
            ("start", "onAppStart"),
            ("a", "log"),
            ("b", "log"),
            ("sa", "stringLiteral", {"value": "first"}),
            ("sb", "stringLiteral", {"value": "second"}),
        ],
        [("start.exec", "a.exec"), ("start.exec", "b.exec"), ("sa.value", "a.message"), ("sb.value", "b.message")],
    )
    rt = MiniAppRuntime(app, recorder.callbacks())
    await rt.start()
    assert recorder.user_logs() == ["first", "second"]


@pytest.mark.asyncio
async def test_for_loop_runs_body_per_index_then_done(make_app, recorder) -> None:
    app = make_app(
        [
            ("start", "onAppStart"),
            ("zero", "numberLiteral", {"value": 0}),
            ("three", "numberLiteral", {"value": 3}),
            ("loop", "forLoop"),
            ("body", "log"),
            ("after", "log"),
            ("done", "stringLiteral", {"value": "done"}),
        ],
        [
            ("start.exec", "loop.exec"),
            ("zero.value", "loop.start"),
            ("three.value", "loop.end"),
            ("loop.loop", "body.exec"),
            ("loop.index", "body.message"),
            ("loop.done", "after.exec"),
            ("done.value", "after.message"),
        ],
    )
    rt = MiniAppRuntime(app, recorder.callbacks())
    await rt.start()
    assert recorder.user_logs() == ["0", "1", "2", "done"]


@pytest.mark.asyncio
async def test_while_loop_stops_at_max_iterations_with_one_warning(make_app, recorder) -> None:
    app = make_app(
        [
            ("start", "onAppStart"),
            ("always", "stringLiteral", {"value": "yes"}),
            ("loop", "whileLoop", {"maxIterations": 5}),
            ("body", "log"),
        ],
        [("start.exec", "loop.exec"), ("always.value", "loop.condition"), ("loop.loop", "body.exec")],
    )
    rt = MiniAppRuntime(app, recorder.callbacks())
    await rt.start()

    # log node without a message input logs an empty line per iteration
    assert recorder.user_logs().count("") == 5
    warnings = [e for e in rt.get_logs() if e.level == "warning"]
    assert [w.message for w in warnings] == ["While loop reached max iterations (5)"]


@pytest.mark.asyncio
async def test_while_loop_reads_condition_each_iteration(make_app, recorder) -> None:
    app = make_app(
        [
            ("start", "onAppStart"),
            ("init", "setVariable", {"varName": "n"}),
            ("zero", "numberLiteral", {"value": 0}),
            ("loop", "whileLoop"),
            ("cmp", "compare", {"operator": "<"}),
            ("n", "getVariable", {"varName": "n"}),
            ("limit", "numberLiteral", {"value": 3}),
            ("inc", "setVariable", {"varName": "n"}),
            ("plus", "mathOp", {"operator": "+"}),
            ("one", "numberLiteral", {"value": 1}),
            ("show", "setText", {"targetId": "out"}),
        ],
        [
            ("start.exec", "init.exec"),
            ("zero.value", "init.value"),
            ("init.exec", "loop.exec"),
            ("n.value", "cmp.a"),
            ("limit.value", "cmp.b"),
            ("cmp.result", "loop.condition"),
            ("loop.loop", "inc.exec"),
            ("n.value", "plus.a"),
            ("one.value", "plus.b"),
            ("plus.value", "inc.value"),
            ("loop.done", "show.exec"),
            ("n.value", "show.value"),
        ],
    )
    rt = MiniAppRuntime(app, recorder.callbacks())
    await rt.start()

    assert recorder.texts == [("out", "3")]
    assert not [e for e in rt.get_logs() if e.level == "warning"]


@pytest.mark.asyncio
@pytest.mark.parametrize("a,b,branch", [(5, 3, "big"), (1, 3, "small")])
async def test_if_condition_follows_one_branch(make_app, recorder, a, b, branch) -> None:
    app = make_app(
        [
            ("start", "onAppStart"),
            ("a", "numberLiteral", {"value": a}),
            ("b", "numberLiteral", {"value": b}),
            ("cmp", "compare", {"operator": ">"}),
            ("if", "ifCondition"),
            ("yes", "log"),
            ("no", "log"),
            ("big", "stringLiteral", {"value": "big"}),
            ("small", "stringLiteral", {"value": "small"}),
        ],
        [
            ("start.exec", "if.exec"),
            ("a.value", "cmp.a"),
            ("b.value", "cmp.b"),
            ("cmp.result", "if.condition"),
            ("if.true", "yes.exec"),
            ("if.false", "no.exec"),
            ("big.value", "yes.message"),
            ("small.value", "no.message"),
        ],
    )
    rt = MiniAppRuntime(app, recorder.callbacks())
    await rt.start()
    assert recorder.user_logs() == [branch]


@pytest.mark.asyncio
@pytest.mark.parametrize("op,b,expected", [("+", 3, "5"), ("*", 3, "6"), ("/", 0, "0"), ("/", 4, "0.5")])
async def test_math_op_result_reaches_set_text(make_app, recorder, op, b, expected) -> None:
    app = make_app(
        [
            ("start", "onAppStart"),
            ("a", "numberLiteral", {"value": 2}),
            ("b", "numberLiteral", {"value": b}),
            ("math", "mathOp", {"operator": op}),
            ("show", "setText", {"targetId": "out"}),
        ],
        [("start.exec", "show.exec"), ("a.value", "math.a"), ("b.value", "math.b"), ("math.value", "show.value")],
    )
    rt = MiniAppRuntime(app, recorder.callbacks())
    await rt.start()
    assert recorder.texts == [("out", expected)]


@pytest.mark.asyncio
async def test_concat_variables_and_styles(make_app, recorder) -> None:
    app = make_app(
        [
            ("start", "onAppStart"),
            ("hi", "stringLiteral", {"value": "Hi "}),
            ("there", "stringLiteral", {"value": "there"}),
            ("cat", "concat"),
            ("set", "setVariable", {"varName": "greeting"}),
            ("get", "getVariable", {"varName": "greeting"}),
            ("show", "setText", {"targetId": "lbl"}),
            ("red", "stringLiteral", {"value": "red"}),
            ("style", "setStyle", {"targetId": "lbl", "property": "color"}),
            ("nav", "navigatePage", {"pageId": "page_1"}),
        ],
        [
            ("start.exec", "set.exec"),
            ("hi.value", "cat.a"),
            ("there.value", "cat.b"),
            ("cat.value", "set.value"),
            ("set.exec", "show.exec"),
            ("get.value", "show.value"),
            ("show.exec", "style.exec"),
            ("red.value", "style.value"),
            ("style.exec", "nav.exec"),
        ],
    )
    rt = MiniAppRuntime(app, recorder.callbacks())
    await rt.start()

    assert rt.variables == {"greeting": "Hi there"}
    assert recorder.texts == [("lbl", "Hi there")]
    assert recorder.styles == [("lbl", "color", "red")]
    assert recorder.pages == ["page_1"]


@pytest.mark.asyncio
async def test_list_nodes(make_app, recorder) -> None:
    app = make_app(
        [
            ("start", "onAppStart"),
            ("empty", "createList"),
            ("add1", "listAdd"),
            ("add2", "listAdd"),
            ("x", "stringLiteral", {"value": "x"}),
            ("y", "stringLiteral", {"value": "y"}),
            ("len", "listLength"),
            ("get", "listGet"),
            ("one", "numberLiteral", {"value": 1}),
            ("show_len", "setText", {"targetId": "len"}),
            ("show_item", "setText", {"targetId": "item"}),
            ("remove", "listRemove"),
            ("zero", "numberLiteral", {"value": 0}),
            ("show_rest", "setText", {"targetId": "rest"}),
        ],
        [
            ("start.exec", "add1.exec"),
            ("empty.value", "add1.list"),
            ("x.value", "add1.item"),
            ("add1.exec", "add2.exec"),
            ("add1.value", "add2.list"),
            ("y.value", "add2.item"),
            ("add2.exec", "show_len.exec"),
            ("add2.value", "len.list"),
            ("len.value", "show_len.value"),
            ("show_len.exec", "show_item.exec"),
            ("add2.value", "get.list"),
            ("one.value", "get.index"),
            ("get.value", "show_item.value"),
            ("show_item.exec", "remove.exec"),
            ("add2.value", "remove.list"),
            ("zero.value", "remove.index"),
            ("remove.exec", "show_rest.exec"),
            ("remove.value", "show_rest.value"),
        ],
    )
    rt = MiniAppRuntime(app, recorder.callbacks())
    await rt.start()

    assert recorder.texts == [("len", "2"), ("item", "y"), ("rest", "y")]
    assert rt.state("add2").last_result == ["x", "y"]


@pytest.mark.asyncio
async def test_dangling_connections_and_unknown_types_are_ignored(make_app, recorder) -> None:
    app = make_app(
        [
            ("start", "onAppStart"),
            ("mystery", "teleport"),
            ("show", "setText", {"targetId": "lbl"}),
        ],
        [
            ("start.exec", "ghost.exec"),
            ("start.exec", "mystery.exec"),
            ("start.exec", "show.exec"),
            ("ghost.value", "show.value"),
        ],
    )
    rt = MiniAppRuntime(app, recorder.callbacks())
    await rt.start()

    assert recorder.texts == [("lbl", "")]
    assert not [e for e in rt.get_logs() if e.level == "error"]


@pytest.mark.asyncio
async def test_data_cycle_is_reported_not_infinite(make_app, recorder) -> None:
    app = make_app(
        [("start", "onAppStart"), ("a", "concat"), ("b", "concat"), ("show", "setText", {"targetId": "lbl"})],
        [("start.exec", "show.exec"), ("a.value", "b.a"), ("b.value", "a.a"), ("a.value", "show.value")],
    )
    rt = MiniAppRuntime(app, recorder.callbacks())
    await rt.start()

    assert recorder.texts == [("lbl", "")]
    assert any("Data cycle detected" in e.message for e in rt.get_logs() if e.level == "error")


@pytest.mark.asyncio
async def test_alert_and_input_value(make_app, recorder) -> None:
    recorder.inputs["name"] = "Ada"
    app = make_app(
        [
            ("click", "onClick", {"targetId": "btn"}),
            ("input", "getInputValue", {"targetId": "name"}),
            ("alert", "showAlert"),
            ("bare", "showAlert"),
        ],
        [("click.exec", "alert.exec"), ("input.value", "alert.message"), ("alert.exec", "bare.exec")],
    )
    rt = MiniAppRuntime(app, recorder.callbacks())
    await rt.start()
    await rt.handle_event("onClick", "btn")

    assert recorder.alerts == ["Ada", "Alert"]


@pytest.mark.asyncio
async def test_handle_event_matches_target_id(make_app, recorder) -> None:
    app = make_app(
        [
            ("click", "onClick", {"targetId": "btn"}),
            ("msg", "stringLiteral", {"value": "clicked"}),
            ("show", "setText", {"targetId": "lbl"}),
        ],
        [("click.exec", "show.exec"), ("msg.value", "show.value")],
    )
    rt = MiniAppRuntime(app, recorder.callbacks())
    await rt.start()

    await rt.handle_event("onClick", "other")
    assert recorder.texts == []
    await rt.handle_event("onClick", "btn")
    await rt.handle_event("onClick", "btn")
    assert recorder.texts == [("lbl", "clicked"), ("lbl", "clicked")]

    rt.stop()
    await rt.handle_event("onClick", "btn")
    assert len(recorder.texts) == 2


@pytest.mark.asyncio
async def test_key_press_matches_key_property(make_app, recorder) -> None:
    app = make_app(
        [
            ("any", "onKeyPress"),
            ("enter", "onKeyPress", {"key": "Enter"}),
            ("show_any", "setText", {"targetId": "any"}),
            ("show_enter", "setText", {"targetId": "enter"}),
        ],
        [
            ("any.exec", "show_any.exec"),
            ("any.key", "show_any.value"),
            ("enter.exec", "show_enter.exec"),
            ("enter.key", "show_enter.value"),
        ],
    )
    rt = MiniAppRuntime(app, recorder.callbacks())
    await rt.start()

    await rt.handle_event("onKeyPress", "a")
    await rt.handle_event("onKeyPress", "Enter")
    assert recorder.texts == [("any", "a"), ("any", "Enter"), ("enter", "Enter")]


@pytest.mark.asyncio
async def test_dispatch_event_and_wait_idle(make_app, recorder) -> None:
    app = make_app(
        [("click", "onClick", {"targetId": "btn"}), ("show", "setText", {"targetId": "lbl"})],
        [("click.exec", "show.exec")],
    )
    rt = MiniAppRuntime(app, recorder.callbacks())
    await rt.start()

    rt.dispatch_event("onClick", "btn")
    assert recorder.texts == []
    await rt.wait_idle()
    assert recorder.texts == [("lbl", "")]


@pytest.mark.asyncio
async def test_one_shot_timer_fires_once(make_app, recorder) -> None:
    app = make_app(
        [("timer", "onTimer", {"interval": 10, "repeat": False}), ("tick", "log")],
        [("timer.exec", "tick.exec")],
    )
    rt = MiniAppRuntime(app, recorder.callbacks())
    await rt.start()
    await asyncio.sleep(0.1)
    await rt.wait_idle()

    assert recorder.user_logs() == [""]
    rt.stop()


@pytest.mark.asyncio
async def test_repeating_timer_stops_on_stop(make_app, recorder) -> None:
    app = make_app(
        [("timer", "onTimer", {"interval": 10}), ("tick", "log")],
        [("timer.exec", "tick.exec")],
    )
    rt = MiniAppRuntime(app, recorder.callbacks())
    await rt.start()
    await asyncio.sleep(0.1)
    rt.stop()
    await rt.wait_idle()
    ticks = len(recorder.user_logs())
    assert ticks >= 2

    await asyncio.sleep(0.05)
    assert len(recorder.user_logs()) == ticks
    assert recorder.logs[-1] == "Runtime stopped"


@pytest.mark.asyncio
async def test_app_start_completes_before_first_timer_tick(make_app, recorder) -> None:
    app = make_app(
        [
            ("start", "onAppStart"),
            ("ready", "stringLiteral", {"value": "ready"}),
            ("set", "setVariable", {"varName": "state"}),
            ("timer", "onTimer", {"interval": 1, "repeat": False}),
            ("get", "getVariable", {"varName": "state"}),
            ("show", "setText", {"targetId": "lbl"}),
        ],
        [
            ("start.exec", "set.exec"),
            ("ready.value", "set.value"),
            ("timer.exec", "show.exec"),
            ("get.value", "show.value"),
        ],
    )
    rt = MiniAppRuntime(app, recorder.callbacks())
    await rt.start()
    await asyncio.sleep(0.05)
    await rt.wait_idle()
    rt.stop()

    assert recorder.texts == [("lbl", "ready")]


@pytest.mark.asyncio
async def test_node_errors_are_logged_and_do_not_escape(make_app, recorder) -> None:
    def broken_set_text(target: str, text: str) -> None:
        raise RuntimeError("renderer gone")

    callbacks = recorder.callbacks()
    callbacks.on_set_text = broken_set_text
    app = make_app(
        [("start", "onAppStart"), ("show", "setText", {"targetId": "lbl"}), ("after", "log")],
        [("start.exec", "show.exec"), ("start.exec", "after.exec")],
    )
    rt = MiniAppRuntime(app, callbacks)
    await rt.start()

    errors = [e.message for e in rt.get_logs() if e.level == "error"]
    assert errors == ["Error in node setText (show): renderer gone"]
    # the next connection of the fan-out still runs
    assert recorder.user_logs()[-1] == ""


def _two_item_list_nodes():
    nodes = [
        ("start", "onAppStart"),
        ("empty", "createList"),
        ("add1", "listAdd"),
        ("add2", "listAdd"),
        ("first", "stringLiteral", {"value": "first"}),
        ("second", "stringLiteral", {"value": "second"}),
    ]
    wires = [
        ("start.exec", "add1.exec"),
        ("empty.value", "add1.list"),
        ("first.value", "add1.item"),
        ("add1.exec", "add2.exec"),
        ("add1.value", "add2.list"),
        ("second.value", "add2.item"),
    ]
    return nodes, wires


@pytest.mark.asyncio
async def test_list_get_without_index_reads_first_item(make_app, recorder) -> None:
    nodes, wires = _two_item_list_nodes()
    app = make_app(
        nodes + [("get", "listGet"), ("show", "setText", {"targetId": "out"})],
        wires + [("add2.exec", "show.exec"), ("add2.value", "get.list"), ("get.value", "show.value")],
    )
    rt = MiniAppRuntime(app, recorder.callbacks())
    await rt.start()
    assert recorder.texts == [("out", "first")]


@pytest.mark.asyncio
async def test_list_remove_without_index_drops_first_item(make_app, recorder) -> None:
    nodes, wires = _two_item_list_nodes()
    app = make_app(
        nodes + [("remove", "listRemove"), ("show", "setText", {"targetId": "out"})],
        wires
        + [
            ("add2.exec", "remove.exec"),
            ("add2.value", "remove.list"),
            ("remove.exec", "show.exec"),
            ("remove.value", "show.value"),
        ],
    )
    rt = MiniAppRuntime(app, recorder.callbacks())
    await rt.start()

    assert recorder.texts == [("out", "second")]
    assert rt.state("remove").last_result == ["second"]
    assert rt.state("add2").last_result == ["first", "second"]


async def _show(make_app, recorder, nodes, wires) -> list:
    app = make_app(
        [("start", "onAppStart"), ("show", "setText", {"targetId": "out"})] + nodes,
        [("start.exec", "show.exec")] + wires,
    )
    rt = MiniAppRuntime(app, recorder.callbacks())
    await rt.start()
    return recorder.text_values()


@pytest.mark.asyncio
@pytest.mark.parametrize("raw,expected", [("42", "42"), (" 2.5 ", "2.5"), ("abc", "0"), ("", "0")])
async def test_to_number_reaches_set_text(make_app, recorder, raw, expected) -> None:
    texts = await _show(
        make_app,
        recorder,
        [("s", "stringLiteral", {"value": raw}), ("num", "toNumber")],
        [("s.value", "num.value"), ("num.value", "show.value")],
    )
    assert texts == [expected]


@pytest.mark.asyncio
async def test_to_string_formats_numbers_and_booleans(make_app, recorder) -> None:
    app = make_app(
        [
            ("start", "onAppStart"),
            ("n", "numberLiteral", {"value": 3.5}),
            ("blank", "stringLiteral", {"value": ""}),
            ("b", "not"),
            ("sn", "toString"),
            ("sb", "toString"),
            ("show_n", "setText", {"targetId": "n"}),
            ("show_b", "setText", {"targetId": "b"}),
        ],
        [
            ("start.exec", "show_n.exec"),
            ("n.value", "sn.value"),
            ("sn.value", "show_n.value"),
            ("show_n.exec", "show_b.exec"),
            ("blank.value", "b.value"),
            ("b.result", "sb.value"),
            ("sb.value", "show_b.value"),
        ],
    )
    rt = MiniAppRuntime(app, recorder.callbacks())
    await rt.start()
    assert recorder.texts == [("n", "3.5"), ("b", "true")]


@pytest.mark.asyncio
@pytest.mark.parametrize("raw,expected", [("", "true"), ("x", "false"), ("0", "false")])
async def test_not_negates_truthiness(make_app, recorder, raw, expected) -> None:
    texts = await _show(
        make_app,
        recorder,
        [("s", "stringLiteral", {"value": raw}), ("neg", "not")],
        [("s.value", "neg.value"), ("neg.result", "show.value")],
    )
    assert texts == [expected]


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "operator,a,expected",
    [("AND", "left", "right"), ("AND", "", ""), ("OR", "left", "left"), ("OR", "", "right")],
)
async def test_and_or_returns_deciding_operand(make_app, recorder, operator, a, expected) -> None:
    texts = await _show(
        make_app,
        recorder,
        [
            ("a", "stringLiteral", {"value": a}),
            ("b", "stringLiteral", {"value": "right"}),
            ("logic", "andOr", {"operator": operator}),
        ],
        [("a.value", "logic.a"), ("b.value", "logic.b"), ("logic.result", "show.value")],
    )
    assert texts == [expected]


@pytest.mark.asyncio
async def test_random_number_respects_fixed_range(make_app, recorder) -> None:
    texts = await _show(
        make_app,
        recorder,
        [("rand", "randomNumber", {"min": 5, "max": 5})],
        [("rand.value", "show.value")],
    )
    assert texts == ["5"]


@pytest.mark.asyncio
async def test_random_number_float_mode_is_not_floored(make_app, recorder, monkeypatch) -> None:
    monkeypatch.setattr("random.random", lambda: 0.25)
    texts = await _show(
        make_app,
        recorder,
        [("rand", "randomNumber", {"min": 0, "max": 1, "integer": False})],
        [("rand.value", "show.value")],
    )
    assert texts == ["0.25"]


@pytest.mark.asyncio
async def test_random_number_draws_again_for_each_consumer(make_app, recorder, monkeypatch) -> None:
    draws = iter([0.1, 0.9])
    monkeypatch.setattr("random.random", lambda: next(draws))
    app = make_app(
        [
            ("start", "onAppStart"),
            ("rand", "randomNumber", {"min": 0, "max": 100}),
            ("show_a", "setText", {"targetId": "a"}),
            ("show_b", "setText", {"targetId": "b"}),
        ],
        [
            ("start.exec", "show_a.exec"),
            ("rand.value", "show_a.value"),
            ("show_a.exec", "show_b.exec"),
            ("rand.value", "show_b.value"),
        ],
    )
    rt = MiniAppRuntime(app, recorder.callbacks())
    await rt.start()
    assert recorder.texts == [("a", "10"), ("b", "90")]

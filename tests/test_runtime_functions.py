from __future__ import annotations

import pytest

from miniappruntime.core import RuntimeConfig
from miniappruntime.engine import CallFrame, ChainContext, MiniAppRuntime
from miniappruntime.engine.behaviors import get_behavior


def _double_app(make_app):
    return make_app(
        [
            ("start", "onAppStart"),
            ("five", "numberLiteral", {"value": 5}),
            ("call", "functionCall", {"funcName": "double"}),
            ("show", "setText", {"targetId": "out"}),
            ("define", "functionDefine", {"funcName": "double"}),
            ("two", "numberLiteral", {"value": 2}),
            ("times", "mathOp", {"operator": "*"}),
            ("ret", "functionReturn"),
        ],
        [
            ("start.exec", "call.exec"),
            ("five.value", "call.param1"),
            ("call.exec", "show.exec"),
            ("call.result", "show.value"),
            ("define.exec", "ret.exec"),
            ("define.param1", "times.a"),
            ("two.value", "times.b"),
            ("times.value", "ret.value"),
        ],
    )


@pytest.mark.asyncio
async def test_function_call_returns_value(make_app, recorder) -> None:
    rt = MiniAppRuntime(_double_app(make_app), recorder.callbacks())
    await rt.start()

    assert recorder.texts == [("out", "10")]
    assert "Function 'double' completed" in recorder.logs
    assert rt.functions == {"double": "define"}


@pytest.mark.asyncio
async def test_recursive_function_uses_its_own_frames(make_app, recorder) -> None:
    # fact(n) = n <= 1 ? 1 : n * fact(n - 1)
    app = make_app(
        [
            ("start", "onAppStart"),
            ("four", "numberLiteral", {"value": 4}),
            ("top", "functionCall", {"funcName": "fact"}),
            ("show", "setText", {"targetId": "out"}),
            ("define", "functionDefine", {"funcName": "fact"}),
            ("cmp", "compare", {"operator": "<="}),
            ("one", "numberLiteral", {"value": 1}),
            ("if", "ifCondition"),
            ("ret_base", "functionReturn"),
            ("minus", "mathOp", {"operator": "-"}),
            ("rec", "functionCall", {"funcName": "fact"}),
            ("times", "mathOp", {"operator": "*"}),
            ("ret_rec", "functionReturn"),
        ],
        [
            ("start.exec", "top.exec"),
            ("four.value", "top.param1"),
            ("top.exec", "show.exec"),
            ("top.result", "show.value"),
            ("define.exec", "if.exec"),
            ("define.param1", "cmp.a"),
            ("one.value", "cmp.b"),
            ("cmp.result", "if.condition"),
            ("if.true", "ret_base.exec"),
            ("one.value", "ret_base.value"),
            ("if.false", "rec.exec"),
            ("define.param1", "minus.a"),
            ("one.value", "minus.b"),
            ("minus.value", "rec.param1"),
            ("rec.exec", "ret_rec.exec"),
            ("define.param1", "times.a"),
            ("rec.result", "times.b"),
            ("times.value", "ret_rec.value"),
        ],
    )
    rt = MiniAppRuntime(app, recorder.callbacks())
    await rt.start()

    assert recorder.texts == [("out", "24")]
    assert recorder.logs.count("Function 'fact' completed") == 4


@pytest.mark.asyncio
async def test_runaway_recursion_is_capped(make_app, recorder) -> None:
    app = make_app(
        [
            ("start", "onAppStart"),
            ("call", "functionCall", {"funcName": "forever"}),
            ("define", "functionDefine", {"funcName": "forever"}),
            ("again", "functionCall", {"funcName": "forever"}),
        ],
        [("start.exec", "call.exec"), ("define.exec", "again.exec")],
    )
    rt = MiniAppRuntime(app, recorder.callbacks(), config=RuntimeConfig(max_call_depth=8))
    await rt.start()

    errors = [e.message for e in rt.get_logs() if e.level == "error"]
    assert errors == ["Function 'forever' exceeded max call depth (8)"]


@pytest.mark.asyncio
async def test_unknown_function_halts_the_chain(make_app, recorder) -> None:
    app = make_app(
        [
            ("start", "onAppStart"),
            ("call", "functionCall", {"funcName": "missing"}),
            ("show", "setText", {"targetId": "out"}),
        ],
        [("start.exec", "call.exec"), ("call.exec", "show.exec")],
    )
    rt = MiniAppRuntime(app, recorder.callbacks())
    await rt.start()

    assert recorder.texts == []
    assert [e.message for e in rt.get_logs() if e.level == "error"] == ["Function 'missing' not found"]


@pytest.mark.asyncio
async def test_function_without_return_yields_none(make_app, recorder) -> None:
    app = make_app(
        [
            ("start", "onAppStart"),
            ("call", "functionCall"),
            ("show", "setText", {"targetId": "out"}),
            ("define", "functionDefine"),
            ("body", "log"),
        ],
        [
            ("start.exec", "call.exec"),
            ("call.exec", "show.exec"),
            ("call.result", "show.value"),
            ("define.exec", "body.exec"),
        ],
    )
    rt = MiniAppRuntime(app, recorder.callbacks())
    await rt.start()

    # both nodes fall back to the default function name
    assert rt.functions == {"myFunction": "define"}
    assert recorder.texts == [("out", "")]
    assert "Function 'myFunction' completed" in recorder.logs


@pytest.mark.asyncio
async def test_return_outside_of_a_call_is_a_warning(make_app, recorder) -> None:
    app = make_app([("start", "onAppStart"), ("ret", "functionReturn")], [("start.exec", "ret.exec")])
    rt = MiniAppRuntime(app, recorder.callbacks())
    await rt.start()

    assert [e.message for e in rt.get_logs() if e.level == "warning"] == ["Return outside of a function call (ret)"]


@pytest.mark.asyncio
async def test_function_params_are_not_visible_outside_the_call(make_app, recorder) -> None:
    app = _double_app(make_app)
    app["nodes"].append({"id": "peek", "type": "setText", "x": 0, "y": 0, "properties": {"targetId": "peek"}})
    app["connections"].append({"from": {"nodeId": "show", "pinId": "exec"}, "to": {"nodeId": "peek", "pinId": "exec"}})
    app["connections"].append(
        {"from": {"nodeId": "define", "pinId": "param1"}, "to": {"nodeId": "peek", "pinId": "value"}}
    )
    rt = MiniAppRuntime(app, recorder.callbacks())
    await rt.start()

    assert recorder.texts == [("out", "10"), ("peek", "")]


@pytest.mark.asyncio
async def test_function_return_writes_only_the_frame_value(make_app, recorder) -> None:
    app = make_app(
        [("ret", "functionReturn"), ("seven", "numberLiteral", {"value": 7})],
        [("seven.value", "ret.value")],
    )
    rt = MiniAppRuntime(app, recorder.callbacks())
    frame = CallFrame(function_name="f")
    ctx = ChainContext(epoch=rt.epoch, frames=[frame])

    await get_behavior("functionReturn").execute(rt, ctx, rt.nodes["ret"])

    assert frame.return_value == 7
    assert set(vars(frame)) == {"function_name", "params", "return_value"}

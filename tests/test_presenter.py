from __future__ import annotations

from smarthome_panel import ElementSink, MemorySink, Page, ResultPresenter, TraceEntry


def _clock() -> str:
    return "10:00:00"


def test_trace_entry_render_without_payload() -> None:
    assert TraceEntry("10:00:00", "UI loaded").render() == "[10:00:00] UI loaded"


def test_trace_entry_render_with_payload() -> None:
    entry = TraceEntry("10:00:00", "Home Mode -> AWAY", {"homeMode": "AWAY"}, has_payload=True)

    assert entry.render() == '[10:00:00] Home Mode -> AWAY\n{\n  "homeMode": "AWAY"\n}'


def test_explicit_none_payload_is_rendered() -> None:
    sink = MemorySink()
    presenter = ResultPresenter([sink], clock=_clock)

    presenter.present("empty", None)

    assert sink.entries[0].render() == "[10:00:00] empty\nnull"


def test_memory_sink_is_newest_first() -> None:
    sink = MemorySink()
    presenter = ResultPresenter([sink], clock=_clock)

    presenter.present("first")
    presenter.present("second", {"n": 2})

    assert sink.messages == ["second", "first"]
    assert sink.entries[0].payload == {"n": 2}


def test_element_sink_prepends_to_existing_text() -> None:
    page = Page.from_html('<pre id="output"></pre>')
    presenter = ResultPresenter([ElementSink(page)], clock=_clock)

    presenter.present("first")
    presenter.present("second", [1])

    assert page.get_element_by_id("output").text == (
        "[10:00:00] second\n[\n  1\n]\n\n[10:00:00] first\n\n"
    )


def test_every_sink_receives_the_entry() -> None:
    page = Page.from_html('<pre id="output"></pre><pre id="log2"></pre>')
    memory = MemorySink()
    presenter = ResultPresenter(
        [ElementSink(page), ElementSink(page, "log2"), memory], clock=_clock
    )

    presenter.present("hello")

    assert page.get_element_by_id("output").text == "[10:00:00] hello\n\n"
    assert page.get_element_by_id("log2").text == "[10:00:00] hello\n\n"
    assert memory.messages == ["hello"]


def test_missing_output_surface_is_a_no_op() -> None:
    page = Page.from_html("<div></div>")

    ResultPresenter([ElementSink(page)], clock=_clock).present("ignored", {"a": 1})
    assert ResultPresenter(clock=_clock).present("ignored") is None


def test_show_result_replaces_pattern_box_and_traces() -> None:
    page = Page.from_html('<pre id="facade-result">old</pre>')
    sink = MemorySink()
    presenter = ResultPresenter([sink], page=page, clock=_clock)

    presenter.show_result("facade", {"scene": "movie"})
    presenter.show_result("facade", "plain text", trace=False)

    assert page.get_element_by_id("facade-result").text == "[10:00:00] plain text"
    assert sink.messages == ["[FACADE]"]

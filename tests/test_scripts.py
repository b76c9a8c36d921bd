import json

import pytest

from cdp_plan_runner.cdp import scripts


@pytest.mark.parametrize("builder", [scripts.clear_value, scripts.read_value])
def test_value_scripts_retarget_wrappers_to_their_inner_field(builder) -> None:
    script = builder("div.search-wrapper")

    assert '"div.search-wrapper"' in script
    assert "!element.isContentEditable" in script
    assert f"element.querySelector({json.dumps(scripts.EDITABLE_DESCENDANTS)})" in script


def test_set_value_never_writes_into_a_wrapper() -> None:
    script = scripts.set_value("div.search-wrapper", "weather")

    retarget = script.index(f"element.querySelector({json.dumps(scripts.EDITABLE_DESCENDANTS)})")
    assert retarget < script.index("if (!element) return null;")
    assert retarget < script.index("element.textContent = text")


def test_click_dispatches_pointer_events_before_clicking() -> None:
    script = scripts.click("#go")

    assert "new MouseEvent(type" in script
    assert script.index("'mousedown', 'mouseup'") < script.index("element.click();")


def test_selectors_with_quotes_stay_inside_the_literal() -> None:
    script = scripts.element_exists('input[name="q"]')

    assert script == 'document.querySelector("input[name=\\"q\\"]") !== null'


def test_scroll_rejects_unknown_direction() -> None:
    with pytest.raises(ValueError):
        scripts.scroll("sideways", 100)  # type: ignore[arg-type]

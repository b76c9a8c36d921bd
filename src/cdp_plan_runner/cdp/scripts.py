"""JavaScript expressions evaluated inside the page via ``Runtime.evaluate``.

Values are embedded with :func:`json.dumps` so selectors and text containing quotes
cannot break out of the string literal.
"""

from __future__ import annotations

import json

from ..models import ScrollDirection

WAIT_FOR_LOAD = """
new Promise((resolve) => {
    if (document.readyState === 'complete') {
        resolve(true);
    } else {
        window.addEventListener('load', () => resolve(true));
    }
})
"""

EDITABLE_DESCENDANTS = "input, textarea, [contenteditable]"

KEYPRESS_AND_SUBMIT = """
(() => {
    try {
        const keypressEvent = new KeyboardEvent('keypress', {
            key: 'Enter', code: 'Enter', keyCode: 13, which: 13,
            bubbles: true, cancelable: true
        });
        document.dispatchEvent(keypressEvent);
        const active = document.activeElement;
        if (active && active.form) {
            active.form.dispatchEvent(new Event('submit', {bubbles: true, cancelable: true}));
            try { active.form.submit(); } catch (e) { return 'submit-blocked'; }
            return 'submitted';
        }
        return 'keypress';
    } catch (e) {
        return false;
    }
})()
"""


def _lookup(selector: str) -> str:
    return f"const element = document.querySelector({json.dumps(selector)});"


def _lookup_editable(selector: str) -> str:
    """Bind ``element`` to the field itself, or to the first editable inside a wrapper."""

    return f"""let element = document.querySelector({json.dumps(selector)});
    if (element && !('value' in element) && !element.isContentEditable) {{
        element = element.querySelector({json.dumps(EDITABLE_DESCENDANTS)});
    }}"""


def element_exists(selector: str) -> str:
    return f"document.querySelector({json.dumps(selector)}) !== null"


def scroll_into_view(selector: str) -> str:
    return f"""
(() => {{
    {_lookup(selector)}
    if (!element) return false;
    element.scrollIntoView({{behavior: 'instant', block: 'center'}});
    return true;
}})()
"""


def visibility_probe(selector: str) -> str:
    """Report whether the element has a box, is styled visible and is not covered."""

    return f"""
(() => {{
    {_lookup(selector)}
    if (!element) return {{found: false, visible: false, reason: 'Element not found'}};
    const rect = element.getBoundingClientRect();
    const style = window.getComputedStyle(element);
    if (rect.width === 0 || rect.height === 0 || style.display === 'none'
            || style.visibility === 'hidden' || style.opacity === '0') {{
        return {{
            found: true, visible: false, reason: 'Element is not visible',
            width: rect.width, height: rect.height, display: style.display,
            visibility: style.visibility, opacity: style.opacity
        }};
    }}
    const atPoint = document.elementFromPoint(rect.left + rect.width / 2, rect.top + rect.height / 2);
    if (!atPoint) return {{found: true, visible: false, reason: 'No element at center point'}};
    if (!element.contains(atPoint) && !atPoint.contains(element)) {{
        return {{
            found: true, visible: false, reason: 'Element is covered by another element',
            coveringElement: atPoint.tagName, coveringElementId: atPoint.id
        }};
    }}
    return {{found: true, visible: true}};
}})()
"""


def click(selector: str) -> str:
    return f"""
(() => {{
    {_lookup(selector)}
    if (!element) return false;
    for (const type of ['mousedown', 'mouseup']) {{
        element.dispatchEvent(new MouseEvent(type, {{view: window, bubbles: true, cancelable: true}}));
    }}
    element.click();
    return true;
}})()
"""


def click_descendant(selector: str) -> str:
    return f"""
(() => {{
    {_lookup(selector)}
    if (!element) return false;
    const clickables = element.querySelectorAll(
        'a, button, input[type="submit"], input[type="button"]');
    if (clickables.length === 0) return false;
    clickables[0].click();
    return true;
}})()
"""


def force_visible(selector: str) -> str:
    return f"""
(() => {{
    {_lookup(selector)}
    if (!element) return false;
    element.style.display = 'block';
    element.style.visibility = 'visible';
    element.style.opacity = '1';
    element.style.pointerEvents = 'auto';
    element.scrollIntoView({{behavior: 'instant', block: 'center'}});
    return true;
}})()
"""


def anchor_href(selector: str) -> str:
    return f"""
(() => {{
    {_lookup(selector)}
    if (!element) return null;
    const anchor = element.closest('a[href]') || element.querySelector('a[href]');
    return anchor ? anchor.href : null;
}})()
"""


def click_by_text(text: str) -> str:
    """Click the first element whose text contains ``text`` (XPath search)."""

    return f"""
(() => {{
    const needle = {json.dumps(text)};
    const nodes = document.evaluate(
        '//body//*[text()]', document, null, XPathResult.ORDERED_NODE_SNAPSHOT_TYPE, null);
    for (let i = 0; i < nodes.snapshotLength; i++) {{
        const node = nodes.snapshotItem(i);
        for (const child of node.childNodes) {{
            if (child.nodeType === Node.TEXT_NODE && child.textContent.includes(needle)) {{
                node.click();
                return true;
            }}
        }}
    }}
    return false;
}})()
"""


def focus_editable_descendant(selector: str) -> str:
    """Focus the first input-like element inside a composite widget."""

    return f"""
(() => {{
    {_lookup(selector)}
    if (!element) return false;
    const field = element.querySelector({json.dumps(EDITABLE_DESCENDANTS)});
    if (!field) return false;
    field.scrollIntoView({{behavior: 'instant', block: 'center'}});
    field.focus();
    return document.activeElement === field;
}})()
"""


def clear_value(selector: str) -> str:
    return f"""
(() => {{
    {_lookup_editable(selector)}
    if (!element) return false;
    element.focus();
    if ('value' in element) {{ element.value = ''; }} else {{ element.textContent = ''; }}
    element.dispatchEvent(new Event('input', {{bubbles: true}}));
    return true;
}})()
"""


def set_value(selector: str, text: str) -> str:
    """Assign the value through the native setter and fire input/change."""

    return f"""
(() => {{
    {_lookup_editable(selector)}
    if (!element) return null;
    const text = {json.dumps(text)};
    const proto = Object.getPrototypeOf(element);
    const descriptor = Object.getOwnPropertyDescriptor(proto, 'value');
    if (descriptor && descriptor.set) {{
        descriptor.set.call(element, text);
    }} else if ('value' in element) {{
        element.value = text;
    }} else {{
        element.textContent = text;
    }}
    element.dispatchEvent(new Event('input', {{bubbles: true}}));
    element.dispatchEvent(new Event('change', {{bubbles: true}}));
    return 'value' in element ? element.value : element.textContent;
}})()
"""


def read_value(selector: str) -> str:
    return f"""
(() => {{
    {_lookup_editable(selector)}
    if (!element) return null;
    return 'value' in element ? element.value : element.textContent;
}})()
"""


def scroll(direction: ScrollDirection, amount: int) -> str:
    if direction == ScrollDirection.DOWN:
        return f"window.scrollBy(0, {amount});"
    if direction == ScrollDirection.UP:
        return f"window.scrollBy(0, -{amount});"
    if direction == ScrollDirection.RIGHT:
        return f"window.scrollBy({amount}, 0);"
    if direction == ScrollDirection.LEFT:
        return f"window.scrollBy(-{amount}, 0);"
    if direction == ScrollDirection.BOTTOM:
        return "window.scrollTo(0, document.body.scrollHeight);"
    if direction == ScrollDirection.TOP:
        return "window.scrollTo(0, 0);"
    raise ValueError(f"Unsupported scroll direction: {direction}")

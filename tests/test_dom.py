import pytest

from eduplatform.dom import Document, Element, h


def test_h_splits_handlers_from_attributes():
    clicked = []
    node = h("button", "Go", class_="btn", data_action="go", on_click=clicked.append)
    assert node.attrs == {"class": "btn", "data-action": "go"}
    assert set(node.handlers) == {"click"}


def test_h_flattens_children_and_skips_empty_ones():
    node = h("ul", [h("li", "a"), [h("li", "b")]], None, False, 3)
    assert [c.tag for c in node.children if isinstance(c, Element)] == ["li", "li"]
    assert node.children[-1] == "3"


def test_to_html_escapes_text_and_attributes():
    node = h("div", "<script>alert(1)</script>", title='"quoted"', key="k1")
    html = node.to_html()
    assert "<script>" not in html
    assert "&lt;script&gt;" in html
    assert 'title="&#34;quoted&#34;"' in html
    assert 'data-key="k1"' in html


def test_boolean_attributes():
    assert h("input", required=True, disabled=False).to_html() == "<input required>"


def test_find_by_action_class_and_key():
    tree = h(
        "div",
        h("button", data_action="save", key="a", class_="btn primary"),
        h("button", data_action="delete", key="b", class_="btn"),
    )
    assert tree.find(action="delete").key == "b"
    assert [n.key for n in tree.find_all(cls="btn")] == ["a", "b"]
    assert tree.find(cls="primary", key="a").get("data-action") == "save"
    assert tree.find(tag="span") is None


def test_form_values_skip_blank_and_strip():
    form = h(
        "form",
        h("input", name="title", value="  Algebra  "),
        h("textarea", name="description", value="   "),
        h("select", name="priority", value="high"),
        h("input", value="no name"),
    )
    assert form.form_values() == {"title": "Algebra", "priority": "high"}
    assert form.form_values(skip_empty=False) == {"title": "Algebra", "description": "", "priority": "high"}


def test_fill_unknown_field_raises():
    form = h("form", h("input", name="title"))
    with pytest.raises(KeyError):
        form.fill(subject="x")


def test_reset_restores_defaults():
    form = h("form", h("input", name="title", value="typed"), h("select", name="kind", value="book",
                                                               data_default="note"))
    form.reset()
    assert form.field("title").get("value") == ""
    assert form.field("kind").get("value") == "note"


def test_class_helpers():
    node = h("div", class_="card")
    node.add_class("unread")
    node.add_class("unread")
    assert node.classes == ["card", "unread"]
    node.remove_class("card")
    assert node.get("class") == "unread"


async def test_dispatch_awaits_async_handlers():
    seen = []

    async def on_submit(event):
        seen.append((event.type, event.target.tag, event.data))
        return "done"

    doc = Document()
    form = doc.mount("content", h("form", on_submit=on_submit))
    assert await doc.dispatch(form, "submit", source="test") == "done"
    assert seen == [("submit", "form", {"source": "test"})]
    assert await doc.dispatch(form, "click") is None


def test_document_visibility_and_html():
    doc = Document()
    doc.mount("header", h("header", "Hi"))
    doc.mount("login", h("div", "Sign in"))
    doc.hide("login")
    assert doc.is_visible("header")
    assert not doc.is_visible("login")
    assert not doc.is_visible("content")
    assert doc.to_html() == '<section id="header"><header>Hi</header></section>'

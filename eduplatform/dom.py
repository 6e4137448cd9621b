"""
Virtual document for the EduPlatform front end

Views are trees of ``Element`` built with ``h``. Event handlers are closures
attached to the element they belong to, and ``Document.dispatch`` calls them.
``to_html`` serializes a tree with every text and attribute value escaped.
"""
import inspect
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterator, List, Optional, Union

from markupsafe import Markup, escape

VOID_TAGS = {"br", "hr", "img", "input", "meta", "link"}
FORM_FIELDS = {"input", "textarea", "select"}

Child = Union["Element", str, int, float, None]


@dataclass
class Event:
    type: str
    target: "Element"
    data: Dict[str, Any] = field(default_factory=dict)


class Element:
    def __init__(
        self,
        tag: str,
        children: Optional[List[Union["Element", str]]] = None,
        attrs: Optional[Dict[str, Any]] = None,
        key: Optional[str] = None,
        handlers: Optional[Dict[str, Callable]] = None,
    ):
        self.tag = tag
        self.children = children or []
        self.attrs = attrs or {}
        self.key = key
        self.handlers = handlers or {}

    def __repr__(self) -> str:
        extra = f" key={self.key!r}" if self.key else ""
        return f"<{self.tag}{extra} {self.attrs!r}>"

    # ----------------------
    # Attributes
    # ----------------------
    def get(self, name: str, default: Any = None) -> Any:
        return self.attrs.get(name, default)

    def set(self, name: str, value: Any) -> None:
        self.attrs[name] = value

    @property
    def classes(self) -> List[str]:
        return str(self.attrs.get("class") or "").split()

    def has_class(self, name: str) -> bool:
        return name in self.classes

    def add_class(self, name: str) -> None:
        if not self.has_class(name):
            self.attrs["class"] = " ".join(self.classes + [name])

    def remove_class(self, name: str) -> None:
        self.attrs["class"] = " ".join(c for c in self.classes if c != name)

    @property
    def disabled(self) -> bool:
        return bool(self.attrs.get("disabled"))

    # ----------------------
    # Traversal
    # ----------------------
    def walk(self) -> Iterator["Element"]:
        yield self
        for child in self.children:
            if isinstance(child, Element):
                yield from child.walk()

    def find_all(
        self,
        tag: Optional[str] = None,
        action: Optional[str] = None,
        cls: Optional[str] = None,
        key: Optional[str] = None,
        **attrs: Any,
    ) -> List["Element"]:
        found = []
        for node in self.walk():
            if tag is not None and node.tag != tag:
                continue
            if action is not None and node.attrs.get("data-action") != action:
                continue
            if cls is not None and not node.has_class(cls):
                continue
            if key is not None and node.key != key:
                continue
            if any(node.attrs.get(_attr_name(k)) != v for k, v in attrs.items()):
                continue
            found.append(node)
        return found

    def find(self, **criteria: Any) -> Optional["Element"]:
        matches = self.find_all(**criteria)
        return matches[0] if matches else None

    def text(self) -> str:
        parts = []
        for child in self.children:
            parts.append(child.text() if isinstance(child, Element) else str(child))
        return " ".join(p for p in (s.strip() for s in parts) if p)

    # ----------------------
    # Forms
    # ----------------------
    def fields(self) -> List["Element"]:
        return [n for n in self.walk() if n.tag in FORM_FIELDS and n.attrs.get("name")]

    def field(self, name: str) -> Optional["Element"]:
        return next((n for n in self.fields() if n.attrs["name"] == name), None)

    def fill(self, **values: Any) -> None:
        for name, value in values.items():
            node = self.field(name)
            if node is None:
                raise KeyError(f"No form field named {name!r}")
            node.attrs["value"] = value

    def form_values(self, skip_empty: bool = True) -> Dict[str, Any]:
        values = {}
        for node in self.fields():
            value = node.attrs.get("value")
            if isinstance(value, str):
                value = value.strip()
            if skip_empty and value in (None, ""):
                continue
            values[node.attrs["name"]] = value
        return values

    def reset(self) -> None:
        for node in self.fields():
            node.attrs["value"] = node.attrs.get("data-default", "")

    # ----------------------
    # Serialization
    # ----------------------
    def to_html(self) -> Markup:
        attrs = "".join(_render_attr(name, value) for name, value in self.attrs.items())
        if self.key is not None:
            attrs += _render_attr("data-key", self.key)
        if self.tag in VOID_TAGS:
            return Markup(f"<{self.tag}{attrs}>")
        inner = Markup("").join(
            child.to_html() if isinstance(child, Element) else escape(child) for child in self.children
        )
        return Markup(f"<{self.tag}{attrs}>") + inner + Markup(f"</{self.tag}>")


def _attr_name(name: str) -> str:
    if name in ("class_", "for_", "type_"):
        return name[:-1]
    return name.replace("_", "-")


def _render_attr(name: str, value: Any) -> str:
    if value is None or value is False:
        return ""
    if value is True:
        return f" {name}"
    return f' {name}="{escape(value)}"'


def _flatten(children) -> List[Union[Element, str]]:
    flat = []
    for child in children:
        if child is None or child is False:
            continue
        if isinstance(child, (list, tuple)):
            flat.extend(_flatten(child))
        elif isinstance(child, Element):
            flat.append(child)
        else:
            flat.append(str(child))
    return flat


def h(tag: str, *children: Any, key: Optional[str] = None, **props: Any) -> Element:
    """Build an element. ``on_<event>`` keywords become handlers, the rest attributes."""
    attrs, handlers = {}, {}
    for name, value in props.items():
        if name.startswith("on_"):
            handlers[name[3:]] = value
        else:
            attrs[_attr_name(name)] = value
    return Element(tag, _flatten(children), attrs, key=key, handlers=handlers)


class Document:
    """Named regions of element trees plus document-level attributes."""

    def __init__(self):
        self.regions: Dict[str, Optional[Element]] = {}
        self.hidden: set = set()
        self.attributes: Dict[str, str] = {}
        self.title = ""

    def mount(self, region: str, node: Optional[Element]) -> Optional[Element]:
        self.regions[region] = node
        return node

    def clear(self, region: str) -> None:
        self.regions[region] = None

    def get(self, region: str) -> Optional[Element]:
        return self.regions.get(region)

    def show(self, region: str) -> None:
        self.hidden.discard(region)

    def hide(self, region: str) -> None:
        self.hidden.add(region)

    def is_visible(self, region: str) -> bool:
        return region not in self.hidden and self.regions.get(region) is not None

    def find_all(self, region: Optional[str] = None, **criteria: Any) -> List[Element]:
        names = [region] if region else list(self.regions)
        found = []
        for name in names:
            root = self.regions.get(name)
            if root is not None:
                found.extend(root.find_all(**criteria))
        return found

    def find(self, region: Optional[str] = None, **criteria: Any) -> Optional[Element]:
        matches = self.find_all(region, **criteria)
        return matches[0] if matches else None

    async def dispatch(self, node: Element, event_type: str, **data: Any) -> Any:
        handler = node.handlers.get(event_type)
        if handler is None:
            return None
        result = handler(Event(event_type, node, data))
        if inspect.isawaitable(result):
            return await result
        return result

    def to_html(self) -> Markup:
        parts = []
        for name, root in self.regions.items():
            if root is None or name in self.hidden:
                continue
            parts.append(Markup('<section id="{}">').format(name) + root.to_html() + Markup("</section>"))
        return Markup("\n").join(parts)

"""A small declarative UI tree.

Views build ``Element`` values; interactive elements carry handlers that do
nothing but build one message and pass it to ``dispatch``. ``to_html`` turns a
tree into markup for the server-rendered pages.
"""
from __future__ import annotations

import html
from dataclasses import dataclass, field
from typing import Any, Callable, Iterable, Iterator

Handler = Callable[[Any], None]

VOID_TAGS = {'input', 'img', 'br', 'hr', 'meta', 'link'}


@dataclass(frozen=True)
class Text:
    value: str


@dataclass(frozen=True)
class Element:
    tag: str
    attrs: dict[str, Any] = field(default_factory=dict)
    children: tuple['Node', ...] = ()
    handlers: dict[str, Handler] = field(default_factory=dict)

    def trigger(self, event: str, value: Any = None) -> None:
        self.handlers[event](value)

    @property
    def text(self) -> str:
        return ''.join(_text_of(child) for child in self.children)


@dataclass(frozen=True)
class Fragment:
    children: tuple['Node', ...] = ()


Node = Element | Text | Fragment

NONE = Fragment()


def _flatten(children: Iterable[Any]) -> tuple[Node, ...]:
    flat: list[Node] = []
    for child in children:
        if child is None or child is False:
            continue
        if isinstance(child, str):
            flat.append(Text(child))
        elif isinstance(child, (list, tuple)):
            flat.extend(_flatten(child))
        else:
            flat.append(child)
    return tuple(flat)


def h(tag: str, *children: Any, on: dict[str, Handler] | None = None, **attrs: Any) -> Element:
    """Build an element. ``class_`` and ``for_`` map to ``class`` and ``for``."""
    cleaned = {key.rstrip('_').replace('_', '-'): value for key, value in attrs.items()}
    return Element(tag, cleaned, _flatten(children), dict(on or {}))


def fragment(*children: Any) -> Fragment:
    return Fragment(_flatten(children))


def _text_of(node: Node) -> str:
    if isinstance(node, Text):
        return node.value
    return ''.join(_text_of(child) for child in node.children)


def walk(node: Node) -> Iterator[Element]:
    if isinstance(node, Element):
        yield node
    if isinstance(node, (Element, Fragment)):
        for child in node.children:
            yield from walk(child)


def find_all(node: Node, predicate: Callable[[Element], bool]) -> list[Element]:
    return [element for element in walk(node) if predicate(element)]


def find_by_id(node: Node, element_id: str) -> Element | None:
    for element in walk(node):
        if element.attrs.get('id') == element_id:
            return element
    return None


def text_content(node: Node) -> str:
    return _text_of(node)


def _render_attrs(attrs: dict[str, Any]) -> str:
    parts: list[str] = []
    for key, value in attrs.items():
        if value is None or value is False:
            continue
        if value is True:
            parts.append(f' {key}')
        else:
            parts.append(f' {key}="{html.escape(str(value), quote=True)}"')
    return ''.join(parts)


def to_html(node: Node) -> str:
    if isinstance(node, Text):
        return html.escape(node.value)
    if isinstance(node, Fragment):
        return ''.join(to_html(child) for child in node.children)
    attrs = dict(node.attrs)
    for event in node.handlers:
        attrs.setdefault(f'data-on-{event}', event)
    opening = f'<{node.tag}{_render_attrs(attrs)}>'
    if node.tag in VOID_TAGS:
        return opening
    inner = ''.join(to_html(child) for child in node.children)
    return f'{opening}{inner}</{node.tag}>'

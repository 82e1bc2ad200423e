from __future__ import annotations

from typing import Any, Callable

from ..html import Element, h


def spinner(size: str = 'lg') -> Element:
    return h('div', h('span', class_=f'loading loading-spinner loading-{size}'), class_='flex justify-center py-12')


def poster_skeleton(count: int) -> Element:
    return h(
        'div',
        [h('div', class_='skeleton aspect-[2/3] rounded-lg') for _ in range(max(count, 0))],
        class_='poster-grid',
        data_skeleton_count=count,
    )


def error_state(message: str, context: str | None = None) -> Element:
    text = f'{context}: {message}' if context else message
    return h('div', h('p', text, class_='error-message'), class_='error-state', role='alert')


def empty_state(title: str, description: str | None = None) -> Element:
    return h(
        'div',
        h('h3', title, class_='empty-title'),
        h('p', description, class_='empty-description') if description else None,
        class_='empty-state',
    )


def text_input(
    field_id: str,
    label: str,
    value: str,
    on_input: Callable[[Any], None],
    *,
    placeholder: str | None = None,
    autofocus: bool = False,
) -> Element:
    return h(
        'label',
        h('span', label, class_='label-text'),
        h(
            'input',
            id=field_id,
            name=field_id,
            type='text',
            value=value,
            placeholder=placeholder,
            autofocus=autofocus,
            class_='input input-bordered w-full',
            on={'input': on_input},
        ),
        class_='form-control',
        for_=field_id,
    )


def modal(title: str, *children: Any, can_close: bool = True, on_close: Callable[[Any], None] | None = None) -> Element:
    handlers = {'close': on_close} if (can_close and on_close is not None) else {}
    return h(
        'div',
        h(
            'div',
            h('h2', title, class_='text-xl font-bold mb-4'),
            *children,
            class_='modal-box',
        ),
        class_='modal modal-open',
        role='dialog',
        on=handlers,
    )


def button(
    label: str,
    on_click: Callable[[Any], None],
    *,
    element_id: str | None = None,
    kind: str = 'primary',
    disabled: bool = False,
    busy: bool = False,
) -> Element:
    return h(
        'button',
        h('span', class_='loading loading-spinner loading-sm') if busy else None,
        h('span', label),
        id=element_id,
        type='button',
        class_=f'btn btn-{kind}',
        disabled=disabled,
        on={} if disabled else {'click': on_click},
    )

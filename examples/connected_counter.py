"""
Connected Counter Example
=========================

A text "component" bound to a store with `connect`. Clicking publishes into
an action channel, the reducer updates the slice, and the component is
rendered again with the new count.

To run this example:
    $ python examples/connected_counter.py
"""

import logging

from fluxion import ActionChannel, Store, StoreProvider, connect

logging.basicConfig(level=logging.DEBUG, format="%(name)s: %(message)s")


class CounterView:
    def __init__(self, label="", count=0, on_click=None):
        self.label = label
        self.count = count
        self.on_click = on_click

    def render(self):
        return f"[{self.label}] clicked {self.count} times"


store = Store.create({"counter": {"count": 0}, "user": "ada"}, name="app")
clicked = ActionChannel(name="clicked")

counter = store.create_slice("counter")
counter.create_slice("count").add_reducer(clicked, lambda count, _: count + 1)

ConnectedCounter = connect(
    CounterView,
    lambda s: {
        "props": s.create_slice("counter").watch(lambda c: {"count": c["count"]}),
        "action_map": {"on_click": clicked},
    },
)

with StoreProvider(store):
    view = ConnectedCounter(label="demo").mount()

print(view.render())
view.element.on_click()
view.element.on_click()
print(view.render())
print(store.state)
view.unmount()

"""Integration tests for connected components bound to a store."""

import pytest

from fluxion import (
    ActionChannel,
    ActionMapError,
    ConnectResult,
    StoreProvider,
    connect,
    current_store,
)
from tests.factories import (
    MessageView,
    create_connected_message_view,
    create_message_store,
)


def mount(component, store):
    with StoreProvider(store):
        return component.mount()


@pytest.mark.integration
@pytest.mark.connect
class TestConnectProps:
    def test_maps_state_to_component_props(self, connected_view, store):
        view = mount(connected_view(), store)

        assert view.render()["h1"] == "initialMessage"

    def test_receives_prop_updates_from_store(self, connected_view, store, next_message):
        view = mount(connected_view(), store)

        next_message.next("Message1")
        assert view.render()["h1"] == "Message1"

        next_message.next("Message2")
        assert view.render()["h1"] == "Message2"

    def test_owner_props_override_store_props(self, connected_view, store, clicked):
        calls = []
        published = []
        clicked.subscribe(published.append)

        view = mount(connected_view(message="Barfoos", on_click=lambda: calls.append("owner")), store)
        view.element.click()

        assert view.render()["h1"] == "Barfoos"
        assert calls == ["owner"]
        assert published == []

    def test_owner_none_still_wins_over_store_value(self, connected_view, store, next_message):
        view = mount(connected_view(message=None), store)

        assert view.render()["h1"] == ""
        next_message.next("from store")
        assert view.render()["h1"] == ""

    def test_owner_props_updated_later_are_used(self, connected_view, store):
        view = mount(connected_view(message=None), store)

        view.set_props(message="Bla")

        assert view.render()["h1"] == "Bla"

    def test_missing_owner_key_falls_back_to_store(self, connected_view, store):
        view = mount(connected_view(on_click=lambda: None), store)

        assert view.props["message"] == "initialMessage"

    def test_set_props_does_not_resolve_again(self, clicked, store):
        resolutions = []

        def resolver(s):
            resolutions.append(s)
            return {"props": s.create_slice("message").watch(lambda m: {"message": m})}

        view = mount(connect(MessageView, resolver)(), store)
        view.set_props(on_click=lambda: None)
        view.set_props(message="owner")

        assert len(resolutions) == 1

    def test_slice_default_value_reaches_component(self, store):
        def resolver(s):
            slice_ = s.create_slice("missing", "Blafoo")
            return {"props": slice_.watch(lambda message: {"message": message})}

        view = mount(connect(MessageView, resolver)(), store)

        assert view.render()["h1"] == "Blafoo"

    def test_resolver_can_use_any_store_or_slice(self, store):
        def resolver(s):
            nested = s.create_slice("slice").create_slice("slice_message")
            return ConnectResult(props=nested.select(lambda m: {"message": m}))

        view = mount(connect(MessageView, resolver)(), store)

        assert view.render()["h1"] == "initialSliceMessage"


@pytest.mark.integration
@pytest.mark.connect
class TestConnectActionMap:
    def test_callback_publishes_to_channel_in_action_map(self, connected_view, store, clicked):
        published = []
        clicked.subscribe(published.append)
        view = mount(connected_view(), store)

        view.element.click("click-event")

        assert published == ["click-event"]

    def test_channel_in_action_map_receives_exactly_one_emission(self, clicked, store):
        on_click = ActionChannel()
        published = []
        on_click.subscribe(published.append)
        component = create_connected_message_view(clicked, {"action_map": {"on_click": on_click}})

        mount(component(), store).element.click()

        assert published == [None]

    def test_function_in_action_map_is_called(self, clicked, store):
        calls = []
        component = create_connected_message_view(
            clicked, {"action_map": {"on_click": lambda *args: calls.append(args)}}
        )

        mount(component(), store).element.click("event")

        assert calls == [("event",)]

    def test_invalid_action_map_entry_fails_at_mount(self, clicked, store, cleanup):
        released = []
        cleanup.add(lambda: released.append(True))
        component = create_connected_message_view(
            clicked, {"action_map": {"on_click": 5}, "cleanup": cleanup}
        )
        view = component()

        with pytest.raises(ActionMapError):
            mount(view, store)

        assert not view.is_mounted
        assert released == [True]

    def test_none_in_action_map_keeps_owner_callback(self, clicked, store, cleanup):
        calls = []
        released = []
        cleanup.add(lambda: released.append(True))
        component = create_connected_message_view(
            clicked, {"action_map": {"on_click": None}, "cleanup": cleanup}
        )

        view = mount(component(on_click=lambda: calls.append("owner")), store)
        view.element.click()
        view.unmount()

        assert calls == ["owner"]
        assert released == [True]

    def test_none_in_action_map_without_owner_callback_renders_none(self, clicked, store):
        component = create_connected_message_view(clicked, {"action_map": {"on_click": None}})

        view = mount(component(), store)

        assert view.render()["button"] is None


@pytest.mark.integration
@pytest.mark.connect
class TestConnectLifecycle:
    def test_without_store_uses_owner_props_only(self, connected_view, clicked):
        calls = []
        published = []
        clicked.subscribe(published.append)

        assert current_store() is None
        view = connected_view(message="Barfoos", on_click=lambda: calls.append("owner")).mount()
        view.element.click()
        view.unmount()

        assert view.render()["h1"] == "Barfoos"
        assert calls == ["owner"]
        assert published == []

    def test_without_store_resolver_is_not_invoked(self):
        resolutions = []
        component = connect(MessageView, lambda s: resolutions.append(s))

        component(message="x").mount()

        assert resolutions == []

    def test_unmount_releases_cleanup_once(self, connected_view, store, cleanup):
        released = []
        cleanup.add(lambda: released.append(True))
        view = mount(connected_view(), store)

        view.unmount()
        view.unmount()

        assert released == [True]
        assert not view.is_mounted

    def test_unmount_stops_prop_updates(self, connected_view, store, next_message):
        view = mount(connected_view(), store)

        view.unmount()
        next_message.next("after unmount")

        assert view.element.message == "initialMessage"

    def test_unmount_releases_props_subscription(self, store):
        component = connect(
            MessageView,
            lambda s: {"props": s.select(lambda state: {"message": state["message"]})},
        )
        view = mount(component(), store)
        assert store._stream.observer_count == 1

        view.unmount()

        assert store._stream.observer_count == 0

    def test_failed_first_render_leaves_component_unmounted(self, store, cleanup):
        released = []
        cleanup.add(lambda: released.append(True))
        component = connect(
            MessageView,
            lambda s: {
                "props": s.select(lambda state: {"extra": state["message"]}),
                "cleanup": cleanup,
            },
        )
        view = component()

        with pytest.raises(TypeError):
            mount(view, store)

        assert not view.is_mounted
        assert store._stream.observer_count == 0
        assert released == [True]

    def test_unmount_without_mount_is_safe(self, connected_view):
        connected_view().unmount()

    def test_empty_result_uses_owner_props(self, clicked, store):
        calls = []
        component = create_connected_message_view(clicked, empty=True)

        view = mount(component(message="Bla", on_click=lambda: calls.append("owner")), store)
        view.element.click()

        assert view.render()["h1"] == "Bla"
        assert calls == ["owner"]

    def test_resolver_returning_none_is_empty(self, store):
        view = mount(connect(MessageView, lambda s: None)(message="Bla"), store)

        assert view.props == {"message": "Bla"}

    def test_explicit_store_overrides_ambient(self, connected_view, store):
        other, _ = create_message_store("other")

        with StoreProvider(other):
            view = connected_view().mount(store=store)

        assert view.render()["h1"] == "initialMessage"

    def test_explicit_none_store_disables_ambient(self, connected_view, store):
        with StoreProvider(store):
            view = connected_view(message="owner").mount(store=None)

        assert view.props == {"message": "owner"}

    def test_context_manager_mounts_and_unmounts(self, connected_view, store, cleanup):
        released = []
        cleanup.add(lambda: released.append(True))

        with StoreProvider(store):
            with connected_view() as view:
                assert view.is_mounted
                assert view.render()["h1"] == "initialMessage"

        assert released == [True]

    def test_remount_resolves_again(self, store):
        resolutions = []

        def resolver(s):
            resolutions.append(s)
            return None

        view = connect(MessageView, resolver)()
        mount(view, store)
        mount(view, store)
        view.unmount()
        mount(view, store)

        assert len(resolutions) == 2

    def test_providers_nest(self, store):
        other, _ = create_message_store("other")

        with StoreProvider(store):
            with StoreProvider(other):
                assert current_store() is other
            assert current_store() is store
        assert current_store() is None

    def test_connected_class_is_named_after_component(self, connected_view):
        assert connected_view.__name__ == "ConnectedMessageView"
        assert connected_view.__wrapped__ is MessageView

    def test_function_component(self, store):
        class Rendered:
            def __init__(self, props):
                self.props = props

            def render(self):
                return self.props

        def greeting(**props):
            return Rendered(props)

        component = connect(greeting, lambda s: {"props": s.select(lambda st: {"text": st["message"]})})

        view = mount(component(), store)

        assert view.render() == {"text": "initialMessage"}

"""Tests for heimdall.controller — dispatch table, listeners, system actions."""

import logging

import pytest

from heimdall.controller import ControllerBase, HeimdallController
from heimdall.registry import SYSTEM_CONTROLLER
from heimdall.router import ActionData, Router


class ChatController(ControllerBase):
    actions = ("message", "joined", "typing")

    def __init__(self, router: Router) -> None:
        self.messages: list[ActionData] = []
        super().__init__(router)

    async def message(self, data: ActionData) -> None:
        self.messages.append(data)

    def typing(self, data: ActionData) -> None:
        self.messages.append(data)


class TestRegistration:
    def test_registers_under_class_name(self, router: Router) -> None:
        ChatController(router)
        assert "ChatController" in router.registry
        assert router.registry.get("ChatController").find("joined") is not None

    def test_controller_name_override(self, router: Router) -> None:
        class Renamed(ControllerBase):
            controller_name = "Shop.CartController"
            actions = ("add",)

        controller = Renamed(router)

        assert controller.name == "Shop.CartController"
        assert router.registry.resolve("Shop.Cart.add") is not None

    def test_action_names(self) -> None:
        assert ChatController.action_names() == frozenset({"message", "joined", "typing"})

    def test_router_property(self, router: Router) -> None:
        assert ChatController(router).router is router

    def test_system_controller_is_registered(self, router: Router) -> None:
        assert SYSTEM_CONTROLLER in router.registry
        match = router.registry.resolve("Heimdall.csrf")
        assert match is not None
        assert isinstance(match.instance, HeimdallController)


class TestDispatch:
    @pytest.mark.anyio
    async def test_async_method(self, router: Router) -> None:
        chat = ChatController(router)
        await router.receive_package({"receiver": "Chat.message", "payload": {"text": "hi"}})
        assert [d.received_package.payload for d in chat.messages] == [{"text": "hi"}]

    @pytest.mark.anyio
    async def test_sync_method(self, router: Router) -> None:
        chat = ChatController(router)
        await router.receive_package({"receiver": "Chat.typing", "payload": {}})
        assert len(chat.messages) == 1

    @pytest.mark.anyio
    async def test_listeners_in_registration_order(self, router: Router) -> None:
        chat = ChatController(router)
        seen: list[str] = []

        async def first(data: ActionData) -> None:
            seen.append("first")

        def second(data: ActionData) -> None:
            seen.append("second")

        assert chat.listen_to_action("joined", first) is True
        assert chat.listen_to_action("joined", second) is True

        await router.receive_package({"receiver": "Chat.joined", "payload": {}})

        assert seen == ["first", "second"]

    @pytest.mark.anyio
    async def test_method_takes_precedence_over_listeners(self, router: Router) -> None:
        chat = ChatController(router)
        seen: list[ActionData] = []
        chat.listen_to_action("message", seen.append)

        await router.receive_package({"receiver": "Chat.message", "payload": {}})

        assert len(chat.messages) == 1
        assert seen == []

    @pytest.mark.anyio
    async def test_listeners_can_be_called_directly(self, router: Router) -> None:
        chat = ChatController(router)
        seen: list[ActionData] = []
        chat.listen_to_action("message", seen.append)
        data = ActionData(received_package=None)  # type: ignore[arg-type]

        await chat.call_listeners("message", data)

        assert seen == [data]

    @pytest.mark.anyio
    async def test_action_without_listeners_is_noop(self, router: Router) -> None:
        ChatController(router)
        await router.receive_package({"receiver": "Chat.joined", "payload": {}})


class TestListenToAction:
    def test_unknown_action_is_rejected(self, router: Router, caplog: pytest.LogCaptureFixture) -> None:
        chat = ChatController(router)

        with caplog.at_level(logging.ERROR, logger="heimdall.controller"):
            assert chat.listen_to_action("UnknownAction", print) is False

        assert "No action UnknownAction for controller ChatController." in caplog.text
        assert "UnknownAction" not in chat._callbacks


class TestHeimdallController:
    @pytest.mark.anyio
    async def test_error_action_logs(self, router: Router, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.ERROR, logger="heimdall.controller"):
            await router.receive_package({"receiver": "Heimdall.error", "payload": {"reason": "db down"}})

        assert "Backend failed to process package" in caplog.text
        assert "db down" in caplog.text


class TestBaseApiIsNotAnAction:
    class ReservedController(ControllerBase):
        actions = ("call_listeners", "listen_to_action", "router", "notify")

        def notify(self, data: ActionData) -> None:
            pass

    def test_dispatch_table_skips_base_methods(self, router: Router) -> None:
        controller = self.ReservedController(router)
        assert set(controller._handlers) == {"notify"}

    @pytest.mark.anyio
    async def test_base_method_name_routes_to_listeners(self, router: Router) -> None:
        controller = self.ReservedController(router)
        seen: list[ActionData] = []
        controller.listen_to_action("call_listeners", seen.append)

        await router.receive_package({"receiver": "Reserved.call_listeners", "payload": {}})

        assert len(seen) == 1

    def test_inherited_subclass_method_is_kept(self, router: Router) -> None:
        class Base(ControllerBase):
            def notify(self, data: ActionData) -> None:
                pass

        class AlertController(Base):
            actions = ("notify",)

        assert set(AlertController(router)._handlers) == {"notify"}

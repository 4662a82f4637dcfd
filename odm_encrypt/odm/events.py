# ==============================================
# Lifecycle events
# ==============================================
#
# PURPOSE:
#   The notification mechanism between the UnitOfWork and
#   anything that wants to intercept flush / load.
#
# EVENTS:
# -------
# - pre_flush   → change sets computed, nothing written yet
# - post_flush  → batch written to storage
# - post_load   → one document hydrated from storage
#
#   A listener handles an event with a method of the same name:
#       def post_load(self, args: LifecycleEventArgs): ...
#
# CLASS: EventManager
# -------------------
#   - add_event_listener(events, listener)
#   - add_event_subscriber(subscriber)
#       subscriber.get_subscribed_events() names the events.
#   - remove_event_subscriber(subscriber)
#   - has_listeners(event) -> bool
#   - dispatch_event(event, args)
#       Listeners run inline, in registration order. Exceptions
#       propagate to whoever triggered the event.
#
# ==============================================

import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Union

logger = logging.getLogger(__name__)


class Events:
    pre_flush = "pre_flush"
    post_flush = "post_flush"
    post_load = "post_load"


@dataclass
class PreFlushEventArgs:
    document_manager: Any


@dataclass
class PostFlushEventArgs:
    document_manager: Any


@dataclass
class LifecycleEventArgs:
    document: Any
    document_manager: Any


class EventManager:
    def __init__(self):
        self._listeners: Dict[str, List[Any]] = {}

    def add_event_listener(self, events: Union[str, Iterable[str]], listener: Any) -> None:
        if isinstance(events, str):
            events = [events]

        for event in events:
            if not callable(getattr(listener, event, None)):
                raise TypeError(
                    f"{type(listener).__name__} has no '{event}' handler"
                )
            listeners = self._listeners.setdefault(event, [])
            if listener not in listeners:
                listeners.append(listener)

    def remove_event_listener(self, events: Union[str, Iterable[str]], listener: Any) -> None:
        if isinstance(events, str):
            events = [events]

        for event in events:
            listeners = self._listeners.get(event, [])
            if listener in listeners:
                listeners.remove(listener)

    def add_event_subscriber(self, subscriber: Any) -> None:
        events = subscriber.get_subscribed_events()
        self.add_event_listener(events, subscriber)
        logger.info("Registered %s for %s", type(subscriber).__name__, events)

    def remove_event_subscriber(self, subscriber: Any) -> None:
        self.remove_event_listener(subscriber.get_subscribed_events(), subscriber)

    def has_listeners(self, event: str) -> bool:
        return bool(self._listeners.get(event))

    def dispatch_event(self, event: str, args: Any) -> None:
        # Copy so a listener may unsubscribe while being notified
        for listener in list(self._listeners.get(event, ())):
            getattr(listener, event)(args)

import queue
import threading

from protocol.constants import MessageTypes
from protocol.entities import Item
from purchase_client.consumer import ResultsConsumer
from purchase_client.dispatcher import ErrorOutcome, ItemsReady, ResultDispatcher


def test_outcomes_are_routed_by_message_type():
    dispatcher = ResultDispatcher()
    consumer = ResultsConsumer(dispatcher.channel)
    seen = []
    consumer.register_handler(MessageTypes.PRODUCT_CATEGORY, lambda o: seen.append(("items", o)))
    consumer.register_handler(MessageTypes.ERROR, lambda o: seen.append(("error", o)))

    items = ItemsReady((Item("Zen", "sushi", 2, 0.0),))
    error = ErrorOutcome("Unexpected response from server")
    dispatcher.dispatch(items)
    dispatcher.dispatch(error)

    assert consumer.process_next(timeout=1)
    assert consumer.process_next(timeout=1)
    assert seen == [("items", items), ("error", error)]


def test_process_next_times_out_on_empty_channel():
    consumer = ResultsConsumer(queue.Queue())
    assert consumer.process_next(timeout=0.01) is False


def test_unknown_message_type_is_dropped():
    dispatcher = ResultDispatcher()
    consumer = ResultsConsumer(dispatcher.channel)
    dispatcher.dispatch(ErrorOutcome("nobody listens"))

    assert consumer.process_next(timeout=1) is True
    assert dispatcher.channel.empty()


def test_handlers_run_on_the_consumer_thread():
    dispatcher = ResultDispatcher()
    consumer = ResultsConsumer(dispatcher.channel)
    handled = threading.Event()
    threads = []

    def on_error(outcome):
        threads.append(threading.current_thread().name)
        handled.set()

    consumer.register_handler(MessageTypes.ERROR, on_error)
    consumer.start()
    try:
        dispatcher.dispatch(ErrorOutcome("x"))
        assert handled.wait(timeout=5)
    finally:
        consumer.stop(timeout=5)

    assert threads == ["results-consumer"]


def test_failing_handler_does_not_stop_the_consumer():
    dispatcher = ResultDispatcher()
    consumer = ResultsConsumer(dispatcher.channel)
    handled = threading.Event()

    def on_error(outcome):
        if outcome.message == "first":
            raise RuntimeError("handler bug")
        handled.set()

    consumer.register_handler(MessageTypes.ERROR, on_error)
    consumer.start()
    try:
        dispatcher.dispatch(ErrorOutcome("first"))
        dispatcher.dispatch(ErrorOutcome("second"))
        assert handled.wait(timeout=5)
    finally:
        consumer.stop(timeout=5)

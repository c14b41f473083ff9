import argparse
import logging
import sys

from app_config.config_loader import Config, ConfigError, resolve_config_path
from protocol.constants import MessageTypes

from .consumer import ResultsConsumer
from .dispatcher import ResultDispatcher
from .worker import SUPPORTED_KINDS, launch_request


def initialize_log(logging_level):
    """
    Python custom logging initialization

    Current timestamp is added to be able to identify in the logs the date
    when each line was written
    """
    logging.basicConfig(
        format="%(asctime)s %(levelname)-8s %(message)s",
        level=logging_level,
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def format_items(outcome) -> str:
    lines = []
    for item in outcome.items:
        lines.append(f"{item.name} | {item.category} | x{item.quantity} | {item.price:.2f} €")
    return "\n".join(lines)


def format_purchase(outcome) -> str:
    purchase = outcome.purchase
    lines = [
        f"Customer: {purchase.customer_name} ({purchase.customer_contact})",
        f"Date: {purchase.timestamp:%Y-%m-%d %H:%M:%S}",
    ]
    for item in purchase.items:
        lines.append(f"  {item.name} | {item.category} | x{item.quantity} | {item.price:.2f} €")
    lines.append(f"Total: {purchase.total_price:.2f} €")
    return "\n".join(lines)


def build_consumer(dispatcher: ResultDispatcher, results: dict) -> ResultsConsumer:
    consumer = ResultsConsumer(dispatcher.channel)

    def show(text, ok):
        print(text)
        results["ok"] = ok

    consumer.register_handler(MessageTypes.PRODUCT_CATEGORY, lambda o: show(format_items(o), True))
    consumer.register_handler(MessageTypes.CUSTOMER_PURCHASES, lambda o: show(format_items(o), True))
    consumer.register_handler(MessageTypes.PURCHASE, lambda o: show(format_purchase(o), True))
    consumer.register_handler(MessageTypes.ERROR, lambda o: show(o.message, False))
    consumer.register_handler(
        MessageTypes.CONNECTION_ERROR, lambda o: show(f"Connection error: {o.message}", False)
    )
    return consumer


def main(argv=None) -> int:
    p = argparse.ArgumentParser(
        prog="purchase-client",
        description="Send one request to the purchase server and print the outcome",
    )
    p.add_argument("-c", "--config", default=None, help="Path to INI file (default: ./config.ini)")
    p.add_argument("kind", choices=SUPPORTED_KINDS)
    p.add_argument("param", help="Request parameter; 'customer;store' for customerPurchasesByStore")
    args = p.parse_args(argv)

    try:
        config = Config(args.config or resolve_config_path())
    except ConfigError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 2

    initialize_log(config.logging_level)
    logging.info(
        "action: config | result: success | server: %s:%s | logging_level: %s",
        config.server.host,
        config.server.port,
        config.logging_level,
    )

    dispatcher = ResultDispatcher()
    results = {}
    consumer = build_consumer(dispatcher, results)

    launch_request(dispatcher, config.server.host, config.server.port, args.kind, args.param)

    # Blocks until the worker posts its outcome.
    consumer.process_next()
    return 0 if results.get("ok") else 1


if __name__ == "__main__":
    sys.exit(main())

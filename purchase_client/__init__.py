# Purchase client package: request workers, fallback chain and outcome delivery

from .consumer import ResultsConsumer
from .dispatcher import (
    ConnectionErrorOutcome, ErrorOutcome, ItemsReady, PurchaseReady, ResultDispatcher,
)
from .fallback import FallbackChain, extract_display_name, synthesize_purchase
from .worker import RequestWorker, launch_request

__all__ = [
    'ResultsConsumer',
    'ConnectionErrorOutcome', 'ErrorOutcome', 'ItemsReady', 'PurchaseReady',
    'ResultDispatcher',
    'FallbackChain', 'extract_display_name', 'synthesize_purchase',
    'RequestWorker', 'launch_request',
]

import logging

from src.utils.logger import setup_logger

checkout_monitor_logger = setup_logger(
    "checkout_monitor",
    logging.DEBUG,
    log_file="checkout_monitor.log"
)

__all__ = ["checkout_monitor_logger"]

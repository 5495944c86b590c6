from src.utils.logger import setup_logger

checkout_api_logger = setup_logger("checkout_api", log_file="checkout_api.log")

__all__ = ["checkout_api_logger"]

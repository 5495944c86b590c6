from src.checkout_api.api.checkout_router import router as checkout_router, get_handler

__all__ = ["checkout_router", "get_handler"]

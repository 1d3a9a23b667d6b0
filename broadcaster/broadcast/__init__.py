from .router import router as broadcast_router

__all__ = ["broadcast_router"]

"""
API routers.
"""

from enhancement_bridge.api.routes import enhancements, health, push, webhook

__all__ = ["enhancements", "health", "push", "webhook"]

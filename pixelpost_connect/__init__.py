"""
PixelPost Connect
-----------------
OAuth account connection and multi-platform publishing for Instagram,
Facebook, Twitter, LinkedIn and Pinterest.
"""

__version__ = "1.0.0"

def get_orchestrator_class():
    from .core import OAuthOrchestrator
    return OAuthOrchestrator

def get_publisher_class():
    from .services import MultiPlatformPublisher
    return MultiPlatformPublisher

__all__ = [
    'get_orchestrator_class',
    'get_publisher_class',
]

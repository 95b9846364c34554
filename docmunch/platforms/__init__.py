"""docmunch.platforms: per-platform detection, content selectors and nav discovery."""
from docmunch.platforms.base import (
    CustomDiscovery,
    NavDiscovery,
    NoDiscovery,
    PlatformStrategy,
    SelectorDiscovery,
    is_nav_scoped,
)
from docmunch.platforms.registry import (
    PLATFORM_STRATEGIES,
    detect_strategy,
    get_strategy,
    resolve_platform,
)

__all__ = [
    "CustomDiscovery",
    "NavDiscovery",
    "NoDiscovery",
    "PlatformStrategy",
    "SelectorDiscovery",
    "is_nav_scoped",
    "PLATFORM_STRATEGIES",
    "detect_strategy",
    "get_strategy",
    "resolve_platform",
]

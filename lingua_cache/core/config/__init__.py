"""
Configuration Module

- **settings.py**: Pydantic-based configuration with environment variable loading
- **constants.py**: System-wide constants, enums, key namespaces and thresholds

Usage:
------
```python
from lingua_cache.core.config import get_settings
from lingua_cache.core.config.constants import Stage

settings = get_settings()
threshold = settings.media.TRANSCODE_THRESHOLD_BYTES
```
"""

from lingua_cache.core.config.settings import Settings, get_settings, reload_settings

__all__ = ["Settings", "get_settings", "reload_settings"]

"""
Core Interfaces Module

This module provides abstract interfaces and protocols for core components,
enabling dependency injection, testability, and loose coupling.

Components:
-----------
- **cache.py**: GenerationBackend protocol for cache store backends
- **network.py**: Fetcher protocol for the outbound network fetch

Usage:
------
```python
from src.core.interfaces import Fetcher, GenerationBackend

def build_engine(backend: GenerationBackend, fetcher: Fetcher):
    ...
```

Author: System Architect
Date: 2025-12-08
"""

from src.core.interfaces.cache import GenerationBackend
from src.core.interfaces.network import Fetcher

__all__ = [
    "GenerationBackend",
    "Fetcher",
]

from . import aggregator

__all__ = ["aggregator"]

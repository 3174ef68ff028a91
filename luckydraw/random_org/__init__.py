from .api import RandomOrgClient, DEFAULT_ENDPOINT

__all__ = ["RandomOrgClient", "DEFAULT_ENDPOINT"]

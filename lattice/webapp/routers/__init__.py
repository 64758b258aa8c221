"""
API routers for the webapp.
"""

from . import health, source_content, concepts, generated_content

__all__ = ["health", "source_content", "concepts", "generated_content"]

# Re-export the main Base class from db.py for assessment models
# so every table shares the same metadata
from db import Base, JSONType

__all__ = ["Base", "JSONType"]

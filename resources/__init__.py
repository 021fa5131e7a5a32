"""Resource and parsed-source data model."""

from .model import ResourcePath, SourceFile, ScanResult

__all__ = ["ResourcePath", "SourceFile", "ScanResult"]

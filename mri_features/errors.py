from __future__ import annotations


class FeatureExtractionError(ValueError):
    """Base class for input problems reported by the toolkit."""


class InvalidDimensions(FeatureExtractionError):
    def __init__(self, size: int, width: int, height: int):
        self.size = int(size)
        self.width = int(width)
        self.height = int(height)
        super().__init__(
            f"Pixel buffer has {self.size} values, expected {self.width}x{self.height}x4 = "
            f"{self.width * self.height * 4}"
        )


class UnsupportedFileType(FeatureExtractionError):
    def __init__(self, name: str, reason: str = "not an image"):
        self.name = name
        super().__init__(f"Unsupported file '{name}': {reason}")

"""SpecWatch - OpenAPI change detection and classification."""

__version__ = "0.1.0"

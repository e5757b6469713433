"""Manifest and zip bundle creation for published runs."""

from knowledgecurator.bundle.builder import ZipBuilder
from knowledgecurator.bundle.manifest import ManifestBuilder

__all__ = ["ManifestBuilder", "ZipBuilder"]

"""Encoder for Matter TLV data: tags, element types and a buffer writer."""

__version__ = "0.1.0"
__all__ = ["errors", "tags", "tlv_types", "writer"]
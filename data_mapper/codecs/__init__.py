"""Codecs - text <-> structured value conversion."""

from __future__ import annotations

from data_mapper.codecs.json_codec import JsonCodec
from data_mapper.codecs.protocol import Codec

__all__ = ["Codec", "JsonCodec"]

"""
acvm_core: witness data model, binary witness codec and input ingestion.
"""

from .codec import RECORD_SIZE, decode_witness_map, encode_witness_map
from .field import MODULUS, FieldElement
from .version import __version__
from .witness import MAX_WITNESS_INDEX, WitnessMap

__all__ = [
    "__version__",
    "FieldElement",
    "MODULUS",
    "WitnessMap",
    "MAX_WITNESS_INDEX",
    "RECORD_SIZE",
    "encode_witness_map",
    "decode_witness_map",
]

from contract_compiler.runtime.arguments import (
    Attribute,
    decode_arguments,
    handler_arguments,
    parse_cid_attributes,
)

__all__ = [
    "Attribute",
    "decode_arguments",
    "handler_arguments",
    "parse_cid_attributes",
]

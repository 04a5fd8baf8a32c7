"""
Computex Market Domain

Pure value types of the compute marketplace:
- Amount / Unit: unit-tagged fixed-point amounts
- AppOrder, DatasetOrder, WorkerpoolOrder, RequestOrder: signed orders
- MatchCandidate: the four orders evaluated together
"""

from .amount import (
    Amount,
    Unit,
    to_ledger,
    from_ledger,
    coerce_amount,
    require_positive,
    min_amount,
    parse_native,
    parse_credit,
    format_native,
    format_credit,
    is_native_unit,
    is_credit_unit,
)
from .orders import (
    AppOrder,
    DatasetOrder,
    WorkerpoolOrder,
    RequestOrder,
    SignedOrder,
    MatchCandidate,
    Eip712Domain,
    NULL_DATASETORDER,
    dataset_struct,
    hash_order,
    order_identity,
    encode_tag,
    decode_tag,
    sum_tags,
)

__all__ = [
    "Amount",
    "Unit",
    "to_ledger",
    "from_ledger",
    "coerce_amount",
    "require_positive",
    "min_amount",
    "parse_native",
    "parse_credit",
    "format_native",
    "format_credit",
    "is_native_unit",
    "is_credit_unit",
    "AppOrder",
    "DatasetOrder",
    "WorkerpoolOrder",
    "RequestOrder",
    "SignedOrder",
    "MatchCandidate",
    "Eip712Domain",
    "NULL_DATASETORDER",
    "dataset_struct",
    "hash_order",
    "order_identity",
    "encode_tag",
    "decode_tag",
    "sum_tags",
]

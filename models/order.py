import json
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Dict, List

from services.errors import DecodeFailure

# Bounds of the wire types the server serializes: int32 quantities, double amounts
INT32_MIN, INT32_MAX = -2 ** 31, 2 ** 31 - 1
DOUBLE_MAX_EXPONENT = 308


def _reject_constant(name: str):
    raise DecodeFailure(f"'{name}' is not a valid JSON number")


def _lower_keys(data: Dict[str, Any]) -> Dict[str, Any]:
    """Index JSON object keys case-insensitively (last duplicate wins)"""
    return {key.lower(): value for key, value in data.items()}


def _text(data: Dict[str, Any], name: str) -> str:
    value = data.get(name)
    if value is None:
        return ""
    if not isinstance(value, str):
        raise DecodeFailure(f"'{name}' must be a string, got {type(value).__name__}")
    return value


def _integer(data: Dict[str, Any], name: str) -> int:
    value = data.get(name)
    if value is None:
        return 0
    if isinstance(value, bool) or not isinstance(value, int):
        raise DecodeFailure(f"'{name}' must be an integer, got {type(value).__name__}")
    if not INT32_MIN <= value <= INT32_MAX:
        raise DecodeFailure(f"'{name}' is out of range: {value}")
    return value


def _number(data: Dict[str, Any], name: str) -> Decimal:
    value = data.get(name)
    if value is None:
        return Decimal("0")
    if isinstance(value, bool) or not isinstance(value, (int, float, Decimal)):
        raise DecodeFailure(f"'{name}' must be a number, got {type(value).__name__}")
    number = value if isinstance(value, Decimal) else Decimal(str(value))
    if not number.is_finite() or number.adjusted() > DOUBLE_MAX_EXPONENT:
        raise DecodeFailure(f"'{name}' is out of range")
    return number


@dataclass
class OrderItem:
    product_id: str = ""
    product_name: str = ""
    quantity: int = 0
    price: Decimal = Decimal("0")

    def __post_init__(self):
        # Convert float to Decimal for price
        if isinstance(self.price, (float, int)):
            self.price = Decimal(str(self.price))

    @classmethod
    def from_dict(cls, data: Any) -> 'OrderItem':
        if not isinstance(data, dict):
            raise DecodeFailure(f"order item must be an object, got {type(data).__name__}")
        fields = _lower_keys(data)
        return cls(
            product_id=_text(fields, 'product_id'),
            product_name=_text(fields, 'product_name'),
            quantity=_integer(fields, 'quantity'),
            price=_number(fields, 'price'),
        )


@dataclass
class OrderConfirmation:
    order_id: str = ""
    payment_method: str = ""
    user_session_id: str = ""
    items: List[OrderItem] = field(default_factory=list)
    total_amount: Decimal = Decimal("0")
    message: str = ""
    timestamp: str = ""

    def __post_init__(self):
        # Convert float to Decimal for total
        if isinstance(self.total_amount, (float, int)):
            self.total_amount = Decimal(str(self.total_amount))

    @classmethod
    def from_dict(cls, data: Any) -> 'OrderConfirmation':
        """Build an order from a decoded JSON object.

        Field names match case-insensitively and unknown fields are ignored.
        Missing or null fields fall back to empty defaults; nothing is
        treated as required. Values of the wrong JSON type raise
        DecodeFailure.
        """
        if not isinstance(data, dict):
            raise DecodeFailure(f"order must be a JSON object, got {type(data).__name__}")
        fields = _lower_keys(data)

        raw_items = fields.get('items')
        if raw_items is None:
            raw_items = []
        if not isinstance(raw_items, list):
            raise DecodeFailure(f"'items' must be an array, got {type(raw_items).__name__}")

        return cls(
            order_id=_text(fields, 'order_id'),
            payment_method=_text(fields, 'payment_method'),
            user_session_id=_text(fields, 'user_session_id'),
            items=[OrderItem.from_dict(item) for item in raw_items],
            total_amount=_number(fields, 'total_amount'),
            message=_text(fields, 'message'),
            timestamp=_text(fields, 'timestamp'),
        )

    @classmethod
    def from_json(cls, payload: str) -> 'OrderConfirmation':
        """Decode one line of the channel into an order"""
        try:
            data = json.loads(payload, parse_float=Decimal, parse_constant=_reject_constant)
        except (ValueError, RecursionError) as e:
            # JSONDecodeError, integers past the digit limit, nesting too deep
            raise DecodeFailure(str(e), e)
        return cls.from_dict(data)

    @property
    def item_count(self) -> int:
        return len(self.items)

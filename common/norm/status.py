import unicodedata
from enum import Enum
from typing import Optional


class OrderStatus(str, Enum):
    AWAITING = "awaiting"
    PICKING = "picking"
    SHIPPED = "shipped"
    COMPLETED = "completed"
    OTHER = "other"


STATUS_ALIASES = {
    "aguardando": OrderStatus.AWAITING,
    "awaiting": OrderStatus.AWAITING,
    "separando": OrderStatus.PICKING,
    "picking": OrderStatus.PICKING,
    "enviado": OrderStatus.SHIPPED,
    "shipped": OrderStatus.SHIPPED,
    "concluido": OrderStatus.COMPLETED,
    "completed": OrderStatus.COMPLETED,
}

# badge tone per status, as shown in the orders table
STATUS_TONES = {
    OrderStatus.COMPLETED: "success",
    OrderStatus.AWAITING: "warning",
    OrderStatus.PICKING: "info",
    OrderStatus.SHIPPED: "secondary",
    OrderStatus.OTHER: "muted",
}


def fold(text: str) -> str:
    decomposed = unicodedata.normalize("NFKD", text)
    stripped = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    return stripped.strip().casefold()


def normalize_status(raw: Optional[str]) -> OrderStatus:
    if not raw:
        return OrderStatus.OTHER
    return STATUS_ALIASES.get(fold(raw), OrderStatus.OTHER)


def is_completed(raw: Optional[str]) -> bool:
    return normalize_status(raw) is OrderStatus.COMPLETED

from pydantic import BaseModel, ConfigDict
from datetime import datetime
from typing import Optional, Union


class Order(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: Union[int, str]
    customer_name: Optional[str] = None
    product_description: Optional[str] = None
    amount: float = 0.0
    payment_method: Optional[str] = None
    created_at: Optional[datetime] = None
    delivered_at: Optional[datetime] = None
    status: Optional[str] = None
    courier: Optional[str] = None

from typing import Literal

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from common.norm.records import OrderFieldMap


class Settings(BaseSettings):
    app_env: str = "dev"
    log_level: str = "INFO"
    port: int = 8000

    backend: Literal["directus", "supabase"] = "directus"
    http_timeout: float = 10.0

    directus_url: str = "http://localhost:8055"

    supabase_url: str = "http://localhost:54321"
    supabase_anon_key: str | None = None
    supabase_service_role_key: str | None = None
    supabase_logo_bucket: str = "logos"

    aws_access_key_id: str | None = None
    aws_secret_access_key: str | None = None
    s3_endpoint: str | None = None
    s3_region: str = "us-east-1"

    orders_collection: str | None = None
    public_profile_collection: str = "crm_profiles"
    admin_role_marker: str = "admin"
    max_logo_bytes: int = 2 * 1024 * 1024

    order_id_fields: list[str] | str = ["id"]
    order_customer_fields: list[str] | str = ["nome", "customer_name"]
    order_product_fields: list[str] | str = ["produto", "product_description"]
    order_amount_fields: list[str] | str = ["valor_do_produto", "amount"]
    order_payment_fields: list[str] | str = ["forma_de_pagamento", "payment_method"]
    order_created_fields: list[str] | str = ["data_pedido", "date_created", "created_at"]
    order_delivered_fields: list[str] | str = ["data_entrega", "delivered_at"]
    order_status_fields: list[str] | str = ["status"]
    order_courier_fields: list[str] | str = ["entregador", "courier"]
    profile_name_fields: list[str] | str = ["nome_estabelecimento", "display_name"]
    profile_logo_fields: list[str] | str = ["logo_url", "logo"]

    @field_validator(
        "order_id_fields",
        "order_customer_fields",
        "order_product_fields",
        "order_amount_fields",
        "order_payment_fields",
        "order_created_fields",
        "order_delivered_fields",
        "order_status_fields",
        "order_courier_fields",
        "profile_name_fields",
        "profile_logo_fields",
        mode="before",
    )
    @classmethod
    def split_field_list(cls, v):
        if v in (None, "", [], ()):
            return []
        if isinstance(v, str):
            return [p.strip() for p in v.split(",") if p.strip()]
        return v

    @property
    def order_fields(self) -> OrderFieldMap:
        return OrderFieldMap(
            id=self.order_id_fields,
            customer_name=self.order_customer_fields,
            product_description=self.order_product_fields,
            amount=self.order_amount_fields,
            payment_method=self.order_payment_fields,
            created_at=self.order_created_fields,
            delivered_at=self.order_delivered_fields,
            status=self.order_status_fields,
            courier=self.order_courier_fields,
        )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="",
        case_sensitive=False,
        extra="ignore",
    )


settings = Settings()

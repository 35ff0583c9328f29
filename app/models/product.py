"""Product and purchasable variant models"""

from sqlalchemy import Column, String, Text, Integer, Boolean, ForeignKey, Index, CheckConstraint, Uuid
from sqlalchemy.orm import relationship

from .base import Base, TimestampedModel, UUIDModel, SerializableModel

class Product(Base, TimestampedModel, UUIDModel, SerializableModel):
    """Catalog product; prices and stock live on its variants"""

    __tablename__ = "products"

    name = Column(String(255), nullable=False, index=True)
    slug = Column(String(255), unique=True, nullable=False, index=True)
    description = Column(Text, nullable=True)
    brand = Column(String(100), nullable=True, index=True)
    is_active = Column(Boolean, default=True, nullable=False)

    variants = relationship("ProductVariant", back_populates="product")

class ProductVariant(Base, TimestampedModel, UUIDModel, SerializableModel):
    """Purchasable SKU (size, color, etc.) with its own price and inventory"""

    __tablename__ = "product_variants"

    product_id = Column(Uuid, ForeignKey("products.id"), nullable=False)
    sku = Column(String(100), unique=True, nullable=False, index=True)
    name = Column(String(255), nullable=False)

    # Pricing, in the smallest currency unit
    price = Column(Integer, nullable=False)
    sale_price = Column(Integer, nullable=True)

    # Inventory
    inventory = Column(Integer, default=0, nullable=False)

    is_active = Column(Boolean, default=True, nullable=False)

    product = relationship("Product", back_populates="variants", lazy="joined")

    __table_args__ = (
        CheckConstraint("inventory >= 0", name="check_variant_non_negative_inventory"),
        CheckConstraint("price >= 0", name="check_variant_non_negative_price"),
        Index("idx_product_variants_product_active", "product_id", "is_active"),
    )

def current_price(variant: ProductVariant) -> int:
    """Sale price when one is set below the list price, otherwise the list price"""
    if variant.sale_price is not None and variant.sale_price < variant.price:
        return variant.sale_price
    return variant.price

from __future__ import annotations

from sqlalchemy import event

from ..extensions import db
from ..time_utils import to_utc_z, utcnow
from ..validation import format_money


PRODUCT_CATEGORIES = (
    "ELECTRONICS",
    "CLOTHING",
    "FOOD",
    "BEAUTY",
    "HOME",
    "SPORTS",
    "BOOKS",
    "TOYS",
    "OTHER",
)

STOCK_ADD = "ADD"
STOCK_REMOVE = "REMOVE"
STOCK_ADJUSTMENT = "ADJUSTMENT"
STOCK_HISTORY_TYPES = (STOCK_ADD, STOCK_REMOVE, STOCK_ADJUSTMENT)

DEFAULT_MIN_STOCK_LEVEL = 10


class Product(db.Model):
    """
    Catalog entry. Deleting a product only clears is_active so order lines and
    stock history keep their reference.
    """
    __tablename__ = "products"
    __table_args__ = (
        db.Index("ix_products_is_active", "is_active"),
        db.Index("ix_products_created_at", "created_at"),
        db.CheckConstraint("cost_price >= 0", name="ck_products_cost_price_non_negative"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False)
    sku = db.Column(db.String(100), nullable=False, unique=True)
    barcode = db.Column(db.String(100), nullable=True, unique=True)

    category = db.Column(db.String(32), nullable=False, default="OTHER")
    custom_category = db.Column(db.String(100), nullable=True)

    selling_price = db.Column(db.Numeric(10, 2), nullable=False)
    cost_price = db.Column(db.Numeric(10, 2), nullable=False)

    description = db.Column(db.Text, nullable=True)
    image_url = db.Column(db.Text, nullable=True)
    is_active = db.Column(db.Boolean, nullable=False, default=True)

    created_by = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    stock = db.relationship("Stock", back_populates="product", uselist=False)

    def __repr__(self) -> str:
        return f"<Product id={self.id} sku={self.sku!r} name={self.name!r}>"

    def to_dict(self) -> dict:
        stock = self.stock
        return {
            "id": self.id,
            "name": self.name,
            "sku": self.sku,
            "barcode": self.barcode,
            "category": self.category,
            "customCategory": self.custom_category,
            "sellingPrice": format_money(self.selling_price),
            "costPrice": format_money(self.cost_price),
            "description": self.description,
            "imageUrl": self.image_url,
            "isActive": self.is_active,
            "stockQuantity": stock.quantity if stock else None,
            "minStockLevel": stock.min_stock_level if stock else None,
            "warehouseLocation": stock.warehouse_location if stock else None,
            "createdAt": to_utc_z(self.created_at),
            "updatedAt": to_utc_z(self.updated_at),
        }


class Stock(db.Model):
    """One row per product."""
    __tablename__ = "stock"
    __table_args__ = (
        db.CheckConstraint("quantity >= 0", name="ck_stock_quantity_non_negative"),
        db.Index("ix_stock_quantity", "quantity"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False, unique=True)
    quantity = db.Column(db.Integer, nullable=False, default=0)
    min_stock_level = db.Column(db.Integer, nullable=False, default=DEFAULT_MIN_STOCK_LEVEL)
    warehouse_location = db.Column(db.String(100), nullable=True)
    last_updated = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    product = db.relationship("Product", back_populates="stock")

    @property
    def is_low(self) -> bool:
        return self.quantity < self.min_stock_level

    @property
    def is_out(self) -> bool:
        return self.quantity == 0

    def to_dict(self) -> dict:
        product = self.product
        return {
            "id": self.id,
            "productId": self.product_id,
            "productName": product.name if product else None,
            "productSku": product.sku if product else None,
            "costPrice": format_money(product.cost_price) if product else None,
            "quantity": self.quantity,
            "minStockLevel": self.min_stock_level,
            "warehouseLocation": self.warehouse_location,
            "isLowStock": self.is_low,
            "isOutOfStock": self.is_out,
            "lastUpdated": to_utc_z(self.last_updated),
        }


class StockHistory(db.Model):
    """
    Append-only ledger: one row per stock-affecting event.

    Rows are never updated or deleted (enforced by the mapper listeners below).
    """
    __tablename__ = "stock_history"
    __table_args__ = (
        db.Index("ix_stock_history_product_created", "product_id", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False)
    quantity_change = db.Column(db.Integer, nullable=False)
    type = db.Column(db.String(16), nullable=False)
    reason = db.Column(db.Text, nullable=True)
    previous_quantity = db.Column(db.Integer, nullable=False)
    new_quantity = db.Column(db.Integer, nullable=False)
    created_by = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)

    product = db.relationship("Product")
    created_by_user = db.relationship("User")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "productId": self.product_id,
            "productName": self.product.name if self.product else None,
            "productSku": self.product.sku if self.product else None,
            "quantityChange": self.quantity_change,
            "type": self.type,
            "reason": self.reason,
            "previousQuantity": self.previous_quantity,
            "newQuantity": self.new_quantity,
            "createdBy": self.created_by,
            "createdByName": self.created_by_user.name if self.created_by_user else None,
            "createdAt": to_utc_z(self.created_at),
        }


class ImmutableRecordError(RuntimeError):
    pass


@event.listens_for(StockHistory, "before_update")
def _reject_history_update(mapper, connection, target):
    raise ImmutableRecordError("stock_history rows are append-only")


@event.listens_for(StockHistory, "before_delete")
def _reject_history_delete(mapper, connection, target):
    raise ImmutableRecordError("stock_history rows are append-only")

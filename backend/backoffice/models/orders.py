from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z, utcnow
from ..validation import format_money


PENDING = "PENDING"
CONFIRMED = "CONFIRMED"
IN_TRANSIT = "IN_TRANSIT"
DELIVERED = "DELIVERED"
RETURNED = "RETURNED"
CANCELLED = "CANCELLED"

ORDER_STATUSES = (PENDING, CONFIRMED, IN_TRANSIT, DELIVERED, RETURNED, CANCELLED)

UNPAID = "UNPAID"
PAID = "PAID"
REFUNDED = "REFUNDED"

PAYMENT_STATUSES = (UNPAID, PAID, REFUNDED)


class Order(db.Model):
    """
    Customer order.

    total_amount = sum(items.subtotal) + delivery_price, fixed at creation.
    Unit prices are copied from the product so later price edits do not
    rewrite history.
    """
    __tablename__ = "orders"
    __table_args__ = (
        db.Index("ix_orders_status", "status"),
        db.Index("ix_orders_created_at", "created_at"),
        db.Index("ix_orders_created_by", "created_by"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    order_number = db.Column(db.String(32), nullable=False, unique=True)

    customer_name = db.Column(db.String(255), nullable=False)
    customer_phone = db.Column(db.String(50), nullable=True)
    customer_address = db.Column(db.Text, nullable=False)
    customer_city = db.Column(db.String(100), nullable=True)

    delivery_price = db.Column(db.Numeric(10, 2), nullable=False, default=0)
    total_amount = db.Column(db.Numeric(10, 2), nullable=False)

    status = db.Column(db.String(16), nullable=False, default=PENDING)
    payment_status = db.Column(db.String(16), nullable=False, default=UNPAID)
    notes = db.Column(db.Text, nullable=True)

    created_by = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    items = db.relationship(
        "OrderItem",
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="OrderItem.id",
    )
    created_by_user = db.relationship("User")
    scan = db.relationship("ScannedOrder", back_populates="order", uselist=False, cascade="all, delete-orphan")

    def __repr__(self) -> str:
        return f"<Order id={self.id} number={self.order_number} status={self.status}>"

    def to_summary_dict(self) -> dict:
        return {
            "id": self.id,
            "orderNumber": self.order_number,
            "customerName": self.customer_name,
            "totalAmount": format_money(self.total_amount),
            "status": self.status,
            "paymentStatus": self.payment_status,
            "createdAt": to_utc_z(self.created_at),
        }

    def to_dict(self, include_items: bool = True) -> dict:
        data = {
            **self.to_summary_dict(),
            "customerPhone": self.customer_phone,
            "customerAddress": self.customer_address,
            "customerCity": self.customer_city,
            "deliveryPrice": format_money(self.delivery_price),
            "notes": self.notes,
            "createdBy": self.created_by,
            "createdByName": self.created_by_user.name if self.created_by_user else None,
            "updatedAt": to_utc_z(self.updated_at),
        }
        if include_items:
            data["items"] = [item.to_dict() for item in self.items]
        return data


class OrderItem(db.Model):
    __tablename__ = "order_items"
    __table_args__ = (
        db.CheckConstraint("quantity > 0", name="ck_order_items_quantity_positive"),
        db.Index("ix_order_items_order_id", "order_id"),
        db.Index("ix_order_items_product_id", "product_id"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    order_id = db.Column(db.Integer, db.ForeignKey("orders.id", ondelete="CASCADE"), nullable=False)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False)
    quantity = db.Column(db.Integer, nullable=False)
    unit_price = db.Column(db.Numeric(10, 2), nullable=False)
    subtotal = db.Column(db.Numeric(10, 2), nullable=False)

    order = db.relationship("Order", back_populates="items")
    product = db.relationship("Product")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "productId": self.product_id,
            "productName": self.product.name if self.product else None,
            "productSku": self.product.sku if self.product else None,
            "quantity": self.quantity,
            "unitPrice": format_money(self.unit_price),
            "subtotal": format_money(self.subtotal),
        }


class ScannedOrder(db.Model):
    """Hand-off of a confirmed order to a delivery company. One scan per order."""
    __tablename__ = "scanned_orders"
    __table_args__ = (
        db.Index("ix_scanned_orders_scanned_at", "scanned_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    order_id = db.Column(db.Integer, db.ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, unique=True)
    delivery_company = db.Column(db.String(100), nullable=True)
    tracking_number = db.Column(db.String(100), nullable=True)
    scanned_by = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    scanned_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    notes = db.Column(db.Text, nullable=True)

    order = db.relationship("Order", back_populates="scan")
    scanned_by_user = db.relationship("User")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "orderId": self.order_id,
            "order": self.order.to_dict(include_items=False) if self.order else None,
            "deliveryCompany": self.delivery_company,
            "trackingNumber": self.tracking_number,
            "scannedBy": self.scanned_by,
            "scannedByName": self.scanned_by_user.name if self.scanned_by_user else None,
            "scannedAt": to_utc_z(self.scanned_at),
            "notes": self.notes,
        }

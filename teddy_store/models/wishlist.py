import uuid
from sqlalchemy import Column, String, DateTime, UniqueConstraint
from ..database import Base, utcnow


class WishlistEntry(Base):
    __tablename__ = "wishlist"
    __table_args__ = (
        UniqueConstraint("user_id", "product_id", name="uq_wishlist_user_product"),
    )

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String, nullable=False, index=True)
    product_id = Column(String, nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)

from sqlalchemy import Column, Integer, Text, TIMESTAMP, Boolean, Numeric, Index, func

from .base import Base


class ShippingQuote(Base):
    """
    A freight quote request, historical or new.

    Immutable once recorded apart from the price revision fields
    (initial_quote_amount, final_agreed_price, job_won, quote_status).
    """
    __tablename__ = 'shipping_quotes'

    quote_id = Column(Integer, primary_key=True, autoincrement=True)
    email_id = Column(Integer, nullable=True)
    client_company_name = Column(Text)

    # Route
    origin_city = Column(Text)
    origin_state_province = Column(Text)
    origin_country = Column(Text)
    destination_city = Column(Text)
    destination_state_province = Column(Text)
    destination_country = Column(Text)
    total_distance_miles = Column(Numeric(10, 2))

    # Service & cargo
    service_type = Column(Text)
    cargo_description = Column(Text)
    cargo_weight = Column(Numeric(12, 2))
    weight_unit = Column(Text)
    cargo_length = Column(Numeric(10, 2))
    cargo_width = Column(Numeric(10, 2))
    cargo_height = Column(Numeric(10, 2))
    dimension_unit = Column(Text)
    number_of_pieces = Column(Integer)
    hazardous_material = Column(Boolean, nullable=True)

    # Pricing
    initial_quote_amount = Column(Numeric(12, 2))
    final_agreed_price = Column(Numeric(12, 2))
    job_won = Column(Boolean, nullable=True)
    quote_status = Column(Text, default='pending')
    quote_date = Column(TIMESTAMP(timezone=True), nullable=True)

    created_at = Column(TIMESTAMP(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(TIMESTAMP(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())

    __table_args__ = (
        Index('idx_shipping_quotes_created', 'created_at'),
        Index('idx_shipping_quotes_service', 'service_type'),
    )

from sqlalchemy import Column, Integer, String, Date, ForeignKey, UniqueConstraint, Index
from sqlalchemy.orm import relationship
from models.base import Base


class Customer(Base):
    """
    One row per distinct customer identifier from the source file.
    
    Design:
    - customer_id is the business key from the source, not a surrogate
    - email is UNIQUE; re-loads only ever update this column
    - every dependent table cascades on delete
    """
    __tablename__ = "customers"
    
    customer_id = Column(String(64), primary_key=True)
    first_name = Column(String(100), nullable=True)
    last_name = Column(String(100), nullable=True)
    city = Column(String(100), nullable=True)
    country = Column(String(100), nullable=True, index=True)
    email = Column(String(255), nullable=False, unique=True)
    
    # Relationships
    contacts = relationship("Contact", back_populates="customer", cascade="all, delete-orphan", passive_deletes=True)
    subscription = relationship("Subscription", back_populates="customer", uselist=False, cascade="all, delete-orphan", passive_deletes=True)
    website = relationship("Website", back_populates="customer", uselist=False, cascade="all, delete-orphan", passive_deletes=True)
    company_links = relationship("CustomerCompany", back_populates="customer", cascade="all, delete-orphan", passive_deletes=True)


class Contact(Base):
    """Phone numbers of a customer (phone 1 and phone 2, when present)"""
    __tablename__ = "contacts"
    
    contact_id = Column(Integer, primary_key=True, autoincrement=True)
    customer_id = Column(String(64), ForeignKey("customers.customer_id", ondelete="CASCADE"), nullable=False)
    phone_number = Column(String(50), nullable=False)
    
    customer = relationship("Customer", back_populates="contacts")
    
    __table_args__ = (
        UniqueConstraint("customer_id", "phone_number", name="uq_contacts_customer_phone"),
        Index("idx_contacts_customer", "customer_id"),
    )


class Subscription(Base):
    """Subscription start date; at most one per customer"""
    __tablename__ = "subscriptions"
    
    subscription_id = Column(Integer, primary_key=True, autoincrement=True)
    customer_id = Column(String(64), ForeignKey("customers.customer_id", ondelete="CASCADE"), nullable=False, unique=True)
    subscription_date = Column(Date, nullable=False)
    
    customer = relationship("Customer", back_populates="subscription")


class Website(Base):
    """Customer website; at most one per customer"""
    __tablename__ = "websites"
    
    website_id = Column(Integer, primary_key=True, autoincrement=True)
    customer_id = Column(String(64), ForeignKey("customers.customer_id", ondelete="CASCADE"), nullable=False, unique=True)
    website_url = Column(String(2048), nullable=False)
    
    customer = relationship("Customer", back_populates="website")

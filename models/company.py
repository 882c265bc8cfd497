from sqlalchemy import Column, Integer, String, ForeignKey
from sqlalchemy.orm import relationship
from models.base import Base


class Company(Base):
    """
    Distinct company names seen in the source.
    
    company_id is a surrogate key generated by the store; the loader maps
    names back to ids after inserting.
    """
    __tablename__ = "companies"
    
    company_id = Column(Integer, primary_key=True, autoincrement=True)
    company_name = Column(String(255), nullable=False, unique=True)
    
    customer_links = relationship("CustomerCompany", back_populates="company", cascade="all, delete-orphan", passive_deletes=True)


class CustomerCompany(Base):
    """Link table between customers and companies"""
    __tablename__ = "customer_companies"
    
    customer_id = Column(String(64), ForeignKey("customers.customer_id", ondelete="CASCADE"), primary_key=True)
    company_id = Column(Integer, ForeignKey("companies.company_id", ondelete="CASCADE"), primary_key=True)
    
    customer = relationship("Customer", back_populates="company_links")
    company = relationship("Company", back_populates="customer_links")

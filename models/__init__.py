"""
SQLAlchemy ORM models for the customer schema.

Models:
    base: Base declarative class
    customer: Customer and its dependents (Contact, Subscription, Website)
    company: Company and the CustomerCompany link table

Database Schema:
    customers            customer_id PK, email UNIQUE
    contacts             -> customers (0-2 rows per customer)
    subscriptions        -> customers (0-1 row)
    websites             -> customers (0-1 row)
    companies            company_id PK, company_name UNIQUE
    customer_companies   PK(customer_id, company_id)

    All dependent foreign keys cascade on delete of the parent customer.

Usage:
    from models import Base, Customer, Contact, Company
"""

from models.base import Base
from models.customer import Customer, Contact, Subscription, Website
from models.company import Company, CustomerCompany

# Truncate / delete order: children before parents
TABLES_IN_DELETE_ORDER = [
    Contact,
    Subscription,
    Website,
    CustomerCompany,
    Customer,
    Company,
]

__all__ = [
    "Base",
    "Customer",
    "Contact",
    "Subscription",
    "Website",
    "Company",
    "CustomerCompany",
    "TABLES_IN_DELETE_ORDER",
]

"""
Load cleaned customers into the relational schema in one transaction
"""

from typing import List, Dict, Sequence, Tuple, Optional, Any
from datetime import date
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, text, delete
from sqlalchemy.dialects import postgresql, sqlite
from core.config import settings
from core.exceptions import LoadFaultError, ClearFaultError
from core.notifier import notify
from ingestion.batching import apply_in_batches
from ingestion.status import StatusRegister, status_register
from models import (
    Customer, Contact, Subscription, Website, Company, CustomerCompany,
    TABLES_IN_DELETE_ORDER
)
from schemas.api import PipelineResult
from schemas.customer import CustomerRecord, TransformResult, SENTINEL
from schemas.status import PipelineStage
import logging

logger = logging.getLogger(__name__)

COMPANY_TABLE = "Company Table"
CUSTOMER_TABLE = "Customer Table"
CONTACTS_TABLE = "Contacts Table"
SUBSCRIPTIONS_TABLE = "Subscriptions Table"
CUSTOMER_COMPANIES_TABLE = "Customer_Companies Table"
WEBSITES_TABLE = "Websites Table"

_INSERT_BY_DIALECT = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}

# (progress key, model, rows, conflict columns)
DependentSet = Tuple[str, Any, List[Dict[str, Any]], List[str]]


class CustomerLoader:
    """
    Write a transform result across the six customer tables.
    
    Ensures:
    - One transaction per load: everything commits or nothing does
    - Customers are upserted (only email changes on a repeated id)
    - Dependents are written only for customers that actually persisted
    - Re-running with the same data adds no duplicate rows
    """
    
    def __init__(
        self,
        db_session: AsyncSession,
        batch_size: Optional[int] = None,
        register: Optional[StatusRegister] = None
    ):
        self.db = db_session
        self.batch_size = batch_size or settings.ETL_BATCH_SIZE
        self.status = register or status_register
    
    async def load(self, transformed: TransformResult) -> PipelineResult:
        """
        Load companies, customers and dependents atomically.
        
        Returns:
            PipelineResult; on failure the transaction has been rolled back
            and a "Loading" notification sent
        """
        self.status.update(
            stage=PipelineStage.LOADING,
            message=f"Loading {len(transformed.cleaned)} customers"
        )
        current_table = COMPANY_TABLE
        counts: Dict[str, int] = {}
        
        try:
            company_ids = await self._load_companies(sorted(transformed.companies))
            counts["companies"] = len(company_ids)
            
            current_table = CUSTOMER_TABLE
            rejected = await self._load_customers(transformed.cleaned)
            counts["customers_rejected"] = len(rejected)
            
            persisted = await self._persisted_customer_ids()
            accepted = []
            for customer in transformed.cleaned:
                if customer.customer_id in persisted:
                    accepted.append(customer)
                else:
                    logger.warning(
                        f"Customer {customer.customer_id} was not persisted; skipping its dependents"
                    )
            counts["customers"] = len(accepted)
            counts["customers_skipped"] = len(transformed.cleaned) - len(accepted)
            
            for table_name, model, rows, conflict_columns in self._build_dependents(accepted, company_ids):
                current_table = table_name
                await self._load_table(table_name, model, rows, conflict_columns)
                counts[model.__tablename__] = len(rows)
            
            current_table = None
            await self.db.commit()
        
        except Exception as e:
            await self.db.rollback()
            fault = LoadFaultError(
                "Failed to load customer data",
                context={
                    "table_name": current_table or "COMMIT",
                    "records_to_load": len(transformed.cleaned)
                },
                original_exception=e
            )
            logger.error(str(fault), extra={"error_context": fault.to_dict()})
            await notify("Loading")
            return PipelineResult(
                success=False,
                message=f"{fault.message} ({current_table or 'commit'}): {str(e)}",
                counts={}
            )
        
        if rejected:
            message = (
                f"ETL pipeline completed with {len(rejected)} customers rejected "
                f"(email already in use); {counts['customers']} customers loaded"
            )
            logger.warning(
                f"{len(rejected)} customers not stored because their email belongs to "
                f"another customer: {', '.join(rejected[:10])}"
                f"{' ...' if len(rejected) > 10 else ''}"
            )
        else:
            message = "ETL pipeline completed successfully"

        self.status.update(stage=PipelineStage.COMPLETE, message=message)
        logger.info(f"Load committed: {counts}")

        return PipelineResult(success=True, message=message, counts=counts)
    
    async def clear_all(self) -> None:
        """
        Empty all six tables, children first.
        
        Raises:
            ClearFaultError: Store unreachable or a statement failed
        """
        try:
            dialect = self._dialect()
            table_names = [model.__tablename__ for model in TABLES_IN_DELETE_ORDER]
            
            if dialect == "postgresql":
                # Referencing tables are all in the same TRUNCATE, so FK checks pass
                await self.db.execute(text(f"TRUNCATE TABLE {', '.join(table_names)} RESTART IDENTITY"))
                await self.db.commit()
            else:
                await self.db.execute(text("PRAGMA foreign_keys=OFF"))
                for model in TABLES_IN_DELETE_ORDER:
                    await self.db.execute(delete(model.__table__))
                await self.db.commit()
                # No-op inside a transaction, so only after commit
                await self.db.execute(text("PRAGMA foreign_keys=ON"))
                await self.db.commit()
        
        except Exception as e:
            await self.db.rollback()
            logger.error(f"Failed to clear customer tables: {str(e)}")
            raise ClearFaultError(
                "Failed to clear customer tables",
                context={"operation": "TRUNCATE"},
                original_exception=e
            )
        
        logger.info(f"Cleared tables: {', '.join(table_names)}")
    
    # ------------------------------------------------------------------
    # Steps
    # ------------------------------------------------------------------
    
    async def _load_companies(self, names: List[str]) -> Dict[str, int]:
        """Insert company names (existing ones kept) and map every name to its id"""
        rows = [{"company_name": name} for name in names]
        await self._load_table(COMPANY_TABLE, Company, rows, ["company_name"])
        
        result = await self.db.execute(select(Company.company_name, Company.company_id))
        company_ids = {name: company_id for name, company_id in result.all()}
        logger.info(f"Company map holds {len(company_ids)} companies")
        return company_ids
    
    async def _load_customers(self, customers: Sequence[CustomerRecord]) -> List[str]:
        """
        Upsert customers in batches.
        
        A customer whose email already belongs to another customer cannot be
        stored (email is UNIQUE); it is logged and left out.
        
        Returns:
            Ids of customers left out because of an email clash
        """
        email_owners: Dict[str, str] = {}
        written_ids = set()
        rejected: List[str] = []
        
        async def upsert_batch(batch: Sequence[CustomerRecord]):
            emails = list({c.email for c in batch})
            result = await self.db.execute(
                select(Customer.email, Customer.customer_id).where(Customer.email.in_(emails))
            )
            stored_owners = dict(result.all())
            
            rows = []
            for customer in batch:
                if customer.customer_id in written_ids:
                    continue
                owner = email_owners.get(customer.email) or stored_owners.get(customer.email)
                if owner is not None and owner != customer.customer_id:
                    logger.warning(
                        f"Email '{customer.email}' of customer {customer.customer_id} "
                        f"already belongs to {owner}; customer not stored"
                    )
                    rejected.append(customer.customer_id)
                    continue
                
                email_owners[customer.email] = customer.customer_id
                written_ids.add(customer.customer_id)
                rows.append({
                    "customer_id": customer.customer_id,
                    "first_name": customer.first_name,
                    "last_name": customer.last_name,
                    "city": customer.city,
                    "country": customer.country,
                    "email": customer.email,
                })
            
            if not rows:
                return
            
            stmt = self._insert(Customer).values(rows)
            stmt = stmt.on_conflict_do_update(
                index_elements=["customer_id"],
                set_={"email": stmt.excluded.email}
            )
            await self.db.execute(stmt)
        
        await apply_in_batches(
            customers,
            self.batch_size,
            upsert_batch,
            on_progress=self._progress_callback(CUSTOMER_TABLE)
        )
        
        if not customers:
            self.status.set_progress("load", 100, table=CUSTOMER_TABLE)
        
        logger.info(f"Upserted {len(written_ids)} customers ({len(rejected)} rejected)")
        return rejected
    
    async def _persisted_customer_ids(self) -> set:
        """Ids present in the customers table as seen by this transaction"""
        result = await self.db.execute(select(Customer.customer_id))
        return set(result.scalars().all())
    
    def _build_dependents(
        self,
        customers: Sequence[CustomerRecord],
        company_ids: Dict[str, int]
    ) -> List[DependentSet]:
        """Split accepted customers into contact, subscription, company link and website rows"""
        contacts = []
        subscriptions = []
        links = []
        websites = []
        
        for customer in customers:
            cid = customer.customer_id
            
            phones = []
            for phone in (customer.phone_1, customer.phone_2):
                if phone != SENTINEL and phone not in phones:
                    phones.append(phone)
            contacts.extend({"customer_id": cid, "phone_number": phone} for phone in phones)
            
            if customer.subscription_date != SENTINEL:
                try:
                    subscribed = date.fromisoformat(customer.subscription_date)
                    subscriptions.append({"customer_id": cid, "subscription_date": subscribed})
                except ValueError:
                    logger.warning(
                        f"Unparseable subscription date '{customer.subscription_date}' "
                        f"for customer {cid}; subscription skipped"
                    )
            
            company_id = company_ids.get(customer.company)
            if customer.company != SENTINEL and company_id is not None:
                links.append({"customer_id": cid, "company_id": company_id})
            
            if customer.website != SENTINEL:
                websites.append({"customer_id": cid, "website_url": customer.website})
        
        return [
            (CONTACTS_TABLE, Contact, contacts, ["customer_id", "phone_number"]),
            (SUBSCRIPTIONS_TABLE, Subscription, subscriptions, ["customer_id"]),
            (CUSTOMER_COMPANIES_TABLE, CustomerCompany, links, ["customer_id", "company_id"]),
            (WEBSITES_TABLE, Website, websites, ["customer_id"]),
        ]
    
    async def _load_table(
        self,
        table_name: str,
        model,
        rows: List[Dict[str, Any]],
        conflict_columns: List[str]
    ) -> int:
        """Insert rows in batches, ignoring rows whose natural key already exists"""
        if not rows:
            logger.info(f"No rows for {table_name}; skipped")
            self.status.set_progress("load", 100, table=table_name)
            return 0
        
        async def insert_batch(batch):
            stmt = self._insert(model).values(list(batch))
            stmt = stmt.on_conflict_do_nothing(index_elements=conflict_columns)
            await self.db.execute(stmt)
        
        batches = await apply_in_batches(
            rows,
            self.batch_size,
            insert_batch,
            on_progress=self._progress_callback(table_name)
        )
        logger.info(f"{table_name}: {len(rows)} rows in {batches} batches")
        return batches
    
    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------
    
    def _progress_callback(self, table_name: str):
        def report(percent: float):
            self.status.set_progress(
                "load",
                percent,
                table=table_name,
                message=f"Loading {table_name}"
            )
        return report
    
    def _dialect(self) -> str:
        return self.db.get_bind().dialect.name
    
    def _insert(self, model):
        """INSERT construct with ON CONFLICT support for the session's database"""
        dialect = self._dialect()
        try:
            return _INSERT_BY_DIALECT[dialect](model)
        except KeyError:
            raise LoadFaultError(
                f"Unsupported database dialect: {dialect}",
                context={"dialect": dialect}
            )

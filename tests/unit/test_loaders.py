"""
Unit tests for the customer loader
"""

import pytest
from unittest.mock import AsyncMock, Mock, patch
from ingestion.loaders.customer_loader import CustomerLoader
from core.exceptions import LoadFaultError, ClearFaultError
from schemas.customer import CustomerRecord, TransformResult, SENTINEL
from schemas.status import PipelineStage


def _session(dialect: str = "postgresql"):
    bind = Mock()
    bind.dialect.name = dialect
    session = AsyncMock()
    session.get_bind = Mock(return_value=bind)
    return session


class TestBuildDependents:
    """Row building for the dependent tables"""
    
    def test_rows_per_customer(self, register):
        loader = CustomerLoader(_session(), register=register)
        customers = [
            CustomerRecord(customer_id="a", phone_1="111", phone_2="222", company="Acme",
                           subscription_date="2020-03-27", website="http://a.com"),
            CustomerRecord(customer_id="b", phone_1="333", phone_2=SENTINEL, company="Unknown Co"),
            CustomerRecord(customer_id="c", phone_1="444", phone_2="444"),
        ]
        
        dependents = {name: rows for name, _, rows, _ in loader._build_dependents(customers, {"Acme": 7})}
        
        assert dependents["Contacts Table"] == [
            {"customer_id": "a", "phone_number": "111"},
            {"customer_id": "a", "phone_number": "222"},
            {"customer_id": "b", "phone_number": "333"},
            {"customer_id": "c", "phone_number": "444"},
        ]
        assert len(dependents["Subscriptions Table"]) == 1
        assert str(dependents["Subscriptions Table"][0]["subscription_date"]) == "2020-03-27"
        assert dependents["Customer_Companies Table"] == [{"customer_id": "a", "company_id": 7}]
        assert dependents["Websites Table"] == [{"customer_id": "a", "website_url": "http://a.com"}]
    
    def test_unparseable_date_is_skipped(self, register):
        loader = CustomerLoader(_session(), register=register)
        customers = [CustomerRecord(customer_id="a", subscription_date="2020")]
        
        dependents = {name: rows for name, _, rows, _ in loader._build_dependents(customers, {})}
        
        assert dependents["Subscriptions Table"] == []


class TestCustomerLoader:
    """Loader behaviour with a mocked session"""
    
    @pytest.mark.asyncio
    async def test_empty_dependents_skip_batch_call(self, register):
        session = _session()
        loader = CustomerLoader(session, register=register)
        
        batches = await loader._load_table("Websites Table", Mock(), [], ["customer_id"])
        
        assert batches == 0
        session.execute.assert_not_called()
        assert register.read().progress.load["Websites Table"] == 100.0
    
    @pytest.mark.asyncio
    async def test_failure_rolls_back_and_notifies(self, register, mock_notify):
        session = _session()
        loader = CustomerLoader(session, register=register)
        
        with patch.object(loader, "_load_companies", AsyncMock(side_effect=RuntimeError("connection reset"))):
            result = await loader.load(TransformResult(cleaned=[CustomerRecord(customer_id="a")]))
        
        assert result.success is False
        assert "connection reset" in result.message
        session.rollback.assert_awaited_once()
        session.commit.assert_not_called()
        mock_notify.assert_awaited_once_with("Loading")
        assert register.read().stage == PipelineStage.LOADING
    
    def test_unsupported_dialect(self, register):
        loader = CustomerLoader(_session("mssql"), register=register)
        
        with pytest.raises(LoadFaultError):
            loader._insert(Mock())
    
    @pytest.mark.asyncio
    async def test_clear_all_failure_raises(self, register):
        session = _session()
        session.execute = AsyncMock(side_effect=OSError("could not connect"))
        loader = CustomerLoader(session, register=register)
        
        with pytest.raises(ClearFaultError):
            await loader.clear_all()
        
        session.rollback.assert_awaited_once()
    
    @pytest.mark.asyncio
    async def test_clear_all_postgres_truncates_in_one_statement(self, register):
        session = _session("postgresql")
        loader = CustomerLoader(session, register=register)
        
        await loader.clear_all()
        
        statement = str(session.execute.await_args_list[0].args[0])
        assert statement.startswith("TRUNCATE TABLE contacts")
        for table in ("subscriptions", "websites", "customer_companies", "customers", "companies"):
            assert table in statement
        session.commit.assert_awaited_once()

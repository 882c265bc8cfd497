"""
Unit tests for the status register
"""

import pytest
from ingestion.status import StatusRegister
from schemas.status import PipelineStage


class TestStatusRegister:
    """Test copy-on-write status snapshots"""
    
    def test_starts_idle(self):
        register = StatusRegister()
        status = register.read()
        
        assert status.stage == PipelineStage.IDLE
        assert status.progress.extract == 0
        assert status.progress.load == {}
        assert status.avg_customers_per_country is None
    
    def test_update_replaces_snapshot(self):
        """Readers holding an old snapshot never see later writes"""
        register = StatusRegister()
        before = register.read()
        
        register.update(stage=PipelineStage.EXTRACTING, message="Extracting customers.csv")
        after = register.read()
        
        assert before is not after
        assert before.stage == PipelineStage.IDLE
        assert after.stage == PipelineStage.EXTRACTING
        assert after.message == "Extracting customers.csv"
    
    def test_load_progress_is_per_table(self):
        register = StatusRegister()
        
        register.set_progress("load", 50, table="Customer Table")
        snapshot = register.read()
        register.set_progress("load", 100, table="Contacts Table")
        
        assert snapshot.progress.load == {"Customer Table": 50.0}
        assert register.read().progress.load == {"Customer Table": 50.0, "Contacts Table": 100.0}
    
    def test_progress_is_clamped(self):
        register = StatusRegister()
        
        register.set_progress("transform", 140)
        assert register.read().progress.transform == 100.0
        
        register.set_progress("extract", -3)
        assert register.read().progress.extract == 0.0
    
    def test_load_progress_requires_table(self):
        register = StatusRegister()
        
        with pytest.raises(ValueError):
            register.set_progress("load", 10)
    
    def test_unknown_stage_key(self):
        register = StatusRegister()
        
        with pytest.raises(ValueError):
            register.set_progress("publish", 10)
    
    def test_reset_discards_previous_run(self):
        register = StatusRegister()
        register.set_progress("load", 100, table="Customer Table")
        register.update(stage=PipelineStage.COMPLETE, avg_customers_per_country="4.00")
        
        register.reset(PipelineStage.EXTRACTING, "Extracting customers.csv")
        status = register.read()
        
        assert status.stage == PipelineStage.EXTRACTING
        assert status.progress.load == {}
        assert status.avg_customers_per_country is None
    
    def test_fail_is_terminal_and_keeps_progress(self):
        register = StatusRegister()
        register.set_progress("extract", 100)
        
        register.fail("Loading", "duplicate key value")
        status = register.read()
        
        assert status.stage == PipelineStage.FAILED
        assert status.failed_stage == "Loading"
        assert status.error == "duplicate key value"
        assert status.progress.extract == 100.0
        assert register.is_terminal
